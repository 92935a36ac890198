import json
from datetime import datetime, timezone as dt_timezone

import pandas as pd
from sqlalchemy import create_engine, inspect, text

import config
from errors import MalformedStatsError
from mode_stats import GAME_MODES
from snapshots import Snapshot, StatsRecord

PLAYER_INFO_TABLE = "player_info"
USER_STATS_TABLE = "user_stats"

PLAYER_COLUMNS = ["username", "epic_id", "phone", "cohort"]
MODE_COLUMNS = {mode: f"{mode}_stats" for mode in GAME_MODES}


def get_engine(url: str | None = None):
    return create_engine(url or config.get_db_url(), pool_pre_ping=True)


def table_exists(engine, table: str) -> bool:
    return inspect(engine).has_table(table)


def ensure_schema(engine) -> None:
    """Create the player info and user stats tables if they are missing.

    user_stats holds one row per snapshot; each ``<mode>_stats`` column keeps
    the provider's payload for that mode as JSON text.
    """

    mode_defs = ",\n".join(f"    {col} TEXT" for col in MODE_COLUMNS.values())
    with engine.begin() as conn:
        conn.execute(
            text(
                f"""
                CREATE TABLE IF NOT EXISTS {PLAYER_INFO_TABLE} (
                    username TEXT NOT NULL,
                    epic_id TEXT NOT NULL,
                    phone TEXT,
                    cohort TEXT
                );
                """
            )
        )
        conn.execute(
            text(
                f"""
                CREATE TABLE IF NOT EXISTS {USER_STATS_TABLE} (
                    partition_key TEXT NOT NULL,
                    row_key TEXT NOT NULL,
                    recorded_at TIMESTAMP,
                    username TEXT,
                {mode_defs}
                );
                """
            )
        )
        conn.execute(
            text(
                f"CREATE INDEX IF NOT EXISTS idx_{USER_STATS_TABLE}_partition "
                f"ON {USER_STATS_TABLE} (partition_key)"
            )
        )


def register_player(engine, username: str, epic_id: str, phone: str, cohort: str) -> None:
    df = pd.DataFrame([{"username": username, "epic_id": epic_id, "phone": phone, "cohort": cohort}])
    df.to_sql(PLAYER_INFO_TABLE, engine, if_exists="append", index=False, method="multi")


def load_players(engine) -> list[dict]:
    """All players opted in to the report, as dicts with PLAYER_COLUMNS keys."""
    if not table_exists(engine, PLAYER_INFO_TABLE):
        return []
    df = pd.read_sql_query(f"SELECT {', '.join(PLAYER_COLUMNS)} FROM {PLAYER_INFO_TABLE}", engine)
    if df.empty:
        return []
    df = df.fillna("")
    return [{col: str(row[col]) for col in PLAYER_COLUMNS} for row in df.to_dict("records")]


def write_user_stats(engine, username: str, epic_id: str, global_stats, now: datetime | None = None) -> bool:
    if global_stats is None:
        return False

    now = now or datetime.now(dt_timezone.utc)
    # Refuse to store anything the report cycle could not read back.
    Snapshot.from_record(StatsRecord(timestamp=now, payloads=global_stats, username=username))

    row = {
        "partition_key": epic_id,
        "row_key": str(int(now.timestamp())),
        "recorded_at": now,
        "username": username,
    }
    for mode, col in MODE_COLUMNS.items():
        row[col] = json.dumps(global_stats.get(mode))

    df = pd.DataFrame([row])
    df["recorded_at"] = pd.to_datetime(df["recorded_at"], utc=True)
    df.to_sql(USER_STATS_TABLE, engine, if_exists="append", index=False, method="multi")
    return True


def _decode_payload(raw, mode: str, row_key: str):
    if raw is None or (isinstance(raw, float) and pd.isna(raw)):
        return None
    try:
        return json.loads(raw)
    except (TypeError, json.JSONDecodeError) as e:
        raise MalformedStatsError(f"row {row_key}: {mode} stats are not valid JSON: {e}") from e


def read_user_stats(engine, epic_id: str) -> list[StatsRecord]:
    """Every stored snapshot for one player, in storage order.

    Rows whose stats columns are not valid JSON are left out with a warning.
    """
    if not table_exists(engine, USER_STATS_TABLE):
        return []

    cols = ["row_key", "recorded_at", "username"] + list(MODE_COLUMNS.values())
    df = pd.read_sql_query(
        text(f"SELECT {', '.join(cols)} FROM {USER_STATS_TABLE} WHERE partition_key = :partition"),
        engine,
        params={"partition": epic_id},
    )
    if df.empty:
        return []

    df["recorded_at"] = pd.to_datetime(df["recorded_at"], utc=True, errors="coerce")

    records = []
    for row in df.to_dict("records"):
        ts = row["recorded_at"]
        try:
            payloads = {mode: _decode_payload(row[col], mode, row["row_key"]) for mode, col in MODE_COLUMNS.items()}
        except MalformedStatsError as e:
            print(f"⚠️ Skipping stored snapshot for {epic_id}: {e}")
            continue
        records.append(
            StatsRecord(
                timestamp=None if pd.isna(ts) else ts.to_pydatetime(),
                payloads=payloads,
                username=row["username"] if isinstance(row["username"], str) else "",
            )
        )
    return records
