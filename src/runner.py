import asyncio
from datetime import datetime, timedelta, timezone as dt_timezone

from aiohttp import ClientSession
from pytz import timezone

import config
from cohorts import build_cohort_messages, recipients
from errors import MalformedStatsError, NotificationError, StatsFetchError
from fortnite_client import FortniteClient
from notifier import send_text
from snapshots import SnapshotAggregator
from store import ensure_schema, get_engine, load_players, read_user_stats, write_user_stats


def build_player_report(engine, player: dict, reference_time: datetime, lookback: timedelta) -> str:
    """Read the player's whole history and turn it into report text."""
    records = read_user_stats(engine, player["epic_id"])
    aggregator = SnapshotAggregator(player["username"], records)
    return aggregator.report(reference_time, lookback)


async def collect_reports(engine, players, fetch, reference_time: datetime, lookback: timedelta, policy: str) -> list:
    reports = []
    for player in players:
        username = player["username"]
        try:
            global_stats = await fetch(player["epic_id"])
        except StatsFetchError as e:
            if policy == "abort":
                print(f"❌ Failed to fetch stats for {username}, aborting cycle: {e}")
                raise
            print(f"⚠️ Failed to fetch stats for {username}, reporting from stored history: {e}")
            global_stats = None

        if global_stats is None:
            print(f"⚠️ No fresh stats for {username}")
        else:
            try:
                write_user_stats(engine, username, player["epic_id"], global_stats, now=reference_time)
            except MalformedStatsError as e:
                print(f"⚠️ Not storing malformed stats for {username}: {e}")

        reports.append((player["cohort"], build_player_report(engine, player, reference_time, lookback)))
    return reports


def dispatch(players, messages: dict, sender) -> int:
    sent = 0
    for phone, cohort in recipients(players):
        message = messages.get(cohort)
        if message is None:
            continue
        try:
            sender(phone, message)
            sent += 1
        except NotificationError as e:
            print(f"⚠️ Failed to text cohort {cohort} to {phone}: {e}")
    return sent


async def run_cycle(engine=None, reference_time: datetime | None = None, send: bool = True, fetch=None, sender=send_text) -> dict:
    """Fetch, store and report every tracked player once; return cohort -> message."""
    engine = engine if engine is not None else get_engine()
    ensure_schema(engine)

    reference_time = reference_time or datetime.now(dt_timezone.utc)
    lookback_days = config.get_lookback_days()
    lookback = timedelta(days=lookback_days)
    policy = config.get_fetch_failure_policy()

    local_time = reference_time.astimezone(timezone(config.REPORT_TIMEZONE))
    print(
        f"▶️ Starting report cycle at {local_time:%Y-%m-%d %I:%M %p %Z} "
        f"lookback_days={lookback_days} fetch_failure_policy={policy}"
    )

    players = load_players(engine)
    print(f"✅ Loaded {len(players)} players")

    if fetch is None:
        async with ClientSession() as session:
            client = FortniteClient(session)
            reports = await collect_reports(engine, players, client.get_global_stats, reference_time, lookback, policy)
    else:
        reports = await collect_reports(engine, players, fetch, reference_time, lookback, policy)

    messages = build_cohort_messages(reports, lookback_days)

    if send:
        sent = dispatch(players, messages, sender)
        print(f"✅ Sent {sent} text(s)")

    for cohort, message in messages.items():
        print(f"Cohort {cohort} message:\n\n{message}\n===============================\n")

    return messages


def run_once(send: bool = True) -> dict:
    return asyncio.run(run_cycle(send=send))
