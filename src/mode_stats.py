from dataclasses import dataclass
from datetime import datetime, timezone as dt_timezone

from errors import InvalidConstructionError, MalformedStatsError

GAME_MODES = ("solo", "duo", "trio", "squad")
AGGREGATE_MODE = "aggregate"

# Exclusive tiers in the order they are prefix-summed into cumulative counters.
PLACEMENT_TIERS = [
    ("top1", "placetop1"),
    ("top3", "placetop3"),
    ("top5", "placetop5"),
    ("top6", "placetop6"),
    ("top10", "placetop10"),
    ("top12", "placetop12"),
    ("top25", "placetop25"),
]

COUNTER_KEYS = [
    ("players_bagged", "kills"),
    ("matches_played", "matchesplayed"),
    ("minutes_played", "minutesplayed"),
]

SUMMED_FIELDS = (
    "players_bagged",
    "matches_played",
    "minutes_played",
    "top1",
    "top3",
    "top5",
    "top6",
    "top10",
    "top12",
    "top25",
)


def parse_counter(payload: dict, key: str, mode: str) -> int:
    """Read one integer counter out of a raw provider payload."""
    if key not in payload or payload[key] is None:
        raise MalformedStatsError(f"{mode}: missing field '{key}'")

    value = payload[key]
    if isinstance(value, bool):
        raise MalformedStatsError(f"{mode}: field '{key}' is not numeric: {value!r}")
    if isinstance(value, int):
        return value
    if isinstance(value, float):
        if value.is_integer():
            return int(value)
        raise MalformedStatsError(f"{mode}: field '{key}' is not an integer: {value!r}")
    try:
        return int(str(value).strip())
    except ValueError:
        raise MalformedStatsError(f"{mode}: field '{key}' is not numeric: {value!r}") from None


@dataclass(frozen=True)
class ModeStats:
    """Cumulative stats for one game mode, with placements made inclusive.

    The provider reports each placement tier exclusive of the better tiers
    (``placetop3`` counts matches finished 2nd or 3rd). Here every ``topN``
    counts all matches finished at rank N or better, so ``top25`` is the
    number of top-25 finishes overall.
    """

    mode: str
    last_modified: datetime | None = None
    players_bagged: int = 0
    matches_played: int = 0
    minutes_played: int = 0
    top1: int = 0
    top3: int = 0
    top5: int = 0
    top6: int = 0
    top10: int = 0
    top12: int = 0
    top25: int = 0

    @classmethod
    def from_payload(cls, mode: str, payload) -> "ModeStats":
        if not isinstance(payload, dict):
            raise MalformedStatsError(f"{mode}: expected a stats object, got {type(payload).__name__}")

        last_modified_unix = parse_counter(payload, "lastmodified", mode)
        fields = {name: parse_counter(payload, key, mode) for name, key in COUNTER_KEYS}

        running = 0
        for name, key in PLACEMENT_TIERS:
            running += parse_counter(payload, key, mode)
            fields[name] = running

        return cls(
            mode=mode,
            last_modified=datetime.fromtimestamp(last_modified_unix, tz=dt_timezone.utc),
            **fields,
        )

    @classmethod
    def aggregate(cls, mode: str = AGGREGATE_MODE, **fields) -> "ModeStats":
        if mode != AGGREGATE_MODE:
            raise InvalidConstructionError(
                f"aggregate stats must use the '{AGGREGATE_MODE}' mode name, got '{mode}'"
            )
        return cls(mode=mode, **fields)

    @classmethod
    def sum(cls, modes, last_modified: datetime | None = None) -> "ModeStats":
        """Add every numeric counter across ``modes`` into one aggregate."""
        modes = list(modes)
        totals = {field: sum(getattr(m, field) for m in modes) for field in SUMMED_FIELDS}
        if last_modified is None:
            stamps = [m.last_modified for m in modes if m.last_modified is not None]
            last_modified = max(stamps) if stamps else None
        return cls.aggregate(last_modified=last_modified, **totals)

    @property
    def is_aggregate(self) -> bool:
        return self.mode == AGGREGATE_MODE

    def __str__(self) -> str:
        return "\n".join([
            f"Mode: {self.mode}",
            f"Last Modified: {self.last_modified}",
            f"Players Bagged: {self.players_bagged}",
            f"Matches Played: {self.matches_played}",
            f"Minutes Played: {self.minutes_played}",
        ])
