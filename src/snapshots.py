from dataclasses import dataclass, field, replace
from datetime import datetime, timedelta, timezone as dt_timezone

from errors import MalformedStatsError
from mode_stats import GAME_MODES, ModeStats
import report

SENTINEL = -1
RATIO_SENTINEL = -1.0

# The previous report cycle may have fired a little late; widen its window so
# its closing snapshot is still picked up.
PREVIOUS_WINDOW_PAD = timedelta(minutes=10)

TREND_UP = "↑"
TREND_DOWN = "↓"
TREND_UNCHANGED = "→"


def as_utc(moment: datetime) -> datetime:
    """Treat a naive datetime as UTC; aware ones are returned untouched."""
    if moment.tzinfo is None:
        return moment.replace(tzinfo=dt_timezone.utc)
    return moment

DELTA_FIELDS = (
    "players_bagged",
    "matches_played",
    "minutes_played",
    "top1",
    "top3",
    "top5",
    "top10",
    "top25",
)

REPORTED_FIELDS = (
    "players_bagged",
    "kd",
    "km",
    "matches_played",
    "minutes_played",
    "top1",
    "top3",
    "top5",
    "top10",
    "top25",
)


@dataclass
class StatsRecord:
    """One stored row of a player's stats: a timestamp plus a raw payload per mode."""

    timestamp: datetime | None
    payloads: dict
    username: str = ""


@dataclass(frozen=True)
class Snapshot:
    timestamp: datetime | None
    modes: tuple
    aggregate: ModeStats

    @classmethod
    def from_record(cls, record: StatsRecord) -> "Snapshot":
        payloads = record.payloads or {}
        modes = tuple(ModeStats.from_payload(mode, payloads.get(mode)) for mode in GAME_MODES)
        return cls(timestamp=record.timestamp, modes=modes, aggregate=ModeStats.sum(modes))


@dataclass
class WindowDelta:
    """Stats gained between two snapshots. ``-1`` on a field means not enough data."""

    players_bagged: int = SENTINEL
    matches_played: int = SENTINEL
    minutes_played: int = SENTINEL
    top1: int = SENTINEL
    top3: int = SENTINEL
    top5: int = SENTINEL
    top10: int = SENTINEL
    top25: int = SENTINEL
    kd: float = RATIO_SENTINEL
    km: float = RATIO_SENTINEL

    @classmethod
    def between(cls, early: ModeStats, late: ModeStats) -> "WindowDelta":
        delta = cls(**{name: getattr(late, name) - getattr(early, name) for name in DELTA_FIELDS})

        if delta.minutes_played > 0:
            delta.km = delta.players_bagged / delta.minutes_played

        # A victory royale is not a death.
        deaths = delta.matches_played - delta.top1
        if deaths > 0:
            delta.kd = delta.players_bagged / deaths

        return delta

    @property
    def has_data(self) -> bool:
        return self.matches_played != SENTINEL

    @property
    def is_infinite_kd(self) -> bool:
        return self.matches_played == self.top1 and self.matches_played > 0 and self.players_bagged > 0


@dataclass
class TrendReport:
    current: WindowDelta
    previous: WindowDelta
    trends: dict = field(default_factory=dict)


def trend_symbol(previous, current) -> str:
    if previous < 0 and current == 0:
        return TREND_UNCHANGED
    if current > previous:
        return TREND_UP
    if current == previous:
        return TREND_UNCHANGED
    return TREND_DOWN


def compare_windows(previous: WindowDelta, current: WindowDelta) -> dict:
    return {name: trend_symbol(getattr(previous, name), getattr(current, name)) for name in REPORTED_FIELDS}


class SnapshotAggregator:
    """Chronological stat snapshots for a single player.

    Built fresh for every report cycle from the player's stored records and
    thrown away once the report text exists. Records without a timestamp cannot
    be placed in time and are left out.
    """

    def __init__(self, username: str, records):
        self.username = username
        self.snapshots = []

        dropped = 0
        for record in records:
            if record.timestamp is None:
                dropped += 1
                continue
            try:
                snapshot = Snapshot.from_record(record)
            except MalformedStatsError as e:
                print(f"⚠️ Ignoring malformed snapshot from {record.timestamp} for {username}: {e}")
                continue
            self.snapshots.append(replace(snapshot, timestamp=as_utc(snapshot.timestamp)))

        if dropped:
            print(f"⚠️ Ignoring {dropped} snapshot(s) without a timestamp for {username}")

        # list.sort is stable, so snapshots sharing a timestamp keep their input order.
        self.snapshots.sort(key=lambda snapshot: snapshot.timestamp)

    def __len__(self) -> int:
        return len(self.snapshots)

    def find_window(self, start_time: datetime, end_time: datetime) -> tuple[int, int]:
        """Return indices of the snapshots bounding ``[start_time, end_time]``.

        The start index is the first snapshot at or after ``start_time`` (or
        ``len`` when there is none). The end index is the last snapshot at or
        before ``end_time``, falling back to ``0`` when every snapshot is later.

        Naive bounds are taken to be UTC, the same as stored timestamps.
        """
        start_time = as_utc(start_time)
        end_time = as_utc(end_time)
        start_index = 0
        for snapshot in self.snapshots:
            if snapshot.timestamp >= start_time:
                break
            start_index += 1

        end_index = 0
        for index in range(len(self.snapshots) - 1, -1, -1):
            if self.snapshots[index].timestamp <= end_time:
                end_index = index
                break

        return start_index, end_index

    def window_delta(self, start_time: datetime, end_time: datetime) -> WindowDelta:
        start_index, end_index = self.find_window(start_time, end_time)
        if start_index >= end_index:
            return WindowDelta()

        early = self.snapshots[start_index].aggregate
        late = self.snapshots[end_index].aggregate
        if early.matches_played >= late.matches_played:
            return WindowDelta()

        return WindowDelta.between(early, late)

    def trend(self, reference_time: datetime, lookback: timedelta) -> TrendReport:
        current = self.window_delta(reference_time - lookback, reference_time)
        previous = self.window_delta(
            reference_time - 2 * lookback,
            reference_time - lookback + PREVIOUS_WINDOW_PAD,
        )
        return TrendReport(current=current, previous=previous, trends=compare_windows(previous, current))

    def report(self, reference_time: datetime, lookback: timedelta, with_trend: bool = True) -> str:
        if with_trend:
            result = self.trend(reference_time, lookback)
            return report.format_report(self.username, result.current, result.trends)
        delta = self.window_delta(reference_time - lookback, reference_time)
        return report.format_report(self.username, delta)

    def print_aggregates(self) -> None:
        for snapshot in self.snapshots:
            print("========================")
            print(snapshot.aggregate)
