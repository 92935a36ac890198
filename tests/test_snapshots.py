from datetime import timedelta

import pytest

from helpers import DAY, T0, record
from snapshots import (
    RATIO_SENTINEL,
    SENTINEL,
    TREND_DOWN,
    TREND_UNCHANGED,
    TREND_UP,
    SnapshotAggregator,
    StatsRecord,
    WindowDelta,
    trend_symbol,
)


def test_snapshots_are_sorted_by_timestamp():
    records = [
        record(T0 + 2 * DAY, kills=30, matches=3),
        record(T0, kills=10, matches=1),
        record(T0 + DAY, kills=20, matches=2),
    ]
    aggregator = SnapshotAggregator("tester", records)

    assert [s.timestamp for s in aggregator.snapshots] == [T0, T0 + DAY, T0 + 2 * DAY]
    assert [s.aggregate.players_bagged for s in aggregator.snapshots] == [10, 20, 30]


def test_equal_timestamps_keep_input_order():
    aggregator = SnapshotAggregator("tester", [record(T0, kills=2), record(T0, kills=1), record(T0, kills=3)])
    assert [s.aggregate.players_bagged for s in aggregator.snapshots] == [2, 1, 3]


def test_records_without_timestamp_are_dropped():
    aggregator = SnapshotAggregator("tester", [record(None, kills=99), record(T0, kills=1)])
    assert len(aggregator) == 1
    assert aggregator.snapshots[0].aggregate.players_bagged == 1


def test_aggregate_sums_all_modes():
    rec = record(T0, kills=5, matches=2)
    rec.payloads["squad"]["kills"] = 4
    rec.payloads["duo"]["matchesplayed"] = 6
    aggregator = SnapshotAggregator("tester", [rec])

    snapshot = aggregator.snapshots[0]
    assert [m.mode for m in snapshot.modes] == ["solo", "duo", "trio", "squad"]
    assert snapshot.aggregate.players_bagged == 9
    assert snapshot.aggregate.matches_played == 8


def test_malformed_record_is_dropped():
    bad = StatsRecord(timestamp=T0 + DAY, payloads={"solo": {"kills": 1}})
    aggregator = SnapshotAggregator("tester", [record(T0, kills=1, matches=1), bad, record(T0 + 2 * DAY, kills=4, matches=3)])

    assert len(aggregator) == 2
    assert aggregator.window_delta(T0, T0 + 2 * DAY).players_bagged == 3


def test_naive_bounds_are_read_as_utc():
    aggregator = SnapshotAggregator("tester", [record(T0, kills=1, matches=1), record(T0 + DAY, kills=5, matches=4)])
    naive_end = (T0 + DAY).replace(tzinfo=None)

    assert aggregator.window_delta(T0.replace(tzinfo=None), naive_end) == aggregator.window_delta(T0, T0 + DAY)
    assert aggregator.trend(naive_end, DAY).current.players_bagged == 4


def test_naive_record_timestamps_are_read_as_utc():
    aggregator = SnapshotAggregator("tester", [record(T0.replace(tzinfo=None), matches=1), record(T0 + DAY, kills=2, matches=2)])

    assert aggregator.snapshots[0].timestamp == T0
    assert aggregator.window_delta(T0, T0 + DAY).players_bagged == 2


def test_find_window_bounds():
    aggregator = SnapshotAggregator("tester", [record(T0 + n * DAY, matches=n) for n in range(3)])

    assert aggregator.find_window(T0, T0 + 2 * DAY) == (0, 2)
    assert aggregator.find_window(T0 + timedelta(hours=1), T0 + 2 * DAY) == (1, 2)
    assert aggregator.find_window(T0, T0 + DAY + timedelta(hours=1)) == (0, 1)


def test_find_window_with_no_qualifying_snapshots():
    aggregator = SnapshotAggregator("tester", [record(T0 + n * DAY, matches=n) for n in range(3)])

    # Nothing at or after the start: start index runs off the end.
    assert aggregator.find_window(T0 + 5 * DAY, T0 + 6 * DAY) == (3, 2)
    # Nothing at or before the end: end index falls back to 0.
    assert aggregator.find_window(T0 - 2 * DAY, T0 - DAY) == (0, 0)


def test_find_window_on_empty_history():
    aggregator = SnapshotAggregator("tester", [])
    assert aggregator.find_window(T0, T0 + DAY) == (0, 0)
    assert not aggregator.window_delta(T0, T0 + DAY).has_data


def test_delta_is_exact_subtraction():
    aggregator = SnapshotAggregator(
        "tester",
        [
            record(T0, kills=10, matches=5, top1=1, minutes=50),
            record(T0 + DAY, kills=25, matches=12, top1=3, minutes=130),
        ],
    )

    delta = aggregator.window_delta(T0, T0 + DAY)

    assert delta.players_bagged == 15
    assert delta.matches_played == 7
    assert delta.top1 == 2
    assert delta.minutes_played == 80
    assert delta.kd == pytest.approx(3.0)
    assert delta.km == pytest.approx(15 / 80)
    assert not delta.is_infinite_kd


def test_single_snapshot_is_all_sentinel():
    aggregator = SnapshotAggregator("tester", [record(T0, kills=10, matches=5)])
    delta = aggregator.window_delta(T0 - DAY, T0 + DAY)

    assert delta == WindowDelta()
    assert delta.players_bagged == SENTINEL
    assert delta.kd == RATIO_SENTINEL
    assert delta.km == RATIO_SENTINEL


def test_no_new_matches_is_all_sentinel():
    aggregator = SnapshotAggregator(
        "tester",
        [record(T0, kills=10, matches=5), record(T0 + DAY, kills=12, matches=5)],
    )
    assert aggregator.window_delta(T0, T0 + DAY) == WindowDelta()


def test_all_wins_leaves_kd_at_sentinel_and_flags_infinity():
    aggregator = SnapshotAggregator(
        "tester",
        [record(T0), record(T0 + DAY, kills=9, matches=4, top1=4, minutes=60)],
    )
    delta = aggregator.window_delta(T0, T0 + DAY)

    assert delta.matches_played == 4
    assert delta.top1 == 4
    assert delta.kd == RATIO_SENTINEL
    assert delta.is_infinite_kd


def test_zero_minutes_leaves_kills_per_minute_at_sentinel():
    aggregator = SnapshotAggregator(
        "tester",
        [record(T0, minutes=30), record(T0 + DAY, kills=2, matches=1, minutes=30)],
    )
    delta = aggregator.window_delta(T0, T0 + DAY)
    assert delta.players_bagged == 2
    assert delta.km == RATIO_SENTINEL


@pytest.mark.parametrize(
    "previous, current, expected",
    [
        (-1, 0, TREND_UNCHANGED),
        (-1, -1, TREND_UNCHANGED),
        (-1, 4, TREND_UP),
        (3, 3, TREND_UNCHANGED),
        (2, 5, TREND_UP),
        (5, 2, TREND_DOWN),
        (4, -1, TREND_DOWN),
        (-1.0, 0.5, TREND_UP),
    ],
)
def test_trend_symbol(previous, current, expected):
    assert trend_symbol(previous, current) == expected


def test_trend_compares_against_previous_window():
    aggregator = SnapshotAggregator(
        "tester",
        [
            record(T0),
            record(T0 + DAY, kills=10, matches=5, minutes=50),
            record(T0 + 2 * DAY, kills=14, matches=10, minutes=100),
        ],
    )

    result = aggregator.trend(T0 + 2 * DAY, DAY)

    assert result.previous.players_bagged == 10
    assert result.current.players_bagged == 4
    assert result.trends["players_bagged"] == TREND_DOWN
    assert result.trends["matches_played"] == TREND_UNCHANGED
    assert result.trends["minutes_played"] == TREND_UNCHANGED
    assert result.trends["kd"] == TREND_DOWN
    assert result.trends["km"] == TREND_DOWN
    assert result.trends["top1"] == TREND_UNCHANGED


def test_previous_window_is_padded_for_late_runs():
    # The previous cycle's snapshot landed a few minutes after its nominal time.
    late = T0 + DAY + timedelta(minutes=5)
    aggregator = SnapshotAggregator(
        "tester",
        [record(T0), record(late, kills=6, matches=2), record(T0 + 2 * DAY, kills=8, matches=3)],
    )

    result = aggregator.trend(T0 + 2 * DAY, DAY)

    assert result.previous.players_bagged == 6
    assert result.trends["players_bagged"] == TREND_DOWN


def test_trend_from_no_data_reports_up():
    aggregator = SnapshotAggregator(
        "tester",
        [record(T0 + DAY), record(T0 + 2 * DAY, kills=3, matches=2)],
    )
    result = aggregator.trend(T0 + 2 * DAY, DAY)

    assert not result.previous.has_data
    assert result.trends["players_bagged"] == TREND_UP
    assert result.trends["top1"] == TREND_UNCHANGED


def test_print_aggregates(capsys):
    aggregator = SnapshotAggregator("tester", [record(T0, kills=7, matches=2, minutes=15)])
    aggregator.print_aggregates()

    out = capsys.readouterr().out
    assert "Mode: aggregate" in out
    assert "Players Bagged: 7" in out
    assert "Minutes Played: 15" in out
