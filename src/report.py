import math

INFINITY = "∞"


def format_ratio(value, digits: int = 2) -> str:
    """Round a ratio for display; anything non-finite falls back to the sentinel."""
    if value is None or not math.isfinite(value):
        return "-1"
    text = f"{round(value, digits):.{digits}f}".rstrip("0").rstrip(".")
    return "0" if text in ("", "-0") else text


def format_hours(minutes: int) -> str:
    return f"{round(abs(minutes) / 60, 1):.1f}"


def format_kd(delta) -> str:
    if delta.is_infinite_kd:
        return INFINITY
    return format_ratio(delta.kd)


def with_trend(text: str, trends, name: str) -> str:
    if not trends or name not in trends:
        return text
    return f"{text} {trends[name]}"


def format_report(username: str, delta, trends=None) -> str:
    lines = [
        f"Username: {username}",
        with_trend(f"Players Bagged: {delta.players_bagged}", trends, "players_bagged"),
        with_trend(f"K/D: {format_kd(delta)}", trends, "kd"),
        with_trend(f"K/Min: {format_ratio(delta.km)}", trends, "km"),
        with_trend(f"Matches Played: {delta.matches_played}", trends, "matches_played"),
        with_trend(
            f"Minutes Played: {delta.minutes_played} ({format_hours(delta.minutes_played)} hours)",
            trends,
            "minutes_played",
        ),
        with_trend(f"Top 1: {delta.top1}", trends, "top1"),
        with_trend(f"Top 3: {delta.top3}", trends, "top3"),
        with_trend(f"Top 5: {delta.top5}", trends, "top5"),
        with_trend(f"Top 10: {delta.top10}", trends, "top10"),
        with_trend(f"Top 25: {delta.top25}", trends, "top25"),
    ]
    return "\n".join(lines) + "\n"


def cohort_header(lookback_days: int) -> str:
    return f"Stats from the past {lookback_days} day(s):"
