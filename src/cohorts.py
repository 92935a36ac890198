from report import cohort_header


def split_cohorts(cohort_field) -> list[str]:
    """Cohorts are stored as one comma separated string, e.g. ``"c1,c2"``."""
    if not cohort_field:
        return []
    return [c.strip() for c in str(cohort_field).split(",") if c.strip()]


def build_cohort_messages(player_reports, lookback_days: int) -> dict:
    """Group per-player reports into one message per cohort.

    ``player_reports`` is an iterable of ``(cohort_field, report_text)`` pairs.
    A player in several cohorts has their report appended to each of them.
    """
    messages = {}
    for cohort_field, report_text in player_reports:
        block = report_text + "\n"
        for cohort in split_cohorts(cohort_field):
            if cohort in messages:
                messages[cohort] += block
            else:
                messages[cohort] = f"{cohort_header(lookback_days)}\n\n{block}"
    return messages


def recipients(players):
    """Yield ``(phone, cohort)`` for every cohort every player belongs to."""
    for player in players:
        for cohort in split_cohorts(player.get("cohort")):
            yield player.get("phone"), cohort
