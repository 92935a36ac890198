from datetime import datetime, timedelta, timezone as dt_timezone

from mode_stats import GAME_MODES
from snapshots import StatsRecord

T0 = datetime(2026, 10, 1, 13, 0, tzinfo=dt_timezone.utc)
DAY = timedelta(days=1)


def payload(kills=0, matches=0, minutes=0, top1=0, top3=0, top5=0, top6=0, top10=0, top12=0, top25=0,
            lastmodified=1790000000):
    return {
        "kills": kills,
        "matchesplayed": matches,
        "minutesplayed": minutes,
        "lastmodified": lastmodified,
        "placetop1": top1,
        "placetop3": top3,
        "placetop5": top5,
        "placetop6": top6,
        "placetop10": top10,
        "placetop12": top12,
        "placetop25": top25,
    }


def global_stats(**solo):
    """Provider stats with everything in solo and empty other modes."""
    stats = {mode: payload() for mode in GAME_MODES}
    stats["solo"] = payload(**solo)
    return stats


def record(timestamp, **solo):
    return StatsRecord(timestamp=timestamp, payloads=global_stats(**solo), username="tester")
