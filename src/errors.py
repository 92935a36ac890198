class FortStatsError(Exception):
    """Base class for every error raised by the stat tracker."""


class MalformedStatsError(FortStatsError):
    """A raw mode payload is missing a counter or holds a non-numeric one."""


class InvalidConstructionError(FortStatsError):
    """An aggregate ModeStats was built under a name other than the reserved marker."""


class StatsFetchError(FortStatsError):
    """The stats provider could not be reached or answered with an error."""


class StatsFetchTimeout(StatsFetchError):
    pass


class NotificationError(FortStatsError):
    pass
