from datetime import UTC, datetime
from zoneinfo import ZoneInfo


class SystemClock:
    """
    Wall clock for a reporting timezone.

    Records are stamped in UTC; reporting periods are cut on the local
    calendar of `tz_name`.
    """

    def __init__(self, tz_name: str = "UTC") -> None:
        self._tz = ZoneInfo(tz_name)

    def now_utc(self) -> datetime:
        return datetime.now(UTC)

    def now_local(self) -> datetime:
        return datetime.now(self._tz)
