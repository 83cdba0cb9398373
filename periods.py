from dataclasses import dataclass
from datetime import date, datetime, timezone
from typing import Optional
from zoneinfo import ZoneInfo

MIN_YEAR = 1970
MAX_YEAR = 3000
MAX_USER_ID = 2**63 - 1


@dataclass(frozen=True)
class ReportPeriod:
    year: int
    month: int

    @property
    def start(self) -> date:
        return date(self.year, self.month, 1)

    @property
    def end(self) -> date:
        """First day of the following month (exclusive bound)."""
        if self.month == 12:
            return date(self.year + 1, 1, 1)
        return date(self.year, self.month + 1, 1)

    def is_closed(self, today: date) -> bool:
        # The running month stays open up to and including its last day.
        return (self.year, self.month) < (today.year, today.month)

    def utc_bounds(self, tz: ZoneInfo) -> tuple[datetime, datetime]:
        start = datetime(self.year, self.month, 1, tzinfo=tz)
        end_day = self.end
        end = datetime(end_day.year, end_day.month, 1, tzinfo=tz)
        return to_utc_naive(start, tz), to_utc_naive(end, tz)


def utcnow() -> datetime:
    return datetime.now(timezone.utc).replace(tzinfo=None)


def current_date(tz: ZoneInfo, now: Optional[datetime] = None) -> date:
    now = now or datetime.now(timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)
    return now.astimezone(tz).date()


def to_utc_naive(value: datetime, tz: ZoneInfo) -> datetime:
    """Naive datetimes are read as wall-clock time in ``tz``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=tz)
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def local_day(value: datetime, tz: ZoneInfo) -> int:
    """Day of month of a stored (naive UTC) timestamp, seen from ``tz``."""
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.astimezone(tz).day
