"""
Day bucketing for attendance and leave records.

Every (employee, day) key in the service is a DayKey: a ``datetime.date``
taken in one reference time zone configured for the whole deployment. The
DayNormalizer is the only place that turns instants into DayKeys and back,
so the uniqueness of attendance and leave records depends on it.

Storage convention: all timestamps are persisted as naive UTC datetimes. A
naive datetime handed to ``normalize`` is therefore read as UTC, while an
aware one is converted to the reference zone.
"""

from collections.abc import Callable
from datetime import date, datetime, time, timedelta, timezone
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from app.core.exceptions import InvalidInput

Clock = Callable[[], datetime]


def system_clock() -> datetime:
    return datetime.now(timezone.utc)


def utcnow() -> datetime:
    """Current time as a naive UTC datetime (storage convention)."""
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_storage(moment: datetime) -> datetime:
    """Convert an instant to naive UTC for persistence."""
    if moment.tzinfo is None:
        return moment
    return moment.astimezone(timezone.utc).replace(tzinfo=None)


def from_storage(moment: datetime | None) -> datetime | None:
    """Attach UTC to a stored naive datetime."""
    if moment is None:
        return None
    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment


class DayNormalizer:
    """
    Computes DayKeys and day boundaries in a fixed reference time zone.

    Args:
        tz_name: IANA zone name, e.g. "Asia/Kolkata"
        clock: Callable returning the current aware instant. Tests pass a
            frozen clock; production uses the system clock.
    """

    def __init__(self, tz_name: str, clock: Clock | None = None):
        try:
            self.tz = ZoneInfo(tz_name)
        except (ZoneInfoNotFoundError, ValueError) as e:
            raise ValueError(f"Unknown reference time zone: {tz_name}") from e
        self.tz_name = tz_name
        self._clock = clock or system_clock

    def now(self) -> datetime:
        """Current instant in the reference zone."""
        current = self._clock()
        if current.tzinfo is None:
            current = current.replace(tzinfo=timezone.utc)
        return current.astimezone(self.tz)

    def today(self) -> date:
        return self.now().date()

    def normalize(self, value: date | datetime | str | None) -> date:
        """
        Convert a date, datetime or ISO-8601 string to a DayKey.

        Raises:
            InvalidInput: if value is None or cannot be parsed
        """
        if value is None:
            raise InvalidInput("A date is required")

        if isinstance(value, datetime):
            if value.tzinfo is None:
                value = value.replace(tzinfo=timezone.utc)
            return value.astimezone(self.tz).date()

        if isinstance(value, date):
            return value

        if isinstance(value, str):
            text = value.strip()
            if not text:
                raise InvalidInput("A date is required")
            # A bare calendar date is taken as-is, not as UTC midnight
            if len(text) == 10:
                try:
                    return date.fromisoformat(text)
                except ValueError:
                    raise InvalidInput(f"Invalid date: {value}")
            try:
                parsed = datetime.fromisoformat(text.replace("Z", "+00:00"))
            except ValueError:
                raise InvalidInput(f"Invalid date: {value}")
            return self.normalize(parsed)

        raise InvalidInput(f"Invalid date: {value!r}")

    def start_of(self, day: date) -> datetime:
        """Naive UTC instant of the day's reference-zone midnight."""
        local_midnight = datetime.combine(day, time.min, tzinfo=self.tz)
        return to_storage(local_midnight)

    def day_range(self, day: date) -> tuple[datetime, datetime]:
        """Half-open [start, end) naive UTC interval covering the day."""
        return self.start_of(day), self.start_of(day + timedelta(days=1))

    def month_range(self, year: int, month: int) -> tuple[date, date]:
        """First day of the month and first day of the next month."""
        try:
            first = date(int(year), int(month), 1)
        except (TypeError, ValueError):
            raise InvalidInput(f"Invalid month: {year}-{month}")
        if first.month == 12:
            return first, date(first.year + 1, 1, 1)
        return first, date(first.year, first.month + 1, 1)

    def is_future(self, day: date) -> bool:
        return day > self.today()
