"""
Clocks for declaration dating.

Compliance records are valid for a window of calendar days, so the one
question a declaration asks of time is "which day is it?".  Services get
that day from an injected Clock and pass it to the engines as ``as_of``.
Engines never read time themselves.

The day is taken in the clock's business timezone: a declaration built at
01:30 Istanbul time on 1 July is dated 1 July even though UTC still says
30 June.
"""

from abc import ABC, abstractmethod
from datetime import UTC, date, datetime, timedelta, tzinfo


class Clock(ABC):
    """Source of the current instant and the current business day."""

    def __init__(self, business_tz: tzinfo = UTC):
        self.business_tz = business_tz

    @abstractmethod
    def now(self) -> datetime:
        """Current instant, timezone-aware."""

    def today(self) -> date:
        """Calendar day of ``now()`` in the business timezone."""
        return self.now().astimezone(self.business_tz).date()


class SystemClock(Clock):
    """Wall-clock time."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class DeterministicClock(Clock):
    """
    Clock pinned to a chosen instant for tests and replays.

    ``now()`` returns the same value until ``advance()``, ``advance_days()``
    or ``set_time()`` is called.  Naive datetimes are read as UTC.
    """

    DEFAULT_TIME = datetime(2024, 6, 1, 12, 0, tzinfo=UTC)

    def __init__(self, fixed_time: datetime | None = None, business_tz: tzinfo = UTC):
        super().__init__(business_tz)
        self._time = self._aware(fixed_time or self.DEFAULT_TIME)

    @staticmethod
    def _aware(value: datetime) -> datetime:
        return value if value.tzinfo is not None else value.replace(tzinfo=UTC)

    def now(self) -> datetime:
        return self._time

    def set_time(self, time: datetime) -> None:
        self._time = self._aware(time)

    def advance(self, seconds: int = 1) -> None:
        self._time += timedelta(seconds=seconds)

    def advance_days(self, days: int = 1) -> None:
        """Move to the same time of day ``days`` later, e.g. past a valid_to date."""
        self._time += timedelta(days=days)
