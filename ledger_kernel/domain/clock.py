"""
Injectable source of "today".

Aging buckets and the financial standing month windows are all relative to
the current date, so engines and services take a Clock instead of calling
``date.today()`` themselves.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, time, timedelta, timezone


class Clock(ABC):
    @abstractmethod
    def now(self) -> datetime:
        """Current timezone-aware time."""

    def today(self) -> date:
        return self.now().date()


class SystemClock(Clock):
    """Wall clock, in UTC."""

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """A clock that only moves when told to."""

    def __init__(self, fixed_time: datetime | None = None):
        self._current = fixed_time or datetime(2024, 1, 1, 12, tzinfo=timezone.utc)

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        return cls(datetime.combine(day, time(12), tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._current

    def advance_days(self, days: int) -> None:
        # Crossing a bucket boundary in aging tests
        self._current += timedelta(days=days)
