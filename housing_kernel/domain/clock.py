"""
Clock -- Deterministic time abstraction.

Responsibility:
    Provides an injectable clock so that engine and service code never call
    ``datetime.now()`` or ``date.today()`` directly.  The month grid, the
    lifecycle guards and the daily status sweep all take "today" from here.

Architecture position:
    Kernel > Domain -- pure functional core, zero I/O (except SystemClock,
    which is the one sanctioned I/O boundary for time).

Failure modes:
    - ``zoneinfo.ZoneInfoNotFoundError`` if ``today()`` is asked for an
      unknown timezone name.
"""

from abc import ABC, abstractmethod
from datetime import date, datetime, timedelta, timezone
from zoneinfo import ZoneInfo


class Clock(ABC):
    """
    Abstract clock interface.

    Contract:
        All services that need current time receive a Clock instance via
        constructor injection.  Engine code never sees a clock at all; it
        receives an explicit reference date.

    Guarantees:
        - ``now()`` returns a timezone-aware ``datetime``.
        - ``today(tz)`` returns the calendar date in ``tz`` (UTC if omitted).
    """

    @abstractmethod
    def now(self) -> datetime:
        """Get the current time."""
        ...

    def today(self, tz: str | None = None) -> date:
        """Get the current calendar date in the given IANA timezone."""
        current = self.now()
        if tz:
            current = current.astimezone(ZoneInfo(tz))
        else:
            current = current.astimezone(timezone.utc)
        return current.date()


class SystemClock(Clock):
    """
    Production clock that returns actual system time.

    Non-goals:
        Not suitable for deterministic replay or testing.
    """

    def now(self) -> datetime:
        return datetime.now(timezone.utc)


class DeterministicClock(Clock):
    """
    Test clock with controlled time.

    Guarantees:
        - ``now()`` returns the same value on repeated calls until
          ``advance()`` or ``set_time()`` is called.
    """

    def __init__(self, fixed_time: datetime | None = None):
        self._fixed_time = fixed_time or datetime(
            2025, 9, 15, 12, 0, 0, tzinfo=timezone.utc
        )
        self._advance_seconds = 0

    @classmethod
    def on(cls, day: date) -> "DeterministicClock":
        """Clock frozen at noon UTC on ``day``."""
        return cls(datetime(day.year, day.month, day.day, 12, 0, 0, tzinfo=timezone.utc))

    def now(self) -> datetime:
        return self._fixed_time + timedelta(seconds=self._advance_seconds)

    def set_time(self, time: datetime) -> None:
        """Set the clock to a specific time."""
        self._fixed_time = time
        self._advance_seconds = 0

    def advance(self, seconds: int = 1) -> None:
        """Advance the clock by the specified seconds."""
        self._advance_seconds += seconds

    def advance_days(self, days: int) -> None:
        """Advance the clock by whole days."""
        self._advance_seconds += days * 86400
