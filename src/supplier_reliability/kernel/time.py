"""
Time provider abstraction for deterministic testing

Scoring decay, suspension expiry and incident windows all depend on "now",
so the clock is injected rather than read from the system directly.
"""

from datetime import datetime, timedelta, timezone
from typing import Protocol


class TimeProvider(Protocol):
    """Protocol for time providers - allows deterministic testing"""

    def now(self) -> datetime:
        """Return current UTC datetime"""
        ...


class RealTimeProvider:
    """Production time provider using system clock"""

    def now(self) -> datetime:
        """Return current UTC time from system clock"""
        return datetime.now(timezone.utc)


class TestTimeProvider:
    """
    Controllable time provider for deterministic tests

    Allows tests to freeze time and advance it to exercise expiry and
    recency decay.
    """

    def __init__(self, initial_time: datetime | None = None) -> None:
        """
        Initialize with optional fixed time

        Args:
            initial_time: Starting time (defaults to Unix epoch)
        """
        self._current_time = initial_time or datetime(1970, 1, 1, tzinfo=timezone.utc)

    def now(self) -> datetime:
        """Return current test time"""
        return self._current_time

    def set_time(self, dt: datetime) -> None:
        """Set current time to specific value"""
        self._current_time = dt

    def advance_seconds(self, seconds: float) -> None:
        """Advance time by specified seconds"""
        self._current_time += timedelta(seconds=seconds)

    def advance_days(self, days: float) -> None:
        """Advance time by specified days"""
        self._current_time += timedelta(days=days)


def ensure_utc(dt: datetime) -> datetime:
    """Treat naive datetimes as UTC so comparisons never mix aware and naive"""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt


def age_in_days(then: datetime, now: datetime) -> float:
    """Elapsed days between two instants (negative if then is in the future)"""
    return (ensure_utc(now) - ensure_utc(then)).total_seconds() / 86400.0
