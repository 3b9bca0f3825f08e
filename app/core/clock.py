"""Time source for expiry checks; injectable so tests can pin "now"."""

from datetime import UTC, datetime, timedelta
from typing import Protocol


class Clock(Protocol):
    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in UTC."""

    def now(self) -> datetime:
        return datetime.now(UTC)


class FixedClock:
    """Clock that returns a settable instant (tests and scripted runs)."""

    def __init__(self, current: datetime) -> None:
        self.current = current

    def now(self) -> datetime:
        return self.current

    def advance(self, **delta: float) -> None:
        self.current = self.current + timedelta(**delta)


def as_utc(value: datetime) -> datetime:
    """Attach UTC to naive datetimes (SQLite hands back naive values)."""
    return value if value.tzinfo else value.replace(tzinfo=UTC)
