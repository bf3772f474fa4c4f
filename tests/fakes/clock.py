"""Controllable clock fake."""

from __future__ import annotations

from datetime import UTC, date, datetime, timedelta

START = datetime(2026, 3, 2, 9, 0, tzinfo=UTC)


class FakeClock:
    """Manually advanced clock usable anywhere a ``Clock`` callable is accepted."""

    def __init__(self, start: datetime = START) -> None:
        self.current = start

    def __call__(self) -> datetime:
        return self.current

    def advance(self, **kwargs: float) -> None:
        self.current += timedelta(**kwargs)

    @property
    def today(self) -> date:
        return self.current.date()
