"""UTC calendar helpers used for monthly rate limiting."""
from __future__ import annotations

import calendar
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone

SECONDS_IN_DAY = 86_400.0
ONE_DAY = timedelta(seconds=SECONDS_IN_DAY)
EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def as_utc(moment: datetime) -> datetime:
    """Return ``moment`` as an aware UTC datetime.

    Naive datetimes are assumed to already be expressed in UTC.
    """

    if moment.tzinfo is None:
        return moment.replace(tzinfo=timezone.utc)
    return moment.astimezone(timezone.utc)


@dataclass(frozen=True, order=True)
class CalendarMonth:
    """A calendar month in UTC, ordered by ``(year, month)``."""

    year: int
    month: int

    @classmethod
    def of(cls, moment: datetime) -> "CalendarMonth":
        utc = as_utc(moment)
        return cls(year=utc.year, month=utc.month)

    @classmethod
    def parse(cls, value: str) -> "CalendarMonth":
        year, month = value.split("-")[:2]
        return cls(year=int(year), month=int(month))

    @property
    def start(self) -> datetime:
        return datetime(self.year, self.month, 1, tzinfo=timezone.utc)

    @property
    def number_of_days(self) -> int:
        return calendar.monthrange(self.year, self.month)[1]

    def next(self) -> "CalendarMonth":
        if self.month == 12:
            return CalendarMonth(year=self.year + 1, month=1)
        return CalendarMonth(year=self.year, month=self.month + 1)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}"


@dataclass(frozen=True, order=True)
class CalendarDay:
    """A calendar day in UTC."""

    year: int
    month: int
    day: int

    @classmethod
    def of(cls, moment: datetime) -> "CalendarDay":
        utc = as_utc(moment)
        return cls(year=utc.year, month=utc.month, day=utc.day)

    @property
    def calendar_month(self) -> CalendarMonth:
        return CalendarMonth(year=self.year, month=self.month)

    def isoformat(self) -> str:
        return f"{self.year:04d}-{self.month:02d}-{self.day:02d}"


EPOCH_MONTH = CalendarMonth.of(EPOCH)


__all__ = [
    "CalendarDay",
    "CalendarMonth",
    "EPOCH",
    "EPOCH_MONTH",
    "ONE_DAY",
    "SECONDS_IN_DAY",
    "as_utc",
]
