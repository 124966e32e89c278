"""Scheduling state and opportunity windows."""
from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from typing import Dict, Mapping

from .dates import EPOCH, EPOCH_MONTH, ONE_DAY, CalendarMonth, as_utc


__all__ = [
    "OpportunityWindow",
    "MonthlyOpportunityWindow",
    "SchedulingState",
]


@dataclass(frozen=True)
class OpportunityWindow:
    """Interval of time during which an analytics event is allowed to fire."""

    start: datetime
    duration: timedelta = ONE_DAY

    def __post_init__(self) -> None:
        object.__setattr__(self, "start", as_utc(self.start))

    @property
    def end(self) -> datetime:
        return self.start + self.duration

    def contains(self, moment: datetime) -> bool:
        """Return ``True`` when ``start <= moment < end``."""

        moment = as_utc(moment)
        return self.start <= moment < self.end

    def snapshot(self) -> Dict[str, object]:
        return {
            "start": self.start.isoformat(),
            "duration": self.duration.total_seconds(),
        }

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, object] | None) -> "OpportunityWindow":
        if not isinstance(snapshot, Mapping):
            return cls(start=EPOCH)
        return cls(
            start=_parse_timestamp(snapshot.get("start")),
            duration=timedelta(seconds=float(snapshot.get("duration", ONE_DAY.total_seconds()))),
        )


@dataclass(frozen=True)
class MonthlyOpportunityWindow(OpportunityWindow):
    """Opportunity window tagged with the calendar month it was computed for."""

    month: CalendarMonth = EPOCH_MONTH

    @classmethod
    def for_month(cls, month: CalendarMonth, shift_seconds: float) -> "MonthlyOpportunityWindow":
        return cls(start=month.start + timedelta(seconds=shift_seconds), month=month)

    def snapshot(self) -> Dict[str, object]:
        payload = super().snapshot()
        payload["month"] = self.month.isoformat()
        return payload

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, object] | None) -> "MonthlyOpportunityWindow":
        if not isinstance(snapshot, Mapping):
            return cls(start=EPOCH)
        base = OpportunityWindow.from_snapshot(snapshot)
        return cls(
            start=base.start,
            duration=base.duration,
            month=_parse_month(snapshot.get("month")),
        )


@dataclass
class SchedulingState:
    """Persisted scheduling record for operational-info analytics.

    A month value records the last month in which a genuine event of that
    kind was attempted, whether or not a request actually left the device.
    """

    last_sent_with_exposure_month: CalendarMonth = EPOCH_MONTH
    last_sent_without_exposure_month: CalendarMonth = EPOCH_MONTH
    without_exposure_window: MonthlyOpportunityWindow = field(
        default_factory=lambda: MonthlyOpportunityWindow(start=EPOCH)
    )
    dummy_window: OpportunityWindow = field(default_factory=lambda: OpportunityWindow(start=EPOCH))

    def copy(self) -> "SchedulingState":
        # Every field is immutable, so a shallow copy is a full snapshot.
        return SchedulingState(
            last_sent_with_exposure_month=self.last_sent_with_exposure_month,
            last_sent_without_exposure_month=self.last_sent_without_exposure_month,
            without_exposure_window=self.without_exposure_window,
            dummy_window=self.dummy_window,
        )

    def snapshot(self) -> Dict[str, object]:
        return {
            "last_sent_with_exposure_month": self.last_sent_with_exposure_month.isoformat(),
            "last_sent_without_exposure_month": self.last_sent_without_exposure_month.isoformat(),
            "without_exposure_window": self.without_exposure_window.snapshot(),
            "dummy_window": self.dummy_window.snapshot(),
        }

    @classmethod
    def from_snapshot(cls, snapshot: Mapping[str, object]) -> "SchedulingState":
        without_exposure_raw = snapshot.get("without_exposure_window")
        dummy_raw = snapshot.get("dummy_window")
        return cls(
            last_sent_with_exposure_month=_parse_month(snapshot.get("last_sent_with_exposure_month")),
            last_sent_without_exposure_month=_parse_month(snapshot.get("last_sent_without_exposure_month")),
            without_exposure_window=MonthlyOpportunityWindow.from_snapshot(
                without_exposure_raw if isinstance(without_exposure_raw, Mapping) else None
            ),
            dummy_window=OpportunityWindow.from_snapshot(
                dummy_raw if isinstance(dummy_raw, Mapping) else None
            ),
        )


def _parse_timestamp(value: object) -> datetime:
    if isinstance(value, datetime):
        return as_utc(value)
    if isinstance(value, str) and value:
        return as_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))
    if isinstance(value, (int, float)):
        return EPOCH + timedelta(seconds=float(value))
    return EPOCH


def _parse_month(value: object) -> CalendarMonth:
    if isinstance(value, CalendarMonth):
        return value
    if isinstance(value, str) and value:
        return CalendarMonth.parse(value)
    return EPOCH_MONTH
