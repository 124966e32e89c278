"""Total, idempotent writes into :class:`SchedulingState`."""
from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from typing import Union

from .dates import CalendarMonth
from .state import MonthlyOpportunityWindow, OpportunityWindow, SchedulingState

logger = logging.getLogger(__name__)


class GenuineKind(str, Enum):
    WITH_EXPOSURE = "with_exposure"
    WITHOUT_EXPOSURE = "without_exposure"


@dataclass(frozen=True)
class RecordLastSentMonth:
    """Marks the monthly quota of ``kind`` as consumed for ``month``."""

    kind: GenuineKind
    month: CalendarMonth


@dataclass(frozen=True)
class SetWithoutExposureWindow:
    window: MonthlyOpportunityWindow


@dataclass(frozen=True)
class SetDummyWindow:
    window: OpportunityWindow


StateWrite = Union[RecordLastSentMonth, SetWithoutExposureWindow, SetDummyWindow]


class StateMutator:
    """Sole writer of the scheduling state during a cycle."""

    def __init__(self, state: SchedulingState) -> None:
        self._state = state

    @property
    def state(self) -> SchedulingState:
        return self._state

    def apply(self, write: StateWrite) -> None:
        if isinstance(write, RecordLastSentMonth):
            if write.kind is GenuineKind.WITH_EXPOSURE:
                self._state.last_sent_with_exposure_month = write.month
            else:
                self._state.last_sent_without_exposure_month = write.month
            logger.debug("Recorded %s quota for %s", write.kind.value, write.month.isoformat())
        elif isinstance(write, SetWithoutExposureWindow):
            self._state.without_exposure_window = write.window
            logger.debug("Stored without-exposure window for %s", write.window.month.isoformat())
        elif isinstance(write, SetDummyWindow):
            self._state.dummy_window = write.window
            logger.debug("Stored dummy window starting %s", write.window.start.isoformat())
        else:
            raise TypeError(f"Unsupported state write {write!r}")


__all__ = [
    "GenuineKind",
    "RecordLastSentMonth",
    "SetDummyWindow",
    "SetWithoutExposureWindow",
    "StateMutator",
    "StateWrite",
]
