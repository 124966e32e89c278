"""Pure decision step of an analytics cycle."""
from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import List

from .dates import CalendarMonth, as_utc
from .models import Configuration
from .outcome import DetectionOutcome, FullDetection, PartialDetection
from .state import SchedulingState


class Action(str, Enum):
    """Follow-up work requested by :func:`decide`, applied in order."""

    ATTEMPT_WITH_EXPOSURE = "attempt_with_exposure"
    ATTEMPT_WITHOUT_EXPOSURE = "attempt_without_exposure"
    ATTEMPT_DUMMY = "attempt_dummy"
    ROLL_DUMMY_WINDOW_IF_EXPIRED = "roll_dummy_window_if_expired"


def decide(
    outcome: DetectionOutcome,
    state: SchedulingState,
    now: datetime,
    config: Configuration,
) -> List[Action]:
    """Return the ordered actions for one cycle.

    At most one send action is returned: genuine events win over dummy
    traffic, each gated by its monthly quota. The dummy-window expiry check
    runs independently but never duplicates the roll implied by a dummy
    attempt. ``config`` is only consumed downstream by the attempts.
    """

    now = as_utc(now)
    actions: List[Action] = []

    if _should_send_with_exposure(outcome, state, now):
        actions.append(Action.ATTEMPT_WITH_EXPOSURE)
    elif _should_send_without_exposure(outcome, state, now):
        actions.append(Action.ATTEMPT_WITHOUT_EXPOSURE)
    elif state.dummy_window.contains(now):
        actions.append(Action.ATTEMPT_DUMMY)

    if Action.ATTEMPT_DUMMY not in actions and now >= state.dummy_window.end:
        actions.append(Action.ROLL_DUMMY_WINDOW_IF_EXPIRED)

    return actions


def _should_send_with_exposure(outcome: DetectionOutcome, state: SchedulingState, now: datetime) -> bool:
    if not isinstance(outcome, FullDetection):
        return False
    # The device clock can be moved to game this; the backend rate limits too.
    return CalendarMonth.of(now) != state.last_sent_with_exposure_month


def _should_send_without_exposure(outcome: DetectionOutcome, state: SchedulingState, now: datetime) -> bool:
    if not isinstance(outcome, PartialDetection):
        return False
    if CalendarMonth.of(now) == state.last_sent_without_exposure_month:
        return False
    return state.without_exposure_window.contains(now)


__all__ = ["Action", "decide"]
