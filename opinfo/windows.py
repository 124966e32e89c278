"""Opportunity window updater."""
from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Optional

from .capabilities import RandomSource
from .dates import SECONDS_IN_DAY, CalendarMonth, as_utc
from .state import MonthlyOpportunityWindow, OpportunityWindow, SchedulingState

logger = logging.getLogger(__name__)


def roll_without_exposure_window(now: datetime, rng: RandomSource) -> MonthlyOpportunityWindow:
    """Place the single eligible day of ``month(now)`` uniformly at random.

    The start lies in ``[month_start, month_start + (days - 1) * day)`` so the
    whole window always ends inside the month.
    """

    month = CalendarMonth.of(now)
    max_shift = (month.number_of_days - 1) * SECONDS_IN_DAY
    shift = rng.uniform_in(0.0, max_shift)
    window = MonthlyOpportunityWindow.for_month(month, shift)
    logger.debug("Rolled without-exposure window for %s", month.isoformat())
    return window


def without_exposure_window_if_needed(
    state: SchedulingState,
    now: datetime,
    rng: RandomSource,
) -> Optional[MonthlyOpportunityWindow]:
    """Return a new window only when the stored one belongs to an older month.

    A stored month in the future (device clock moved back) is left alone.
    """

    if state.without_exposure_window.month >= CalendarMonth.of(now):
        return None
    return roll_without_exposure_window(now, rng)


def roll_dummy_window(now: datetime, rng: RandomSource, mean_delay: float) -> OpportunityWindow:
    """Open the next dummy window after a fresh exponential delay."""

    delay = rng.exponential(mean_delay)
    window = OpportunityWindow(start=as_utc(now) + timedelta(seconds=delay))
    logger.debug("Rolled dummy window with delay %.0fs", delay)
    return window


__all__ = [
    "roll_dummy_window",
    "roll_without_exposure_window",
    "without_exposure_window_if_needed",
]
