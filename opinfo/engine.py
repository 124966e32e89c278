"""Analytics cycle orchestration."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Mapping, Optional, Sequence

from .capabilities import Dependencies, RandomDeviceTokenGenerator
from .dates import CalendarMonth, as_utc
from .decision import Action, decide
from .dispatcher import AttemptOutcome, AttemptResult, RequestDispatcher, RequestKind
from .errors import TokenGenerationError
from .models import Configuration
from .mutator import RecordLastSentMonth, SetDummyWindow, SetWithoutExposureWindow, StateMutator
from .outcome import DetectionOutcome
from .state import SchedulingState
from .store import InMemoryStateStore, StateStore, build_state_store
from .transport import HttpAnalyticsTransport
from .windows import roll_dummy_window, without_exposure_window_if_needed

logger = logging.getLogger(__name__)

_ATTEMPT_KINDS = {
    Action.ATTEMPT_WITH_EXPOSURE: RequestKind.WITH_EXPOSURE,
    Action.ATTEMPT_WITHOUT_EXPOSURE: RequestKind.WITHOUT_EXPOSURE,
    Action.ATTEMPT_DUMMY: RequestKind.DUMMY,
}


@dataclass
class CycleReport:
    """Everything one cycle decided and did."""

    started_at: datetime
    outcome: str
    actions: Sequence[Action]
    attempts: List[AttemptResult] = field(default_factory=list)
    dummy_window_rolled: bool = False
    without_exposure_window_rolled: bool = False

    def as_dict(self) -> dict[str, object]:
        return {
            "started_at": self.started_at.isoformat(),
            "outcome": self.outcome,
            "actions": [action.value for action in self.actions],
            "attempts": [attempt.as_dict() for attempt in self.attempts],
            "dummy_window_rolled": self.dummy_window_rolled,
            "without_exposure_window_rolled": self.without_exposure_window_rolled,
        }


class AnalyticsEngine:
    """Runs decide, attempt and mutate for each exposure-detection cycle.

    Cycles are serialized with an :class:`asyncio.Lock`; the state is
    persisted through the configured store once each cycle completes.
    """

    def __init__(
        self,
        dependencies: Dependencies,
        *,
        configuration: Optional[Configuration] = None,
        store: Optional[StateStore] = None,
        state: Optional[SchedulingState] = None,
    ) -> None:
        self.dependencies = dependencies
        self.configuration = configuration or Configuration()
        self.store = store or InMemoryStateStore(state)
        self.state = state if state is not None else self.store.load()
        self.mutator = StateMutator(self.state)
        self.dispatcher = RequestDispatcher(dependencies)
        self._lock = asyncio.Lock()

    @classmethod
    def from_settings(cls, settings, **overrides) -> "AnalyticsEngine":
        dependencies = overrides.pop("dependencies", None) or Dependencies(
            transport=HttpAnalyticsTransport(settings.backend_base_url, timeout=settings.request_timeout),
            token_generator=RandomDeviceTokenGenerator(token_bytes=settings.device_token_bytes),
        )
        store = overrides.pop("store", None) or build_state_store(settings)
        return cls(dependencies, configuration=settings.configuration(), store=store, **overrides)

    async def run_cycle(self, outcome: DetectionOutcome | Mapping[str, object]) -> CycleReport:
        if not isinstance(outcome, DetectionOutcome):
            outcome = DetectionOutcome.from_payload(outcome)

        async with self._lock:
            now = as_utc(self.dependencies.clock())
            config = self.configuration
            without_exposure_rolled = self._refresh_without_exposure_window(now)

            snapshot = self.state.copy()
            actions = decide(outcome, snapshot, now, config)
            logger.debug("Cycle for %s decided %s", outcome.kind, [action.value for action in actions])

            report = CycleReport(
                started_at=now,
                outcome=outcome.kind,
                actions=tuple(actions),
                without_exposure_window_rolled=without_exposure_rolled,
            )
            try:
                for action in actions:
                    await self._apply(action, now, config, report)
            finally:
                self.store.save(self.state)
            return report

    async def refresh_without_exposure_window(self) -> bool:
        """Re-roll the without-exposure window if the month changed."""

        async with self._lock:
            rolled = self._refresh_without_exposure_window(as_utc(self.dependencies.clock()))
            if rolled:
                self.store.save(self.state)
            return rolled

    def _refresh_without_exposure_window(self, now: datetime) -> bool:
        window = without_exposure_window_if_needed(self.state, now, self.dependencies.random_source)
        if window is None:
            return False
        self.mutator.apply(SetWithoutExposureWindow(window))
        return True

    async def _apply(self, action: Action, now: datetime, config: Configuration, report: CycleReport) -> None:
        if action is Action.ROLL_DUMMY_WINDOW_IF_EXPIRED:
            self._roll_dummy_window(config, report)
            return

        kind = _ATTEMPT_KINDS[action]
        genuine_kind = kind.genuine_kind
        if genuine_kind is not None:
            # The month is consumed whatever sampling decides below.
            self.mutator.apply(RecordLastSentMonth(genuine_kind, CalendarMonth.of(now)))

        try:
            result = await self.dispatcher.attempt(kind, config)
        except TokenGenerationError as exc:
            logger.warning("Attempt aborted: %s", exc)
            result = AttemptResult(kind, AttemptOutcome.FAILED, "token")
        except Exception:
            logger.exception("Unexpected error during %s attempt", kind.value)
            result = AttemptResult(kind, AttemptOutcome.FAILED, "unexpected")
        report.attempts.append(result)

        if kind.is_dummy:
            self._roll_dummy_window(config, report)

    def _roll_dummy_window(self, config: Configuration, report: CycleReport) -> None:
        if report.dummy_window_rolled:
            return
        window = roll_dummy_window(
            self.dependencies.clock(),
            self.dependencies.random_source,
            config.dummy_mean_delay,
        )
        self.mutator.apply(SetDummyWindow(window))
        report.dummy_window_rolled = True


__all__ = ["AnalyticsEngine", "CycleReport"]
