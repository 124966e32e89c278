"""Request composition and best-effort dispatch of operational-info events."""
from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

import httpx

from .capabilities import Dependencies
from .errors import TokenGenerationError, TransportError
from .models import AnalyticsRequestBody, Configuration, EnvironmentSnapshot, UserProfile
from .mutator import GenuineKind

logger = logging.getLogger(__name__)


class RequestKind(str, Enum):
    WITH_EXPOSURE = "with_exposure"
    WITHOUT_EXPOSURE = "without_exposure"
    DUMMY = "dummy"

    @property
    def is_dummy(self) -> bool:
        return self is RequestKind.DUMMY

    @property
    def genuine_kind(self) -> Optional[GenuineKind]:
        if self is RequestKind.DUMMY:
            return None
        return GenuineKind(self.value)


class AttemptOutcome(str, Enum):
    SENT = "sent"
    SUPPRESSED = "suppressed"
    FAILED = "failed"


@dataclass(frozen=True)
class AttemptResult:
    """What happened to one attempt."""

    kind: RequestKind
    outcome: AttemptOutcome
    reason: str = ""

    def as_dict(self) -> dict[str, str]:
        return {"kind": self.kind.value, "outcome": self.outcome.value, "reason": self.reason}


class RequestDispatcher:
    """Samples, composes and sends a single analytics request.

    Quota bookkeeping happens before :meth:`attempt` is called; this class
    never touches the scheduling state.
    """

    def __init__(self, dependencies: Dependencies) -> None:
        self._deps = dependencies

    async def attempt(self, kind: RequestKind, config: Configuration) -> AttemptResult:
        """Run one attempt.

        Raises :class:`TokenGenerationError` when no device token could be
        issued; every other failure is reported as ``failed``.
        """

        profile: Optional[UserProfile] = None
        if not kind.is_dummy:
            draw = self._deps.random_source.uniform()
            if draw >= self._sampling_rate(kind, config):
                logger.debug("Sampling suppressed %s request", kind.value)
                return AttemptResult(kind, AttemptOutcome.SUPPRESSED, "sampling")

            profile = self._deps.profile_provider()
            if not profile.onboarded:
                logger.debug("Onboarding incomplete, nothing sent for %s", kind.value)
                return AttemptResult(kind, AttemptOutcome.SUPPRESSED, "onboarding")

        body = await self.compose(kind, profile)
        return await self._send(kind, body)

    async def compose(self, kind: RequestKind, profile: Optional[UserProfile] = None) -> AnalyticsRequestBody:
        device_token = await self._generate_token()
        if kind.is_dummy:
            return AnalyticsRequestBody.dummy(device_token)

        profile = profile or self._deps.profile_provider()
        if not profile.province:
            raise ValueError("Genuine requests require a province on record")
        environment: EnvironmentSnapshot = self._deps.environment_provider()
        return AnalyticsRequestBody(
            province=profile.province,
            exposure_notification_status=environment.exposure_notification_status,
            push_notification_status=environment.push_notification_status,
            risky_exposure_detected=kind is RequestKind.WITH_EXPOSURE,
            device_token=device_token,
        )

    async def _generate_token(self) -> str:
        try:
            return await self._deps.token_generator.generate_token()
        except TokenGenerationError:
            raise
        except asyncio.CancelledError as exc:
            raise TokenGenerationError("Device token generation was cancelled") from exc
        except Exception as exc:
            raise TokenGenerationError(f"Device token generation failed: {exc}") from exc

    async def _send(self, kind: RequestKind, body: AnalyticsRequestBody) -> AttemptResult:
        try:
            await self._deps.transport.send_analytics(body, is_dummy=kind.is_dummy)
        except (httpx.HTTPError, TransportError) as exc:
            logger.warning("Analytics request failed: %s", exc)
            return AttemptResult(kind, AttemptOutcome.FAILED, "transport")
        except asyncio.CancelledError:
            logger.warning("Analytics request was cancelled")
            return AttemptResult(kind, AttemptOutcome.FAILED, "cancelled")
        except Exception:
            logger.exception("Unexpected error while sending analytics request")
            return AttemptResult(kind, AttemptOutcome.FAILED, "unexpected")
        logger.info("Analytics request delivered")
        return AttemptResult(kind, AttemptOutcome.SENT)

    @staticmethod
    def _sampling_rate(kind: RequestKind, config: Configuration) -> float:
        if kind is RequestKind.WITH_EXPOSURE:
            return config.sampling_rate_with_exposure
        return config.sampling_rate_without_exposure


__all__ = ["AttemptOutcome", "AttemptResult", "RequestDispatcher", "RequestKind"]
