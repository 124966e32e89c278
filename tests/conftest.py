from __future__ import annotations

import sys
from collections import deque
from datetime import datetime, timezone
from pathlib import Path
from typing import Iterable, List, Optional, Tuple

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from opinfo.capabilities import Dependencies  # noqa: E402
from opinfo.errors import TokenGenerationError  # noqa: E402
from opinfo.models import AnalyticsRequestBody, EnvironmentSnapshot, UserProfile  # noqa: E402


def utc(*args: int) -> datetime:
    return datetime(*args, tzinfo=timezone.utc)


class FixedClock:
    def __init__(self, now: datetime) -> None:
        self.now = now

    def __call__(self) -> datetime:
        return self.now


class ScriptedRandom:
    """Replays scripted draws, then falls back to deterministic defaults."""

    def __init__(
        self,
        uniforms: Iterable[float] = (),
        exponentials: Iterable[float] = (),
        *,
        default_uniform: float = 0.0,
        default_exponential: Optional[float] = None,
    ) -> None:
        self._uniforms = deque(uniforms)
        self._exponentials = deque(exponentials)
        self._default_uniform = default_uniform
        self._default_exponential = default_exponential
        self.uniform_calls = 0
        self.exponential_calls = 0

    def uniform(self) -> float:
        self.uniform_calls += 1
        return self._uniforms.popleft() if self._uniforms else self._default_uniform

    def uniform_in(self, low: float, high: float) -> float:
        return low

    def exponential(self, mean: float) -> float:
        self.exponential_calls += 1
        if self._exponentials:
            return self._exponentials.popleft()
        if self._default_exponential is not None:
            return self._default_exponential
        return mean


class RecordingTransport:
    def __init__(self, error: Optional[BaseException] = None) -> None:
        self.error = error
        self.sent: List[Tuple[AnalyticsRequestBody, bool]] = []

    async def send_analytics(self, body: AnalyticsRequestBody, *, is_dummy: bool) -> None:
        if self.error is not None:
            raise self.error
        self.sent.append((body, is_dummy))


class CountingTokenGenerator:
    def __init__(self, *, fail: bool = False) -> None:
        self.fail = fail
        self.calls = 0

    async def generate_token(self) -> str:
        self.calls += 1
        if self.fail:
            raise TokenGenerationError("attestation unavailable")
        return f"token-{self.calls:04d}"


@pytest.fixture
def clock() -> FixedClock:
    return FixedClock(utc(2021, 2, 1))


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def tokens() -> CountingTokenGenerator:
    return CountingTokenGenerator()


@pytest.fixture
def rng() -> ScriptedRandom:
    return ScriptedRandom()


@pytest.fixture
def profile() -> UserProfile:
    return UserProfile(province="RM")


@pytest.fixture
def dependencies(clock, transport, tokens, rng, profile) -> Dependencies:
    return Dependencies(
        transport=transport,
        token_generator=tokens,
        clock=clock,
        random_source=rng,
        profile_provider=lambda: profile,
        environment_provider=EnvironmentSnapshot,
    )
