"""Injected capabilities: clock, randomness, device tokens and the analytics transport."""
from __future__ import annotations

import base64
import os
import random
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Callable, Optional, Protocol

from .errors import TokenGenerationError
from .models import AnalyticsRequestBody, EnvironmentSnapshot, UserProfile


class Clock(Protocol):
    def __call__(self) -> datetime:
        ...


class RandomSource(Protocol):
    """Statistically correct draws; unlinkability matters, secrecy does not."""

    def uniform(self) -> float:
        """Return a float in ``[0, 1)``."""
        ...

    def uniform_in(self, low: float, high: float) -> float:
        """Return a float in ``[low, high)``."""
        ...

    def exponential(self, mean: float) -> float:
        """Return a draw from an exponential law with the given mean."""
        ...


class TokenGenerator(Protocol):
    async def generate_token(self) -> str:
        ...


class AnalyticsTransport(Protocol):
    async def send_analytics(self, body: AnalyticsRequestBody, *, is_dummy: bool) -> None:
        ...


ProfileProvider = Callable[[], UserProfile]
EnvironmentProvider = Callable[[], EnvironmentSnapshot]


def system_clock() -> datetime:
    return datetime.now(tz=timezone.utc)


class StandardRandomSource:
    """:class:`RandomSource` backed by :class:`random.Random`."""

    def __init__(self, generator: Optional[random.Random] = None) -> None:
        self._generator = generator or random.Random()

    def uniform(self) -> float:
        return self._generator.random()

    def uniform_in(self, low: float, high: float) -> float:
        if high <= low:
            return low
        value = self._generator.uniform(low, high)
        # random.uniform may return the upper bound due to rounding
        return value if value < high else low

    def exponential(self, mean: float) -> float:
        if mean <= 0:
            raise ValueError("exponential mean must be positive")
        return self._generator.expovariate(1.0 / mean)


class RandomDeviceTokenGenerator:
    """Issues fresh opaque device tokens of a fixed length.

    Stands in for a platform attestation service; every call returns a new
    token so that no two requests can be linked through it.
    """

    def __init__(self, *, token_bytes: int = 32) -> None:
        if token_bytes <= 0:
            raise ValueError("token_bytes must be positive")
        self._token_bytes = token_bytes

    async def generate_token(self) -> str:
        try:
            raw = os.urandom(self._token_bytes)
        except NotImplementedError as exc:
            raise TokenGenerationError("No entropy source available for device tokens") from exc
        return base64.urlsafe_b64encode(raw).decode("ascii")


@dataclass
class Dependencies:
    """Bundle of capabilities threaded through each cycle."""

    transport: AnalyticsTransport
    token_generator: TokenGenerator = field(default_factory=RandomDeviceTokenGenerator)
    clock: Clock = system_clock
    random_source: RandomSource = field(default_factory=StandardRandomSource)
    profile_provider: ProfileProvider = UserProfile
    environment_provider: EnvironmentProvider = EnvironmentSnapshot


__all__ = [
    "AnalyticsTransport",
    "Clock",
    "Dependencies",
    "EnvironmentProvider",
    "ProfileProvider",
    "RandomDeviceTokenGenerator",
    "RandomSource",
    "StandardRandomSource",
    "TokenGenerator",
    "system_clock",
]
