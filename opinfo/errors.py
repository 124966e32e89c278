"""Error types raised by the analytics scheduler."""
from __future__ import annotations


class AnalyticsError(RuntimeError):
    """Base error for the operational-info analytics core."""


class TokenGenerationError(AnalyticsError):
    """Raised when a fresh device token cannot be obtained."""


class TransportError(AnalyticsError):
    """Raised by transports when an analytics request could not be delivered."""


class StateStoreError(AnalyticsError):
    """Raised when persisted scheduling state cannot be read back."""


__all__ = [
    "AnalyticsError",
    "StateStoreError",
    "TokenGenerationError",
    "TransportError",
]
