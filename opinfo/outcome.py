"""Exposure-detection outcomes handed to the scheduler once per cycle."""
from __future__ import annotations

from dataclasses import dataclass, field
from typing import ClassVar, Mapping


@dataclass(frozen=True)
class DetectionOutcome:
    """Base class for the outcome of one exposure-detection run."""

    kind: ClassVar[str] = "unknown"

    @classmethod
    def from_payload(cls, payload: Mapping[str, object]) -> "DetectionOutcome":
        """Build a variant from a loose mapping such as ``{"kind": "full_detection"}``."""

        kind = str(payload.get("kind") or payload.get("outcome") or "").strip().lower().replace("-", "_")
        summary = payload.get("summary")
        summary_mapping = dict(summary) if isinstance(summary, Mapping) else {}
        if kind == FullDetection.kind:
            return FullDetection(summary=summary_mapping)
        if kind == PartialDetection.kind:
            return PartialDetection(summary=summary_mapping)
        if kind == DetectionError.kind:
            return DetectionError(reason=str(payload.get("reason") or "unspecified"))
        return NoDetection()


@dataclass(frozen=True)
class FullDetection(DetectionOutcome):
    """A detection that downloaded exposure details and found a risky contact."""

    kind: ClassVar[str] = "full_detection"
    summary: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class PartialDetection(DetectionOutcome):
    """A detection that stopped at the summary stage without a risky contact."""

    kind: ClassVar[str] = "partial_detection"
    summary: Mapping[str, object] = field(default_factory=dict)


@dataclass(frozen=True)
class NoDetection(DetectionOutcome):
    kind: ClassVar[str] = "no_detection"


@dataclass(frozen=True)
class DetectionError(DetectionOutcome):
    kind: ClassVar[str] = "error"
    reason: str = "unspecified"


__all__ = [
    "DetectionError",
    "DetectionOutcome",
    "FullDetection",
    "NoDetection",
    "PartialDetection",
]
