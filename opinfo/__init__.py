"""Operational-info analytics scheduler exports."""

from .capabilities import (
    Dependencies,
    RandomDeviceTokenGenerator,
    StandardRandomSource,
    system_clock,
)
from .dates import CalendarDay, CalendarMonth
from .decision import Action, decide
from .dispatcher import AttemptOutcome, AttemptResult, RequestDispatcher, RequestKind
from .engine import AnalyticsEngine, CycleReport
from .errors import AnalyticsError, StateStoreError, TokenGenerationError, TransportError
from .models import (
    AnalyticsRequestBody,
    AuthorizationStatus,
    Configuration,
    EnvironmentSnapshot,
    UserProfile,
)
from .mutator import StateMutator
from .outcome import DetectionError, DetectionOutcome, FullDetection, NoDetection, PartialDetection
from .state import MonthlyOpportunityWindow, OpportunityWindow, SchedulingState
from .store import EncryptedStateStore, InMemoryStateStore
from .transport import HttpAnalyticsTransport
from .windows import roll_dummy_window, roll_without_exposure_window

__all__ = [
    "Action",
    "AnalyticsEngine",
    "AnalyticsError",
    "AnalyticsRequestBody",
    "AttemptOutcome",
    "AttemptResult",
    "AuthorizationStatus",
    "CalendarDay",
    "CalendarMonth",
    "Configuration",
    "CycleReport",
    "Dependencies",
    "DetectionError",
    "DetectionOutcome",
    "EncryptedStateStore",
    "EnvironmentSnapshot",
    "FullDetection",
    "HttpAnalyticsTransport",
    "InMemoryStateStore",
    "MonthlyOpportunityWindow",
    "NoDetection",
    "OpportunityWindow",
    "PartialDetection",
    "RandomDeviceTokenGenerator",
    "RequestDispatcher",
    "RequestKind",
    "SchedulingState",
    "StandardRandomSource",
    "StateMutator",
    "StateStoreError",
    "TokenGenerationError",
    "TransportError",
    "UserProfile",
    "decide",
    "roll_dummy_window",
    "roll_without_exposure_window",
    "system_clock",
]
