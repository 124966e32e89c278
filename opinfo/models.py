"""Pydantic models shared by the scheduler, its transport and the reference backend."""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

DUMMY_PROVINCE = "XX"


class AuthorizationStatus(str, Enum):
    """Authorization status of a system permission at request time."""

    AUTHORIZED = "authorized"
    DENIED = "denied"
    NOT_DETERMINED = "not_determined"
    RESTRICTED = "restricted"
    UNKNOWN = "unknown"


class UserProfile(BaseModel):
    """The subset of the user profile read when composing a request."""

    province: Optional[str] = Field(default=None, description="Province code chosen during onboarding")

    @property
    def onboarded(self) -> bool:
        return bool(self.province)


class EnvironmentSnapshot(BaseModel):
    """Device permission statuses observed when composing a request."""

    exposure_notification_status: AuthorizationStatus = AuthorizationStatus.UNKNOWN
    push_notification_status: AuthorizationStatus = AuthorizationStatus.UNKNOWN


class Configuration(BaseModel):
    """Per-cycle, read-only scheduling configuration."""

    sampling_rate_with_exposure: float = Field(default=0.2, ge=0.0, lt=1.0)
    sampling_rate_without_exposure: float = Field(default=0.2, ge=0.0, lt=1.0)
    dummy_mean_delay: float = Field(default=30 * 86_400.0, gt=0.0, description="Mean dummy delay in seconds")

    model_config = ConfigDict(frozen=True)


class AnalyticsRequestBody(BaseModel):
    """Wire body of an operational-info request.

    Genuine and dummy bodies share every key and value shape.
    """

    province: str
    exposure_notification_status: AuthorizationStatus = Field(alias="exposureNotificationStatus")
    push_notification_status: AuthorizationStatus = Field(alias="pushNotificationStatus")
    risky_exposure_detected: bool = Field(alias="riskyExposureDetected")
    device_token: str = Field(alias="deviceToken", min_length=1)

    model_config = ConfigDict(populate_by_name=True, frozen=True)

    @classmethod
    def dummy(cls, device_token: str) -> "AnalyticsRequestBody":
        return cls(
            province=DUMMY_PROVINCE,
            exposure_notification_status=AuthorizationStatus.AUTHORIZED,
            push_notification_status=AuthorizationStatus.AUTHORIZED,
            risky_exposure_detected=False,
            device_token=device_token,
        )

    def to_wire(self) -> dict:
        return self.model_dump(mode="json", by_alias=True)


class AcceptedEnvelope(BaseModel):
    """Response returned by the reference backend for every accepted request."""

    status: str = "accepted"


__all__ = [
    "AcceptedEnvelope",
    "AnalyticsRequestBody",
    "AuthorizationStatus",
    "Configuration",
    "DUMMY_PROVINCE",
    "EnvironmentSnapshot",
    "UserProfile",
]
