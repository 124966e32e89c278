from __future__ import annotations

import asyncio

import httpx
import pytest

from conftest import CountingTokenGenerator, RecordingTransport, ScriptedRandom
from opinfo.capabilities import Dependencies
from opinfo.dispatcher import AttemptOutcome, RequestDispatcher, RequestKind
from opinfo.errors import TokenGenerationError, TransportError
from opinfo.models import (
    DUMMY_PROVINCE,
    AuthorizationStatus,
    Configuration,
    EnvironmentSnapshot,
    UserProfile,
)

CONFIG = Configuration(sampling_rate_with_exposure=0.2, sampling_rate_without_exposure=0.4)


def build_dispatcher(
    *,
    uniforms=(),
    transport=None,
    tokens=None,
    province="MI",
) -> tuple[RequestDispatcher, RecordingTransport, CountingTokenGenerator]:
    transport = transport or RecordingTransport()
    tokens = tokens or CountingTokenGenerator()
    environment = EnvironmentSnapshot(
        exposure_notification_status=AuthorizationStatus.AUTHORIZED,
        push_notification_status=AuthorizationStatus.DENIED,
    )
    dependencies = Dependencies(
        transport=transport,
        token_generator=tokens,
        random_source=ScriptedRandom(uniforms),
        profile_provider=lambda: UserProfile(province=province),
        environment_provider=lambda: environment,
    )
    return RequestDispatcher(dependencies), transport, tokens


def test_with_exposure_request_below_sampling_rate_is_sent():
    dispatcher, transport, _ = build_dispatcher(uniforms=[0.1])

    result = asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))

    assert result.outcome is AttemptOutcome.SENT
    body, is_dummy = transport.sent[0]
    assert is_dummy is False
    assert body.to_wire() == {
        "province": "MI",
        "exposureNotificationStatus": "authorized",
        "pushNotificationStatus": "denied",
        "riskyExposureDetected": True,
        "deviceToken": "token-0001",
    }


def test_sampling_draw_at_rate_is_suppressed():
    dispatcher, transport, tokens = build_dispatcher(uniforms=[0.2])

    result = asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))

    assert result.outcome is AttemptOutcome.SUPPRESSED
    assert result.reason == "sampling"
    assert transport.sent == []
    assert tokens.calls == 0


def test_without_exposure_uses_its_own_sampling_rate():
    dispatcher, transport, _ = build_dispatcher(uniforms=[0.3])

    result = asyncio.run(dispatcher.attempt(RequestKind.WITHOUT_EXPOSURE, CONFIG))

    assert result.outcome is AttemptOutcome.SENT
    assert transport.sent[0][0].risky_exposure_detected is False


def test_genuine_request_without_province_is_suppressed():
    dispatcher, transport, tokens = build_dispatcher(uniforms=[0.0], province=None)

    result = asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))

    assert result.outcome is AttemptOutcome.SUPPRESSED
    assert result.reason == "onboarding"
    assert transport.sent == []
    assert tokens.calls == 0


def test_dummy_request_skips_sampling_and_matches_genuine_shape():
    dispatcher, transport, tokens = build_dispatcher(uniforms=[0.99, 0.0])

    dummy = asyncio.run(dispatcher.attempt(RequestKind.DUMMY, CONFIG))
    genuine = asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))

    assert dummy.outcome is AttemptOutcome.SENT
    assert genuine.outcome is AttemptOutcome.SUPPRESSED
    dummy_body, is_dummy = transport.sent[0]
    assert is_dummy is True
    assert dummy_body.province == DUMMY_PROVINCE
    assert dummy_body.device_token == "token-0001"
    assert tokens.calls == 1


def test_dummy_body_keys_match_genuine_body_keys():
    dispatcher, transport, _ = build_dispatcher(uniforms=[0.0])

    asyncio.run(dispatcher.attempt(RequestKind.DUMMY, CONFIG))
    asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))

    dummy_wire = transport.sent[0][0].to_wire()
    genuine_wire = transport.sent[1][0].to_wire()
    assert dummy_wire.keys() == genuine_wire.keys()
    assert {key: type(value) for key, value in dummy_wire.items()} == {
        key: type(value) for key, value in genuine_wire.items()
    }
    assert len(dummy_wire["province"]) == len(genuine_wire["province"])


def test_dummy_is_sent_before_onboarding():
    dispatcher, transport, _ = build_dispatcher(province=None)

    result = asyncio.run(dispatcher.attempt(RequestKind.DUMMY, CONFIG))

    assert result.outcome is AttemptOutcome.SENT
    assert transport.sent[0][1] is True


@pytest.mark.parametrize(
    "error, reason",
    [
        (TransportError("boom"), "transport"),
        (httpx.ConnectTimeout("timed out"), "transport"),
        (asyncio.CancelledError(), "cancelled"),
        (RuntimeError("unexpected"), "unexpected"),
    ],
)
def test_transport_failures_are_swallowed(error, reason):
    dispatcher, _, _ = build_dispatcher(uniforms=[0.0], transport=RecordingTransport(error=error))

    result = asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))

    assert result.outcome is AttemptOutcome.FAILED
    assert result.reason == reason


def test_token_failure_propagates():
    dispatcher, transport, _ = build_dispatcher(
        uniforms=[0.0],
        tokens=CountingTokenGenerator(fail=True),
    )

    with pytest.raises(TokenGenerationError):
        asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))
    assert transport.sent == []


def test_unexpected_token_errors_are_wrapped():
    class BrokenGenerator:
        async def generate_token(self) -> str:
            raise OSError("device check offline")

    dispatcher, _, _ = build_dispatcher(tokens=BrokenGenerator())

    with pytest.raises(TokenGenerationError, match="device check offline"):
        asyncio.run(dispatcher.attempt(RequestKind.DUMMY, CONFIG))


def test_cancelled_token_generation_becomes_token_error():
    class CancelledGenerator:
        async def generate_token(self) -> str:
            raise asyncio.CancelledError()

    dispatcher, transport, _ = build_dispatcher(uniforms=[0.0], tokens=CancelledGenerator())

    with pytest.raises(TokenGenerationError, match="cancelled"):
        asyncio.run(dispatcher.attempt(RequestKind.WITH_EXPOSURE, CONFIG))
    assert transport.sent == []
