from __future__ import annotations

import asyncio

import httpx
import pytest

from opinfo.backend import OperationalInfoRegistry, create_app
from opinfo.models import AnalyticsRequestBody, AuthorizationStatus
from opinfo.transport import DUMMY_HEADER, OPERATIONAL_INFO_PATH, HttpAnalyticsTransport


def genuine_body(token: str = "tok-genuine") -> AnalyticsRequestBody:
    return AnalyticsRequestBody(
        province="NA",
        exposure_notification_status=AuthorizationStatus.AUTHORIZED,
        push_notification_status=AuthorizationStatus.NOT_DETERMINED,
        risky_exposure_detected=True,
        device_token=token,
    )


def test_backend_records_genuine_and_discards_dummy_requests():
    registry = OperationalInfoRegistry()
    app = create_app(registry)

    async def exercise():
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            transport = HttpAnalyticsTransport("http://testserver/", client=client)
            await transport.send_analytics(genuine_body(), is_dummy=False)
            await transport.send_analytics(AnalyticsRequestBody.dummy("tok-dummy"), is_dummy=True)

    asyncio.run(exercise())

    records = registry.list_records()
    assert [record.device_token for record in records] == ["tok-genuine"]
    assert records[0].risky_exposure_detected is True
    assert registry.dummy_count == 1


def test_backend_replies_identically_to_dummy_and_genuine():
    app = create_app()

    async def exercise():
        async with httpx.AsyncClient(transport=httpx.ASGITransport(app=app), base_url="http://testserver") as client:
            genuine = await client.post(
                OPERATIONAL_INFO_PATH, json=genuine_body().to_wire(), headers={DUMMY_HEADER: "0"}
            )
            dummy = await client.post(
                OPERATIONAL_INFO_PATH,
                json=AnalyticsRequestBody.dummy("tok").to_wire(),
                headers={DUMMY_HEADER: "1"},
            )
            malformed = await client.post(OPERATIONAL_INFO_PATH, json={"province": "NA"})
            health = await client.get("/healthz")
        return genuine, dummy, malformed, health

    genuine, dummy, malformed, health = asyncio.run(exercise())

    assert genuine.status_code == dummy.status_code == 202
    assert genuine.json() == dummy.json() == {"status": "accepted"}
    assert malformed.status_code == 422
    assert health.json() == {"status": "ok"}


def test_transport_raises_on_server_error():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(503)

    async def exercise():
        async with httpx.AsyncClient(transport=httpx.MockTransport(handler)) as client:
            transport = HttpAnalyticsTransport("https://analytics.example", client=client)
            await transport.send_analytics(genuine_body(), is_dummy=True)

    with pytest.raises(httpx.HTTPStatusError):
        asyncio.run(exercise())

    request = seen[0]
    assert request.url.path == OPERATIONAL_INFO_PATH
    assert request.headers[DUMMY_HEADER] == "1"
