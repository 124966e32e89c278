"""HTTP transport for operational-info requests."""
from __future__ import annotations

import logging
from typing import Optional

import httpx

from .models import AnalyticsRequestBody

logger = logging.getLogger(__name__)

OPERATIONAL_INFO_PATH = "/v1/analytics/operational-info"
DUMMY_HEADER = "X-Dummy-Data"


class HttpAnalyticsTransport:
    """Posts analytics bodies to the backend with :mod:`httpx`.

    The dummy flag travels out of band in a header; the JSON body of a dummy
    request has the same shape as a genuine one.
    """

    def __init__(
        self,
        base_url: str,
        *,
        timeout: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self._base_url = base_url.rstrip("/")
        self._timeout = timeout
        self._client = client

    async def send_analytics(self, body: AnalyticsRequestBody, *, is_dummy: bool) -> None:
        url = f"{self._base_url}{OPERATIONAL_INFO_PATH}"
        headers = {DUMMY_HEADER: "1" if is_dummy else "0"}
        if self._client is not None:
            response = await self._client.post(url, json=body.to_wire(), headers=headers)
        else:
            async with httpx.AsyncClient(timeout=self._timeout) as client:
                response = await client.post(url, json=body.to_wire(), headers=headers)
        response.raise_for_status()
        logger.debug("Backend answered %s", response.status_code)


__all__ = ["DUMMY_HEADER", "HttpAnalyticsTransport", "OPERATIONAL_INFO_PATH"]
