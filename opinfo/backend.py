"""FastAPI reference backend that accepts operational-info requests.

Dummy requests are acknowledged exactly like genuine ones and then dropped,
so neither the request nor the reply tells an observer which one it was.
"""

from __future__ import annotations

import logging
from threading import RLock
from typing import List, Optional

from fastapi import FastAPI, Header, status

from .models import AcceptedEnvelope, AnalyticsRequestBody
from .transport import DUMMY_HEADER, OPERATIONAL_INFO_PATH

logger = logging.getLogger(__name__)

_TRUTHY = {"1", "true", "yes"}


class OperationalInfoRegistry:
    """In-memory sink for genuine operational-info bodies."""

    def __init__(self) -> None:
        self._lock = RLock()
        self._records: List[AnalyticsRequestBody] = []
        self._dummy_count = 0

    def record(self, body: AnalyticsRequestBody) -> None:
        with self._lock:
            self._records.append(body)

    def discard_dummy(self) -> None:
        with self._lock:
            self._dummy_count += 1

    def list_records(self) -> List[AnalyticsRequestBody]:
        with self._lock:
            return list(self._records)

    @property
    def dummy_count(self) -> int:
        with self._lock:
            return self._dummy_count


def create_app(registry: Optional[OperationalInfoRegistry] = None) -> FastAPI:
    registry = registry or OperationalInfoRegistry()
    app = FastAPI(title="Operational Info Analytics", version="0.1.0")
    app.state.registry = registry

    @app.post(
        OPERATIONAL_INFO_PATH,
        response_model=AcceptedEnvelope,
        status_code=status.HTTP_202_ACCEPTED,
    )
    async def operational_info(
        body: AnalyticsRequestBody,
        dummy_data: str = Header(default="0", alias=DUMMY_HEADER),
    ) -> AcceptedEnvelope:
        if dummy_data.strip().lower() in _TRUTHY:
            registry.discard_dummy()
        else:
            registry.record(body)
            logger.debug("Recorded operational info for province %s", body.province)
        return AcceptedEnvelope()

    @app.get("/healthz")
    async def health() -> dict[str, str]:
        return {"status": "ok"}

    return app


__all__ = ["OperationalInfoRegistry", "create_app"]
