# eduops/core/audit.py
"""Activity log sink.

Operations emit one record per invocation after their transaction has ended.
Delivery problems are logged and never affect the business outcome.
"""
from datetime import datetime, timezone
from typing import Any, Dict, Optional, Protocol
import json
import logging

import httpx
from pydantic import BaseModel, Field

from .config import Settings

logger = logging.getLogger(__name__)
audit_logger = logging.getLogger("eduops.audit")


class AuditRecord(BaseModel):
    actor: Optional[str] = None
    action_type: str
    module: str
    description: str
    success: bool
    metadata: Dict[str, Any] = Field(default_factory=dict)
    timestamp: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))


class AuditSink(Protocol):
    async def emit(self, record: AuditRecord) -> None: ...

    async def close(self) -> None: ...


class LoggingAuditSink:
    """Writes activity records to the ``eduops.audit`` logger."""

    async def emit(self, record: AuditRecord) -> None:
        audit_logger.info(record.model_dump_json())

    async def close(self) -> None:
        return None


class NullAuditSink:
    async def emit(self, record: AuditRecord) -> None:
        return None

    async def close(self) -> None:
        return None


class HttpAuditSink:
    """POSTs records to an append-only log store, retrying until accepted (at-least-once)."""

    def __init__(self, url: str, timeout: float = 5.0, max_attempts: int = 3, client: Optional[httpx.AsyncClient] = None):
        self.url = url
        self.max_attempts = max(1, max_attempts)
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def emit(self, record: AuditRecord) -> None:
        payload = json.loads(record.model_dump_json())
        last_error: Optional[Exception] = None
        for attempt in range(1, self.max_attempts + 1):
            try:
                response = await self._client.post(self.url, json={"action": "log", **payload})
                response.raise_for_status()
                return
            except httpx.HTTPError as e:
                last_error = e
                logger.warning(f"Audit delivery attempt {attempt}/{self.max_attempts} failed: {e}")
        raise RuntimeError(f"Audit record not delivered after {self.max_attempts} attempts") from last_error

    async def close(self) -> None:
        await self._client.aclose()


async def emit_safely(sink: AuditSink, record: AuditRecord) -> None:
    """Emit without letting sink failures reach the caller."""
    try:
        await sink.emit(record)
    except Exception as e:
        logger.error(f"Audit sink failure for {record.module}.{record.action_type}: {e}")


def build_audit_sink(settings: Settings) -> AuditSink:
    if settings.audit_sink == "http":
        if not settings.audit_url:
            raise ValueError("AUDIT_URL is required when AUDIT_SINK=http")
        return HttpAuditSink(
            settings.audit_url,
            timeout=settings.audit_timeout_seconds,
            max_attempts=settings.audit_max_attempts,
        )
    if settings.audit_sink == "none":
        return NullAuditSink()
    return LoggingAuditSink()
