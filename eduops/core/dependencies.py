# eduops/core/dependencies.py
"""FastAPI dependencies that hand out per-request collaborators."""
from typing import Optional

from fastapi import Header, Request

from .audit import AuditSink
from .config import Settings


def get_app_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_audit_sink(request: Request) -> AuditSink:
    return request.app.state.audit_sink


async def get_actor(x_actor_id: Optional[str] = Header(default=None)) -> Optional[str]:
    """Identity of the caller as forwarded by the client adapter"""
    return x_actor_id
