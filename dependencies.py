"""
FastAPI dependency providers.

All injectable dependencies are defined here as plain functions used with
FastAPI's Depends() system. Services are built once in the app lifespan
(see app.py) and kept on ``app.state``; they hold no per-request state.
"""

from __future__ import annotations

from typing import Optional

from fastapi import Header, Request

from config import AppSettings
from errors import AuthenticationError
from infrastructure.kv.redis_store import RedisKeyValueStore
from repositories.state_repository import StateRepository
from repositories.workspace_repository import WorkspaceRepository
from services.analytics_service import AnalyticsService
from services.link_service import LinkService
from services.metadata_service import MetadataService
from services.qr_service import QrService
from services.safety_service import SafetyService


def get_settings(request: Request) -> AppSettings:
    """Return the AppSettings instance stored on app.state."""
    return request.app.state.settings


def get_store(request: Request) -> RedisKeyValueStore:
    return request.app.state.store


def get_link_service(request: Request) -> LinkService:
    return request.app.state.link_service


def get_analytics_service(request: Request) -> AnalyticsService:
    return request.app.state.analytics_service


def get_safety_service(request: Request) -> SafetyService:
    return request.app.state.safety_service


def get_metadata_service(request: Request) -> MetadataService:
    return request.app.state.metadata_service


def get_qr_service(request: Request) -> QrService:
    return request.app.state.qr_service


def get_state_repository(request: Request) -> StateRepository:
    return request.app.state.state_repository


def get_workspace_repository(request: Request) -> WorkspaceRepository:
    return request.app.state.workspace_repository


def get_owner(x_owner_id: Optional[str] = Header(default=None)) -> str:
    """Caller identity, as asserted by the transport in front of the core."""
    if not x_owner_id or not x_owner_id.strip():
        raise AuthenticationError("X-Owner-Id header is required")
    return x_owner_id.strip()


def get_optional_owner(x_owner_id: Optional[str] = Header(default=None)) -> Optional[str]:
    return x_owner_id.strip() if x_owner_id and x_owner_id.strip() else None
