"""
FastAPI application factory.
create_app() is the single entry point for building the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional

import redis.asyncio as aioredis
import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from config import AppSettings
from errors import register_error_handlers
from infrastructure.http_client import HttpClient
from infrastructure.kv.redis_store import RedisKeyValueStore
from infrastructure.qr.qr_server import QrServerRenderer
from infrastructure.reputation.safe_browsing import SafeBrowsingProvider
from repositories.link_repository import LinkRepository
from repositories.reputation_repository import ReputationRepository
from repositories.state_repository import StateRepository
from repositories.stats_repository import StatsRepository
from repositories.workspace_repository import WorkspaceRepository
from routes.health_routes import router as health_router
from routes.link_routes import router as link_router
from routes.preference_routes import router as preference_router
from routes.redirect_routes import router as redirect_router
from routes.safety_routes import router as safety_router
from routes.stats_routes import router as stats_router
from routes.workspace_routes import router as workspace_router
from services.analytics_service import AnalyticsService
from services.link_service import LinkService
from services.metadata_service import MetadataService
from services.qr_service import QrService
from services.safety_service import SafetyService
from shared.background import drain
from shared.logging import get_logger, setup_logging

log = get_logger(__name__)


def create_app(
    settings: Optional[AppSettings] = None,
    redis_client: Optional[aioredis.Redis] = None,
) -> FastAPI:
    """Create and return a fully configured FastAPI application.

    ``redis_client`` replaces the connection built from ``REDIS_URI``; the
    caller keeps ownership of it and it is not closed on shutdown.
    """
    if settings is None:
        settings = AppSettings()

    setup_logging(settings.logging)

    # Initialise Sentry before anything else so it captures startup errors
    if settings.sentry.sentry_dsn:
        sentry_sdk.init(
            dsn=settings.sentry.sentry_dsn,
            send_default_pii=settings.sentry.sentry_send_pii,
            traces_sample_rate=settings.sentry.sentry_traces_sample_rate,
            profiles_sample_rate=settings.sentry.sentry_profile_sample_rate,
        )

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        # ── Startup ──────────────────────────────────────────────────────────
        owns_redis = redis_client is None
        redis = redis_client
        if redis is None:
            redis = aioredis.from_url(
                settings.redis.redis_uri,
                encoding="utf-8",
                decode_responses=True,
            )
        store = RedisKeyValueStore(redis)

        safe_browsing_http = HttpClient(
            "safe_browsing", timeout=settings.safety.safe_browsing_timeout_seconds
        )
        qr_http = HttpClient("qr", timeout=settings.services.qr_timeout_seconds)
        metadata_http = HttpClient(
            "metadata", timeout=settings.services.metadata_timeout_seconds
        )

        link_repo = LinkRepository(store)
        workspace_repo = WorkspaceRepository(store)

        app.state.settings = settings
        app.state.redis = redis
        app.state.store = store
        app.state.state_repository = StateRepository(store)
        app.state.workspace_repository = workspace_repo
        app.state.link_service = LinkService(
            link_repo,
            code_length=settings.links.link_code_length,
            max_attempts=settings.links.link_code_attempts,
            blocked_domains=(settings.app_host,),
        )
        app.state.analytics_service = AnalyticsService(
            StatsRepository(store),
            link_repo,
            workspace_repo,
            max_days=settings.links.max_stats_days,
        )
        app.state.safety_service = SafetyService(
            ReputationRepository(store),
            SafeBrowsingProvider(
                settings.safety.safe_browsing_api_key,
                safe_browsing_http,
                endpoint=settings.safety.safe_browsing_url,
            ),
            report_daily_limit=settings.safety.report_daily_limit,
        )
        app.state.metadata_service = MetadataService(store, metadata_http)
        app.state.qr_service = QrService(
            QrServerRenderer(qr_http, base_url=settings.services.qr_service_url)
        )

        log.info("app_started", env=settings.env, app_url=settings.app_url)

        yield

        # ── Shutdown ─────────────────────────────────────────────────────────
        await drain()
        for client in (safe_browsing_http, qr_http, metadata_http):
            await client.aclose()
        if owns_redis:
            await redis.aclose()
        log.info("app_stopped")

    app = FastAPI(
        title=settings.app_name,
        version="1.0.0",
        docs_url=settings.docs_url,
        redoc_url=None,
        lifespan=lifespan,
    )

    # all origins allowed with credentials support.
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.cors_origins,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    register_error_handlers(app)
    app.include_router(health_router)
    app.include_router(link_router)
    app.include_router(stats_router)
    app.include_router(workspace_router)
    app.include_router(safety_router)
    app.include_router(preference_router)
    # The catch-all /{code} router goes last so it never shadows the others
    app.include_router(redirect_router)

    return app
