"""
FastAPI application factory for the exercise content resolver.

create_app() wires settings, logging, Sentry, CORS and the routers. The
resolver itself is created lazily by api.deps.get_resolver on the first
request, so building an app never touches the catalog. On shutdown the
resolver, if one was created, releases its HTTP connections.

Usage:
    from backend.main import create_app
    from backend.settings import Settings

    app = create_app()  # settings from the environment
    test_app = create_app(settings=Settings(environment="test", _env_file=None))
"""

import logging
from contextlib import asynccontextmanager
from typing import AsyncIterator, List, Optional

import sentry_sdk
from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from backend.settings import Settings, get_settings

logger = logging.getLogger(__name__)

LOCAL_ORIGINS = [
    "http://localhost:3000",
    "http://localhost:8081",
]


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """
    Build a configured FastAPI application.

    Args:
        settings: Settings to use; get_settings() when omitted.

    Returns:
        FastAPI application with every router mounted.
    """
    if settings is None:
        settings = get_settings()

    _configure_logging(settings)
    _init_sentry(settings)

    app = FastAPI(
        title="Exercise Content Resolver",
        description="Resolves free-text exercise names to demonstration visuals",
        version="1.0.0",
        lifespan=lifespan,
    )

    _configure_cors(app, settings)
    _include_routers(app)
    _log_resolver_config(settings)

    return app


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Close the shared resolver's resources on shutdown."""
    from api.deps import get_resolver

    try:
        yield
    finally:
        if get_resolver.cache_info().currsize:
            await get_resolver().aclose()
            logger.info("Resolver resources released")


def _configure_logging(settings: Settings) -> None:
    """Set the root log level; handlers are left to the process runner."""
    logging.getLogger().setLevel(settings.log_level)
    if not logging.getLogger().handlers:
        logging.basicConfig(
            level=settings.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )


def _init_sentry(settings: Settings) -> None:
    """Initialize Sentry SDK if DSN is configured."""
    if not settings.sentry_dsn:
        return
    sentry_sdk.init(
        dsn=settings.sentry_dsn,
        environment=settings.environment,
        traces_sample_rate=0.1,
        profiles_sample_rate=0.1,
    )
    logger.info("Sentry initialized for exercise-content-resolver")


def _allowed_origins(settings: Optional[Settings]) -> List[str]:
    origins = list(LOCAL_ORIGINS)
    if settings is not None:
        origins.extend(settings.cors_origin_list)
    return origins


def _configure_cors(app: FastAPI, settings: Optional[Settings] = None) -> None:
    """Allow the local web and mobile dev servers plus configured origins."""
    app.add_middleware(
        CORSMiddleware,
        allow_origins=_allowed_origins(settings),
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )


def _include_routers(app: FastAPI) -> None:
    from api.routers import catalog_router, health_router, resolution_router

    app.include_router(health_router)
    app.include_router(resolution_router)
    app.include_router(catalog_router)


def _log_resolver_config(settings: Settings) -> None:
    """Log the resolver configuration at startup."""
    logger.info(
        "Catalog source: %s (%s)",
        settings.catalog_source,
        settings.catalog_table if settings.catalog_source == "supabase" else settings.catalog_path,
    )
    logger.info(
        "Tier thresholds: fuzzy=%.2f semantic=%.2f x%.2f classification=%.2f generated=%.2f",
        settings.fuzzy_accept_threshold,
        settings.semantic_accept_threshold,
        settings.semantic_confidence_penalty,
        settings.classification_confidence,
        settings.generated_confidence,
    )
    if settings.validate_assets:
        logger.info("Asset validation enabled (timeout %.1fs)", settings.asset_check_timeout_seconds)


# uvicorn backend.main:app --reload
app = create_app()
