"""
FastAPI Dependency Providers for the exercise content resolver.

This module provides FastAPI dependency injection functions that return
interface types (Protocols) rather than concrete implementations. This
enables clean separation of concerns and easy testing with fakes.

Architecture:
- Settings, Supabase client and the resolver are cached per-process (lru_cache)
- The resolver owns the catalog index and result cache, so it must be shared
  by every request

Usage in routers:
    from api.deps import get_resolver
    from backend.core.resolver import ExerciseContentResolver

    @router.post("/exercises/resolve")
    async def resolve(resolver: ExerciseContentResolver = Depends(get_resolver)):
        ...

Testing:
    # Override dependencies in tests
    app.dependency_overrides[get_resolver] = lambda: ExerciseContentResolver(source=FakeCatalogSource())
"""

import logging
from functools import lru_cache
from typing import Optional

from fastapi import Depends
from supabase import Client, create_client

# Protocol types (interfaces)
from application.ports import AssetValidator, CatalogSource

# Concrete implementations
from infrastructure import HttpAssetValidator, SupabaseCatalogSource, YamlCatalogSource

from backend.core.config import ResolverConfig
from backend.core.resolver import ExerciseContentResolver
from backend.settings import Settings, get_settings as _get_settings

logger = logging.getLogger(__name__)


# =============================================================================
# Settings Provider
# =============================================================================


def get_settings() -> Settings:
    """
    Get application settings.

    Returns cached Settings instance from backend.settings.
    Use this as a FastAPI dependency for settings access.
    """
    return _get_settings()


# =============================================================================
# Supabase Client Provider
# =============================================================================


@lru_cache
def get_supabase_client() -> Optional[Client]:
    """
    Get Supabase client instance (cached).

    Returns None if credentials are not configured.
    """
    settings = _get_settings()

    if not settings.supabase_configured:
        return None

    return create_client(settings.supabase_url, settings.supabase_key)


# =============================================================================
# Catalog and Asset Providers
# =============================================================================


def get_catalog_source(settings: Settings = Depends(get_settings)) -> CatalogSource:
    """
    Get the configured CatalogSource implementation.

    Falls back to the YAML catalog when Supabase is selected but not
    configured.
    """
    if settings.catalog_source == "supabase":
        client = get_supabase_client()
        if client is not None:
            return SupabaseCatalogSource(
                client,
                table=settings.catalog_table,
                limit=settings.catalog_limit,
            )
        logger.warning(
            "CATALOG_SOURCE=supabase but Supabase credentials are missing, using %s",
            settings.catalog_path,
        )
    return YamlCatalogSource(settings.catalog_path)


def get_asset_validator(settings: Settings = Depends(get_settings)) -> Optional[AssetValidator]:
    """Get an HTTP asset validator when asset validation is enabled."""
    if not settings.validate_assets:
        return None
    return HttpAssetValidator(timeout_seconds=settings.asset_check_timeout_seconds)


# =============================================================================
# Resolver Provider
# =============================================================================


@lru_cache
def get_resolver() -> ExerciseContentResolver:
    """
    Get the process-wide ExerciseContentResolver (cached).

    The catalog is loaded lazily on first resolution. For testing, clear
    with get_resolver.cache_clear() or override the dependency.
    """
    settings = _get_settings()
    return ExerciseContentResolver(
        source=get_catalog_source(settings),
        config=ResolverConfig.from_settings(settings),
        asset_validator=get_asset_validator(settings),
    )
