"""
API package for the exercise content resolver.

This package contains:
- deps.py: FastAPI dependency providers for DI
- routers/: API route handlers
- schemas/: Request/response models
"""

# Re-export dependency providers for convenient access
from api.deps import (
    get_settings,
    get_supabase_client,
    get_catalog_source,
    get_asset_validator,
    get_resolver,
)

__all__ = [
    # Settings
    "get_settings",
    # Database
    "get_supabase_client",
    # Resolver
    "get_catalog_source",
    "get_asset_validator",
    "get_resolver",
]
