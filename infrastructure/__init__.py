"""
Infrastructure Layer for the exercise content resolver.

This package contains concrete implementations of the application ports:
- catalog/: exercise catalog sources (YAML file, Supabase table)
- assets/: asset reachability checks over HTTP
"""

from infrastructure.catalog import YamlCatalogSource, SupabaseCatalogSource
from infrastructure.assets import HttpAssetValidator

__all__ = [
    "YamlCatalogSource",
    "SupabaseCatalogSource",
    "HttpAssetValidator",
]
