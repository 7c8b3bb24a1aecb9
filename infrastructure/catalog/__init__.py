"""
Exercise catalog sources.

Concrete implementations of application.ports.CatalogSource:
- YamlCatalogSource: bundled or mounted YAML file
- SupabaseCatalogSource: canonical exercises table
"""
from infrastructure.catalog.yaml_catalog_source import YamlCatalogSource
from infrastructure.catalog.supabase_catalog_source import SupabaseCatalogSource

__all__ = [
    "YamlCatalogSource",
    "SupabaseCatalogSource",
]
