"""
Interfaces (Ports) for the exercise content resolver.

This package defines abstract interfaces that decouple the resolution core
from infrastructure (catalog storage, asset hosting). Implementations are
provided in the infrastructure layer.

Architecture follows the Ports & Adapters (Hexagonal) pattern:
- Ports: Abstract interfaces defined here (what the core needs)
- Adapters: Concrete implementations in infrastructure/ (how it's provided)

Usage:
    from application.ports import CatalogSource

    index = CatalogIndex(source=my_source)
"""

# Exercise asset catalog
from application.ports.catalog_source import CatalogSource

# Asset reachability
from application.ports.asset_validator import AssetValidator

__all__ = [
    "CatalogSource",
    "AssetValidator",
]
