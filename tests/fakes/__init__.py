"""
Fake implementations of the application ports for testing.

This package provides in-memory fakes for fast, isolated testing. No
database, network or bundled catalog file required.

Usage:
    from tests.fakes import FakeCatalogSource

    source = FakeCatalogSource()
    resolver = ExerciseContentResolver(source=source)
"""

from tests.fakes.catalog_source import (
    FakeAssetValidator,
    FakeCatalogSource,
    FailingCatalogSource,
    default_catalog_rows,
)

__all__ = [
    "FakeAssetValidator",
    "FakeCatalogSource",
    "FailingCatalogSource",
    "default_catalog_rows",
]
