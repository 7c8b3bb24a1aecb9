"""
Catalog Source Interface (Port).

Defines where the exercise asset catalog comes from. The catalog index only
knows this protocol; implementations read a bundled YAML file or the
Supabase exercises table.
"""
from typing import Any, Dict, List, Protocol


class CatalogSource(Protocol):
    """Abstract interface for loading raw exercise catalog rows."""

    @property
    def name(self) -> str:
        """Short human-readable description used in logs."""
        ...

    def load(self) -> List[Dict[str, Any]]:
        """
        Load every catalog row.

        Each row is a dictionary with at least a "name" key and optionally
        "id", "aliases", "primary_muscles", "equipment", "gif_url",
        "instructions" and "movement_pattern".

        Returns:
            List of raw exercise dictionaries

        Raises:
            CatalogLoadError: If the source cannot be reached or parsed
        """
        ...
