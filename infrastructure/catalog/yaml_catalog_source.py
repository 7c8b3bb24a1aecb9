"""
YAML implementation of CatalogSource.

Reads the exercise asset catalog from a YAML file: either a top-level list of
exercise mappings or a mapping with an "exercises" list. The bundled seed
catalog lives in shared/dictionaries/exercise_catalog.yaml.
"""
import logging
from pathlib import Path
from typing import Any, Dict, List, Union

import yaml

from backend.core.errors import CatalogLoadError

logger = logging.getLogger(__name__)


class YamlCatalogSource:
    """Catalog rows loaded from a YAML file on every call to load()."""

    def __init__(self, path: Union[str, Path]):
        self._path = Path(path)

    @property
    def name(self) -> str:
        return f"yaml:{self._path.name}"

    @property
    def path(self) -> Path:
        return self._path

    def load(self) -> List[Dict[str, Any]]:
        """
        Parse the catalog file.

        Raises:
            CatalogLoadError: If the file is missing, unparseable, or not a list
        """
        try:
            data = yaml.safe_load(self._path.read_text(encoding="utf-8"))
        except (OSError, yaml.YAMLError) as e:
            raise CatalogLoadError(f"Cannot read catalog {self._path}: {e}", source=self.name) from e

        if isinstance(data, dict):
            data = data.get("exercises")
        if not isinstance(data, list):
            raise CatalogLoadError(
                f"Catalog {self._path} must contain a list of exercises",
                source=self.name,
            )

        logger.debug("Read %d catalog rows from %s", len(data), self._path)
        return data
