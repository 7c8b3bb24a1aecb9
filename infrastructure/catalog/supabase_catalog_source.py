"""
Supabase implementation of CatalogSource.

Reads the canonical exercises table. Transient failures (timeouts, dropped
connections, 5xx) are retried with exponential backoff before the load is
reported as a CatalogLoadError.
"""
import logging
from typing import Any, Dict, List

from supabase import Client
from tenacity import (
    RetryError,
    before_sleep_log,
    retry,
    retry_if_exception,
    stop_after_attempt,
    wait_exponential,
)

from backend.core.errors import CatalogLoadError

logger = logging.getLogger(__name__)

DEFAULT_MAX_ATTEMPTS = 3

CATALOG_COLUMNS = "id, name, aliases, primary_muscles, equipment, movement_pattern, gif_url, instructions"

_TRANSIENT_MARKERS = ("timeout", "timed out", "connection", "temporarily", "502", "503", "504")


def is_transient_error(exception: BaseException) -> bool:
    """Network-level failures worth retrying; auth and query errors are not."""
    text = f"{type(exception).__name__} {exception}".lower()
    return any(marker in text for marker in _TRANSIENT_MARKERS)


class SupabaseCatalogSource:
    """Catalog rows read from a Supabase table."""

    def __init__(
        self,
        client: Client,
        table: str = "exercises",
        limit: int = 2000,
        max_attempts: int = DEFAULT_MAX_ATTEMPTS,
        min_wait_seconds: float = 0.5,
        max_wait_seconds: float = 4.0,
    ):
        """
        Args:
            client: Supabase client instance (injected, not global)
            table: Table holding one row per exercise
            limit: Maximum number of rows to read
            max_attempts: Attempts per load, including the first
        """
        self._client = client
        self._table = table
        self._limit = limit
        self._fetch_with_retry = retry(
            retry=retry_if_exception(is_transient_error),
            stop=stop_after_attempt(max_attempts),
            wait=wait_exponential(multiplier=min_wait_seconds, min=min_wait_seconds, max=max_wait_seconds),
            before_sleep=before_sleep_log(logger, logging.WARNING),
        )(self._fetch)

    @property
    def name(self) -> str:
        return f"supabase:{self._table}"

    def _fetch(self) -> List[Dict[str, Any]]:
        result = (
            self._client.table(self._table)
            .select(CATALOG_COLUMNS)
            .limit(self._limit)
            .execute()
        )
        return result.data or []

    def load(self) -> List[Dict[str, Any]]:
        """
        Read every exercise row.

        Raises:
            CatalogLoadError: If the table cannot be read after retries
        """
        try:
            rows = self._fetch_with_retry()
        except RetryError as e:
            raise CatalogLoadError(
                f"Supabase table {self._table} unavailable after retries: {e.last_attempt.exception()}",
                source=self.name,
            ) from e
        except Exception as e:
            raise CatalogLoadError(
                f"Failed to read Supabase table {self._table}: {e}", source=self.name
            ) from e

        logger.info("Read %d catalog rows from Supabase table %s", len(rows), self._table)
        return rows
