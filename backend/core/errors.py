"""
Exceptions raised inside the exercise content resolver.

None of these cross the resolver facade: the catalog index recovers from
CatalogLoadError by publishing an empty catalog, and malformed catalog rows
are skipped. Callers only ever see MatchResult data.
"""


class ResolverError(Exception):
    """Base class for resolver errors."""
    pass


class CatalogLoadError(ResolverError):
    """The external catalog source could not be loaded or parsed."""

    def __init__(self, message: str, source: str = ""):
        super().__init__(message)
        self.source = source


class InvalidCatalogEntryError(ResolverError):
    """A single catalog row is missing required fields."""
    pass
