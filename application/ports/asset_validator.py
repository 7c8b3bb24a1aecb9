"""
Asset Validator Interface (Port).

Confirms that a catalog entry's visual asset (animated demonstration) is
actually reachable before a workout relies on it.
"""
from typing import Protocol


class AssetValidator(Protocol):
    """Abstract interface for asset reachability checks."""

    async def is_reachable(self, url: str) -> bool:
        """
        Check whether the asset at the given URL can be served.

        Args:
            url: Asset URL from the catalog entry

        Returns:
            True if the asset responded successfully, False otherwise.
            Implementations do not raise for transport errors.
        """
        ...
