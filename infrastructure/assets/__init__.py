"""Asset reachability checks (application.ports.AssetValidator implementations)."""
from infrastructure.assets.http_asset_validator import HttpAssetValidator

__all__ = ["HttpAssetValidator"]
