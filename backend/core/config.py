"""
Tuning values for the resolution core.

The core never imports backend.settings; the HTTP layer builds a
ResolverConfig from Settings and passes it in.
"""
from dataclasses import dataclass
from typing import Any, Optional

DEFAULT_PLACEHOLDER_ASSET = "asset://placeholders/{category}"


def validate_tier_constants(
    fuzzy_accept_threshold: float,
    semantic_accept_threshold: float,
    semantic_confidence_penalty: float,
    classification_confidence: float,
    generated_confidence: float,
) -> None:
    """
    Check that confidence can only go down as the tiers fall through.

    Raises:
        ValueError: If a value is outside (0, 1] or the ordering is broken
    """
    values = {
        "fuzzy_accept_threshold": fuzzy_accept_threshold,
        "semantic_accept_threshold": semantic_accept_threshold,
        "semantic_confidence_penalty": semantic_confidence_penalty,
        "classification_confidence": classification_confidence,
        "generated_confidence": generated_confidence,
    }
    for name, value in values.items():
        if not 0.0 < value <= 1.0:
            raise ValueError(f"{name} must be in (0, 1], got {value}")

    if fuzzy_accept_threshold >= 1.0:
        raise ValueError("fuzzy_accept_threshold must be below 1.0 (exact matches)")
    if semantic_accept_threshold > fuzzy_accept_threshold:
        raise ValueError("semantic_accept_threshold must not exceed fuzzy_accept_threshold")
    if classification_confidence >= semantic_accept_threshold * semantic_confidence_penalty:
        raise ValueError(
            "classification_confidence must be below the lowest semantic confidence "
            "(semantic_accept_threshold * semantic_confidence_penalty)"
        )
    if generated_confidence >= classification_confidence:
        raise ValueError("generated_confidence must be below classification_confidence")


@dataclass(frozen=True)
class ResolverConfig:
    """Thresholds, cache sizing and batch deadlines."""
    fuzzy_accept_threshold: float = 0.80
    semantic_accept_threshold: float = 0.60
    semantic_confidence_penalty: float = 0.85
    classification_confidence: float = 0.40
    generated_confidence: float = 0.10

    cache_max_size: int = 500
    cache_ttl_seconds: Optional[float] = None

    max_concurrency: int = 8
    item_timeout_seconds: float = 1.0
    batch_timeout_seconds: float = 3.0

    validate_assets: bool = False
    placeholder_asset_url: str = DEFAULT_PLACEHOLDER_ASSET

    def __post_init__(self):
        validate_tier_constants(
            self.fuzzy_accept_threshold,
            self.semantic_accept_threshold,
            self.semantic_confidence_penalty,
            self.classification_confidence,
            self.generated_confidence,
        )
        if self.cache_max_size < 1:
            raise ValueError("cache_max_size must be at least 1")
        if self.max_concurrency < 1:
            raise ValueError("max_concurrency must be at least 1")
        if self.item_timeout_seconds <= 0 or self.batch_timeout_seconds <= 0:
            raise ValueError("timeouts must be positive")

    @property
    def lowest_semantic_confidence(self) -> float:
        return self.semantic_accept_threshold * self.semantic_confidence_penalty

    def placeholder_asset_for(self, category: Optional[str]) -> str:
        """Placeholder visual for a movement category ("generic" when unknown)."""
        return self.placeholder_asset_url.replace("{category}", category or "generic")

    @classmethod
    def from_settings(cls, settings: Any) -> "ResolverConfig":
        return cls(
            fuzzy_accept_threshold=settings.fuzzy_accept_threshold,
            semantic_accept_threshold=settings.semantic_accept_threshold,
            semantic_confidence_penalty=settings.semantic_confidence_penalty,
            classification_confidence=settings.classification_confidence,
            generated_confidence=settings.generated_confidence,
            cache_max_size=settings.cache_max_size,
            cache_ttl_seconds=settings.cache_ttl_seconds,
            max_concurrency=settings.max_concurrency,
            item_timeout_seconds=settings.item_timeout_seconds,
            batch_timeout_seconds=settings.batch_timeout_seconds,
            validate_assets=settings.validate_assets,
            placeholder_asset_url=settings.placeholder_asset_url,
        )
