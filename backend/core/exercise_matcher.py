"""
Tiered matching of free-text exercise names to catalog visuals.

Names come from an upstream workout generator and are often phrased in ways
the catalog does not know. The matcher tries five tiers, strictly in order,
against a single catalog snapshot:

1. Exact: normalized name or alias lookup (confidence: 1.0)
2. Fuzzy: rapidfuzz token_sort_ratio over every name and alias
3. Semantic: same scoring, restricted to entries sharing a hinted muscle
   group or equipment tag, with a confidence penalty
4. Classification: keyword heuristics pick a movement category and its
   representative catalog entry
5. Generated: a placeholder built from the name, hints and category

match() is total: it never raises and always returns a MatchResult.
"""
import logging
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Tuple

from rapidfuzz import fuzz

from backend.core.catalog import CatalogEntry, CatalogIndex, CatalogSnapshot, Candidate
from backend.core.classification import MovementCategory, classify, get_category
from backend.core.config import ResolverConfig
from backend.core.normalize import (
    NormalizedQuery,
    expand_muscle_group,
    normalize,
    normalize_tag,
)

logger = logging.getLogger(__name__)

SUGGEST_MIN_SCORE = 0.3

GENERIC_INSTRUCTIONS = (
    "Start in a stable position with good posture.",
    "Perform the movement with control through a comfortable range of motion.",
    "Breathe steadily; exhale during the effort.",
    "Return to the starting position and repeat for the prescribed reps or time.",
)

GENERIC_SAFETY_TIPS = (
    "Warm up before starting.",
    "Stop if you feel sharp pain.",
    "Use a weight or pace you can control with good form.",
)


class MatchTier(str, Enum):
    """Which tier produced a result, best first."""
    EXACT = "exact"
    FUZZY = "fuzzy"
    SEMANTIC = "semantic"
    CLASSIFICATION = "classification"
    GENERATED = "generated"


@dataclass(frozen=True)
class MatchHints:
    """Optional context that travels with a name (muscleGroup, equipment)."""
    muscle_group: Optional[str] = None
    equipment: Optional[str] = None

    @classmethod
    def coerce(cls, value: Any) -> "MatchHints":
        """Accept None, MatchHints, or a request-style dict."""
        if isinstance(value, MatchHints):
            return value
        if isinstance(value, dict):
            muscle = value.get("muscle_group") or value.get("muscleGroup")
            equipment = value.get("equipment")
            return cls(
                muscle_group=muscle if isinstance(muscle, str) else None,
                equipment=equipment if isinstance(equipment, str) else None,
            )
        return NO_HINTS

    @property
    def is_empty(self) -> bool:
        return not (self.muscle_tags or self.equipment_tags)

    @property
    def muscle_tags(self) -> FrozenSet[str]:
        return expand_muscle_group(self.muscle_group)

    @property
    def equipment_tags(self) -> FrozenSet[str]:
        tag = normalize_tag(self.equipment)
        return frozenset({tag}) if tag else frozenset()

    def merged_over(self, fallback: "MatchHints") -> "MatchHints":
        """Per-field override: values set here win over the fallback."""
        return MatchHints(
            muscle_group=self.muscle_group or fallback.muscle_group,
            equipment=self.equipment or fallback.equipment,
        )

    def cache_token(self) -> str:
        return f"{normalize_tag(self.muscle_group)}|{normalize_tag(self.equipment)}"


NO_HINTS = MatchHints()


@dataclass(frozen=True)
class PlaceholderPayload:
    """Synthesized content for a name no catalog entry could cover."""
    name: str
    description: str
    instructions: Tuple[str, ...]
    target_muscles: Tuple[str, ...]
    equipment: Tuple[str, ...]
    safety_tips: Tuple[str, ...]
    asset_url: str
    category: Optional[str] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "name": self.name,
            "description": self.description,
            "instructions": list(self.instructions),
            "target_muscles": list(self.target_muscles),
            "equipment": list(self.equipment),
            "safety_tips": list(self.safety_tips),
            "asset_url": self.asset_url,
            "category": self.category,
        }


@dataclass(frozen=True)
class MatchResult:
    """Outcome of resolving one exercise name."""
    tier: MatchTier
    confidence: float  # 0.0 to 1.0
    query: str
    entry: Optional[CatalogEntry] = None
    placeholder: Optional[PlaceholderPayload] = None
    processing_time_ms: int = 0
    category: Optional[str] = None
    reasoning: Optional[str] = None
    cached: bool = False
    timed_out: bool = False

    @property
    def is_placeholder(self) -> bool:
        return self.tier is MatchTier.GENERATED

    @property
    def asset_url(self) -> str:
        if self.entry is not None:
            return self.entry.asset_url
        if self.placeholder is not None:
            return self.placeholder.asset_url
        return ""

    @property
    def display_name(self) -> str:
        if self.entry is not None:
            return self.entry.name
        if self.placeholder is not None:
            return self.placeholder.name
        return self.query

    @property
    def instructions(self) -> Tuple[str, ...]:
        if self.placeholder is not None:
            return self.placeholder.instructions
        if self.entry is None:
            return ()
        if self.tier is MatchTier.CLASSIFICATION:
            return (
                f"This is a variation of {self.entry.name}.",
                f"Follow the demonstration while adapting it for {self.query.strip()}.",
            ) + self.entry.instructions
        return self.entry.instructions

    def to_dict(self) -> Dict[str, Any]:
        return {
            "query": self.query,
            "tier": self.tier.value,
            "confidence": round(self.confidence, 4),
            "processing_time_ms": self.processing_time_ms,
            "name": self.display_name,
            "asset_url": self.asset_url,
            "instructions": list(self.instructions),
            "entry_id": self.entry.id if self.entry else None,
            "category": self.category,
            "reasoning": self.reasoning,
            "cached": self.cached,
            "timed_out": self.timed_out,
            "placeholder": self.placeholder.to_dict() if self.placeholder else None,
        }


def similarity(a: str, b: str) -> float:
    """Order-insensitive edit-distance similarity in [0, 1]."""
    if not a or not b:
        return 0.0
    return fuzz.token_sort_ratio(a, b) / 100.0


def cache_key(query: NormalizedQuery, hints: Optional[MatchHints] = None) -> str:
    """Result cache key; hints change the semantic and classification tiers."""
    hints = hints or NO_HINTS
    return ":".join([query.text, hints.cache_token()])


def query_text(raw_name: Any) -> str:
    return raw_name if isinstance(raw_name, str) else ""


def _elapsed_ms(start: float) -> int:
    return max(0, int(round((time.perf_counter() - start) * 1000)))


def _best_candidate(
    query: NormalizedQuery,
    candidates: Iterable[Candidate],
) -> Optional[Tuple[Candidate, float]]:
    """Highest score, then canonical over alias, then lowest entry id."""
    best = None
    best_key = None
    for candidate in candidates:
        score = similarity(query.compact, candidate.text)
        key = (-score, not candidate.is_canonical, candidate.entry.id)
        if best_key is None or key < best_key:
            best, best_key = (candidate, score), key
    return best


def build_placeholder(
    raw_name: Any,
    hints: MatchHints,
    category: Optional[MovementCategory],
    config: ResolverConfig,
) -> PlaceholderPayload:
    """Generic content for a name that matched nothing in the catalog."""
    name = raw_name.strip() if isinstance(raw_name, str) and raw_name.strip() else "Exercise"
    category_name = category.name if category else None

    if hints.muscle_group:
        muscles: Tuple[str, ...] = (hints.muscle_group.strip().lower(),)
    elif category is not None:
        muscles = (category.muscle_group,)
    else:
        muscles = ("full body",)
    equipment = (hints.equipment.strip().lower(),) if hints.equipment else ("bodyweight",)

    if category_name:
        description = f"A {category_name} movement targeting the {', '.join(muscles)}."
    else:
        description = f"An exercise targeting the {', '.join(muscles)}."

    return PlaceholderPayload(
        name=name,
        description=description,
        instructions=GENERIC_INSTRUCTIONS,
        target_muscles=muscles,
        equipment=equipment,
        safety_tips=GENERIC_SAFETY_TIPS,
        asset_url=config.placeholder_asset_for(category_name),
        category=category_name,
    )


class TieredExerciseMatcher:
    """
    Resolve exercise names against a CatalogIndex.

    All tiers of one call read the same snapshot, so a concurrent rebuild
    cannot mix two catalog versions into a single result.
    """

    def __init__(self, index: CatalogIndex, config: Optional[ResolverConfig] = None):
        """
        Args:
            index: Catalog to resolve against
            config: Thresholds and placeholder settings
        """
        self._index = index
        self._config = config or ResolverConfig()

    @property
    def config(self) -> ResolverConfig:
        return self._config

    def match(self, raw_name: Any, hints: Any = None) -> MatchResult:
        """
        Resolve a name to the best available visual.

        Args:
            raw_name: Exercise name as produced upstream (any value is accepted)
            hints: Optional MatchHints or {"muscleGroup", "equipment"} dict

        Returns:
            MatchResult; never raises
        """
        start = time.perf_counter()
        hints = MatchHints.coerce(hints)

        try:
            result = self._match_tiers(raw_name, hints, self._index.snapshot())
        except Exception:
            logger.exception("Tiered match failed for %r, using generated placeholder", raw_name)
            result = self.placeholder_result(raw_name, hints, reasoning="Matcher error")

        return replace(result, processing_time_ms=_elapsed_ms(start))

    def placeholder_result(
        self,
        raw_name: Any,
        hints: Any = None,
        category: Optional[str] = None,
        reasoning: Optional[str] = None,
        timed_out: bool = False,
    ) -> MatchResult:
        """
        Generated-tier result, also used by the preloader for timeouts.

        The movement category is detected from the name unless given.
        """
        hints = MatchHints.coerce(hints)
        detected = get_category(category) if category else None
        if detected is None:
            try:
                detected = classify(normalize(raw_name), hints.muscle_tags)
            except Exception:
                logger.exception("Classification failed for %r", raw_name)
        return self._generated(raw_name, hints, detected, reasoning, timed_out)

    def _generated(
        self,
        raw_name: Any,
        hints: MatchHints,
        detected: Optional[MovementCategory],
        reasoning: Optional[str] = None,
        timed_out: bool = False,
    ) -> MatchResult:
        return MatchResult(
            tier=MatchTier.GENERATED,
            confidence=self._config.generated_confidence,
            query=query_text(raw_name),
            placeholder=build_placeholder(raw_name, hints, detected, self._config),
            category=detected.name if detected else None,
            reasoning=reasoning or "No catalog match",
            timed_out=timed_out,
        )

    def suggest(self, raw_name: Any, limit: int = 5) -> List[MatchResult]:
        """
        Ranked fuzzy candidates for a name, one per catalog entry.

        Used to offer alternatives when a match is low-confidence.
        """
        query = normalize(raw_name)
        if query.is_empty or limit <= 0:
            return []

        best_per_entry: Dict[str, Tuple[float, bool, Candidate]] = {}
        for candidate in self._index.snapshot().candidates:
            score = similarity(query.compact, candidate.text)
            if score < SUGGEST_MIN_SCORE:
                continue
            current = best_per_entry.get(candidate.entry.id)
            ranked = (score, candidate.is_canonical, candidate)
            if current is None or (score, candidate.is_canonical) > current[:2]:
                best_per_entry[candidate.entry.id] = ranked

        ordered = sorted(
            best_per_entry.values(),
            key=lambda r: (-r[0], not r[1], r[2].entry.id),
        )
        return [
            MatchResult(
                tier=MatchTier.FUZZY,
                confidence=score,
                query=query_text(raw_name),
                entry=candidate.entry,
                reasoning=f"Suggestion (score: {score:.2f})",
            )
            for score, _, candidate in ordered[:limit]
        ]

    # ------------------------------------------------------------------
    # Tiers
    # ------------------------------------------------------------------

    def _match_tiers(
        self,
        raw_name: Any,
        hints: MatchHints,
        snapshot: CatalogSnapshot,
    ) -> MatchResult:
        query = normalize(raw_name)
        if query.is_empty:
            logger.debug("Empty or invalid exercise name %r", raw_name)
            return self._generated(raw_name, hints, None, reasoning="Empty or invalid name")
        text = query_text(raw_name)

        entry = snapshot.lookup_exact(query)
        if entry is not None:
            return MatchResult(
                tier=MatchTier.EXACT,
                confidence=1.0,
                query=text,
                entry=entry,
                reasoning=f"Exact match on '{query.text}'",
            )

        best = _best_candidate(query, snapshot.candidates)
        if best is not None and best[1] >= self._config.fuzzy_accept_threshold:
            candidate, score = best
            logger.debug("Fuzzy match '%s' -> %s (%.2f)", query.text, candidate.entry.id, score)
            return MatchResult(
                tier=MatchTier.FUZZY,
                confidence=score,
                query=text,
                entry=candidate.entry,
                reasoning=f"Fuzzy match on '{candidate.text}' (score: {score:.2f})",
            )

        semantic = self._semantic(query, text, hints, snapshot)
        if semantic is not None:
            return semantic

        category = classify(query, hints.muscle_tags)
        if category is not None:
            representative = snapshot.representatives.get(category.name)
            if representative is not None:
                logger.debug(
                    "Classified '%s' as %s -> %s", query.text, category.name, representative.id
                )
                return MatchResult(
                    tier=MatchTier.CLASSIFICATION,
                    confidence=self._config.classification_confidence,
                    query=text,
                    entry=representative,
                    category=category.name,
                    reasoning=f"Classified as {category.name} movement",
                )

        logger.debug("No catalog match for '%s', generating placeholder", query.text)
        return self._generated(raw_name, hints, category, reasoning="No catalog match")

    def _semantic(
        self,
        query: NormalizedQuery,
        text: str,
        hints: MatchHints,
        snapshot: CatalogSnapshot,
    ) -> Optional[MatchResult]:
        if hints.is_empty:
            return None
        pool = {
            e.id for e in snapshot.entries_sharing_tags(hints.muscle_tags, hints.equipment_tags)
        }
        if not pool:
            return None

        best = _best_candidate(query, (c for c in snapshot.candidates if c.entry.id in pool))
        if best is None or best[1] < self._config.semantic_accept_threshold:
            return None

        candidate, score = best
        confidence = score * self._config.semantic_confidence_penalty
        logger.debug(
            "Semantic match '%s' -> %s (score %.2f, confidence %.2f)",
            query.text, candidate.entry.id, score, confidence,
        )
        return MatchResult(
            tier=MatchTier.SEMANTIC,
            confidence=confidence,
            query=text,
            entry=candidate.entry,
            reasoning=f"Related by muscle group/equipment to '{candidate.text}' (score: {score:.2f})",
        )

