"""
Coarse movement classification for exercise names.

Used by the classification tier when no catalog entry is close enough by
name: the query is bucketed into a movement category by keyword hits and the
category's representative catalog entry stands in for the exercise.
"""
import pathlib
from dataclasses import dataclass
from typing import Iterable, List, Optional, Tuple

import yaml

from backend.core.normalize import NormalizedQuery, expand_muscle_group, normalize

ROOT = pathlib.Path(__file__).resolve().parents[2]

# Query keyword hits outweigh hint agreement; hints only break ties.
QUERY_HIT_WEIGHT = 2
HINT_HIT_WEIGHT = 1


@dataclass(frozen=True)
class MovementCategory:
    name: str
    keywords: Tuple[str, ...]
    representatives: Tuple[str, ...]
    muscle_group: str

    @property
    def muscle_tags(self):
        return expand_muscle_group(self.muscle_group)


def _load_categories() -> Tuple[MovementCategory, ...]:
    raw = yaml.safe_load(
        (ROOT / "shared/dictionaries/movement_categories.yaml").read_text()
    )
    categories = []
    for item in raw:
        categories.append(MovementCategory(
            name=item["category"],
            keywords=tuple(normalize(k).compact for k in item["keywords"]),
            representatives=tuple(normalize(r).text for r in item.get("representatives", [])),
            muscle_group=item.get("muscle_group", ""),
        ))
    return tuple(categories)


CATEGORIES = _load_categories()
CATEGORY_NAMES = tuple(c.name for c in CATEGORIES)


def get_category(name: str) -> Optional[MovementCategory]:
    return next((c for c in CATEGORIES if c.name == name), None)


def _keyword_score(category: MovementCategory, padded_query: str) -> int:
    score = 0
    for kw in category.keywords:
        if f" {kw} " in padded_query:
            score += len(kw.split())
    return score


def rank_categories(
    query: NormalizedQuery,
    muscle_tags: Iterable[str] = (),
) -> List[Tuple[MovementCategory, int]]:
    """
    Score every category that has at least one keyword hit in the query.

    Returns (category, score) pairs, best first. Ties keep the declaration
    order of movement_categories.yaml.
    """
    if query.is_empty:
        return []

    padded = f" {query.compact} "
    tags = set(muscle_tags)
    ranked = []
    for order, category in enumerate(CATEGORIES):
        hits = _keyword_score(category, padded)
        if not hits:
            continue
        score = hits * QUERY_HIT_WEIGHT
        if tags & category.muscle_tags:
            score += HINT_HIT_WEIGHT
        ranked.append((order, category, score))

    ranked.sort(key=lambda x: (-x[2], x[0]))
    return [(category, score) for _, category, score in ranked]


def classify(
    query: NormalizedQuery,
    muscle_tags: Iterable[str] = (),
) -> Optional[MovementCategory]:
    """Best movement category for the query, or None when no keyword applies."""
    ranked = rank_categories(query, muscle_tags)
    return ranked[0][0] if ranked else None
