"""
Exercise name normalization.

Turns free-text exercise names (as produced by the AI workout generator or
stored as catalog aliases) into a comparable token form. Everything that
compares names - the catalog index, the tiered matcher and the result cache
keys - goes through normalize(), so two names that denote the same movement
must come out identical.

The dictionary of abbreviations, stopwords, qualifiers and plural forms lives
in shared/dictionaries/normalization.yaml.
"""
import pathlib
import re
from dataclasses import dataclass
from typing import Any, FrozenSet, Tuple

import yaml

ROOT = pathlib.Path(__file__).resolve().parents[2]

DICT = yaml.safe_load((ROOT / "shared/dictionaries/normalization.yaml").read_text())

_EXPANSIONS = [
    (re.compile(rf"\b{re.escape(short)}\b"), long)
    for short, long in DICT["expand"].items()
]
_STOPWORDS = frozenset(DICT["stopwords"])
_QUALIFIERS = frozenset(DICT["qualifiers"])
_IRREGULAR_PLURALS = dict(DICT["plural_to_singular"])
_KEEP_PLURAL = frozenset(DICT["keep_plural"])

# "(dumbbell)", "[optional]", "{tempo 3-1-1}"
_BRACKETED = re.compile(r"[\(\[\{][^\)\]\}]*[\)\]\}]?")
# " - beginner", ": modified", and the same after en or em dashes
_DASH_SUFFIX = re.compile(r"\s+[-\u2013\u2014:|]+\s*([^-\u2013\u2014:|]*)$")
_APOSTROPHES = re.compile(r"['\u2019]")
_NON_WORD = re.compile(r"[^\w\s-]")
_LOOSE_HYPHEN = re.compile(r"(?<![a-z0-9])-+|-+(?![a-z0-9])")
_TAG_SEPARATORS = re.compile(r"[^a-z0-9]+")


@dataclass(frozen=True)
class NormalizedQuery:
    """Canonical token form of an exercise name."""
    text: str
    tokens: Tuple[str, ...]

    @property
    def is_empty(self) -> bool:
        return not self.tokens

    @property
    def compact(self) -> str:
        """Text with compound-word hyphens opened up ("push-up" -> "push up")."""
        return self.text.replace("-", " ")

    def __str__(self) -> str:
        return self.text


EMPTY_QUERY = NormalizedQuery(text="", tokens=())


def singularize(word: str) -> str:
    """Reduce simple English plurals; hyphenated words singularize their last part."""
    if "-" in word:
        head, _, tail = word.rpartition("-")
        return f"{head}-{singularize(tail)}"
    if len(word) < 3 or word in _KEEP_PLURAL:
        return word
    if word in _IRREGULAR_PLURALS:
        return _IRREGULAR_PLURALS[word]
    if word.endswith(("ss", "us", "is")):
        return word
    if word.endswith("ies") and len(word) > 4:
        return word[:-3] + "y"
    if word.endswith(("sses", "ches", "shes", "xes", "zes")):
        return word[:-2]
    if word.endswith("s"):
        return word[:-1]
    return word


def _strip_qualifier_suffixes(text: str) -> str:
    while True:
        m = _DASH_SUFFIX.search(text)
        if not m:
            return text
        words = re.findall(r"[a-z]+", m.group(1))
        if words and not all(w in _QUALIFIERS for w in words):
            return text
        text = text[:m.start()]


def normalize(raw_name: Any) -> NormalizedQuery:
    """
    Normalize a raw exercise name.

    Total and deterministic: non-string or blank input gives the empty query,
    which the matcher resolves to a generated placeholder.
    """
    if not isinstance(raw_name, str):
        return EMPTY_QUERY

    t = raw_name.lower()
    t = _BRACKETED.sub(" ", t)
    t = _strip_qualifier_suffixes(t.strip())
    t = re.sub(r"[_/\\\u2013\u2014]", " ", t)

    for pattern, long in _EXPANSIONS:
        t = pattern.sub(long, t)

    t = _APOSTROPHES.sub("", t)
    t = _NON_WORD.sub(" ", t)
    t = _LOOSE_HYPHEN.sub(" ", t)

    tokens = tuple(
        singularize(w) for w in t.split() if w not in _STOPWORDS
    )
    if not tokens:
        return EMPTY_QUERY
    return NormalizedQuery(text=" ".join(tokens), tokens=tokens)


def normalize_tag(tag: Any) -> str:
    """Normalize a muscle-group or equipment tag ("Lower Back" -> "lower_back")."""
    if not isinstance(tag, str):
        return ""
    return _TAG_SEPARATORS.sub("_", tag.lower()).strip("_")


_MUSCLE_REGIONS = {
    normalize_tag(region): frozenset(normalize_tag(m) for m in muscles)
    for region, muscles in DICT["muscle_groups"].items()
}


def expand_muscle_group(tag: Any) -> FrozenSet[str]:
    """Expand a coarse body region hint ("legs") into the muscle tags it covers."""
    t = normalize_tag(tag)
    if not t:
        return frozenset()
    return frozenset({t}) | _MUSCLE_REGIONS.get(t, frozenset())


def slugify(name: str) -> str:
    """Catalog id slug for a display name ("Push-Up (Wide)" -> "push-up-wide")."""
    return _TAG_SEPARATORS.sub("-", name.lower()).strip("-")
