"""
In-memory exercise asset catalog.

The catalog maps canonical exercise names and aliases to visual assets
(animated demonstrations) and instructions. It is loaded lazily from an
injected CatalogSource and replaced wholesale on rebuild: a new immutable
CatalogSnapshot is built to the side and published with a single reference
swap, so matchers running during a rebuild keep reading the previous
snapshot and never see a half-built index.

If the source fails to load, the index publishes an empty snapshot and every
query degrades to a generated placeholder until a later rebuild succeeds.
"""
import asyncio
import logging
import threading
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import (
    Any,
    Callable,
    Dict,
    FrozenSet,
    Iterable,
    List,
    NamedTuple,
    Optional,
    Tuple,
    TYPE_CHECKING,
)

from backend.core.classification import CATEGORIES
from backend.core.errors import CatalogLoadError, InvalidCatalogEntryError
from backend.core.normalize import NormalizedQuery, normalize, normalize_tag, slugify

if TYPE_CHECKING:
    from application.ports import CatalogSource

logger = logging.getLogger(__name__)

RebuildListener = Callable[[int], None]


def _str_list(value: Any) -> List[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [value]
    return [v for v in value if isinstance(v, str) and v.strip()]


def _tags(value: Any) -> FrozenSet[str]:
    return frozenset(t for t in (normalize_tag(v) for v in _str_list(value)) if t)


@dataclass(frozen=True)
class CatalogEntry:
    """A known exercise with its visual asset."""
    id: str
    name: str
    aliases: FrozenSet[str] = frozenset()
    muscle_groups: FrozenSet[str] = frozenset()
    equipment: FrozenSet[str] = frozenset()
    asset_url: str = ""
    instructions: Tuple[str, ...] = ()
    movement_pattern: Optional[str] = None

    @classmethod
    def from_dict(cls, row: Dict[str, Any]) -> "CatalogEntry":
        """
        Build an entry from a raw catalog row.

        Accepts both the exercises-table shape (primary_muscles, gif_url) and
        the exercise API shape (targetMuscles, equipments, gifUrl).

        Raises:
            InvalidCatalogEntryError: If the row has no usable name
        """
        if not isinstance(row, dict):
            raise InvalidCatalogEntryError(f"Catalog row is not a mapping: {row!r}")

        name = row.get("name") or row.get("canonical")
        if not isinstance(name, str) or not name.strip():
            raise InvalidCatalogEntryError(f"Catalog row has no name: {row!r}")
        name = name.strip()

        entry_id = row.get("id") or row.get("exercise_id") or row.get("exerciseId")
        if not isinstance(entry_id, str) or not entry_id.strip():
            entry_id = slugify(name)

        muscles = (
            row.get("muscle_groups")
            or row.get("primary_muscles")
            or row.get("target_muscles")
            or row.get("targetMuscles")
        )
        asset_url = row.get("asset_url") or row.get("gif_url") or row.get("gifUrl") or ""

        return cls(
            id=entry_id.strip(),
            name=name,
            aliases=frozenset(a.strip() for a in _str_list(row.get("aliases") or row.get("synonyms"))),
            muscle_groups=_tags(muscles) | _tags(row.get("body_parts") or row.get("bodyParts")),
            equipment=_tags(row.get("equipment") or row.get("equipments")),
            asset_url=asset_url if isinstance(asset_url, str) else "",
            instructions=tuple(s.strip() for s in _str_list(row.get("instructions"))),
            movement_pattern=normalize_tag(row.get("movement_pattern")) or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "name": self.name,
            "aliases": sorted(self.aliases),
            "muscle_groups": sorted(self.muscle_groups),
            "equipment": sorted(self.equipment),
            "asset_url": self.asset_url,
            "instructions": list(self.instructions),
            "movement_pattern": self.movement_pattern,
        }


class Candidate(NamedTuple):
    """A normalized name (canonical or alias) that fuzzy tiers score against."""
    entry: CatalogEntry
    text: str
    is_canonical: bool


@dataclass(frozen=True)
class CatalogSnapshot:
    """Immutable view of one catalog version."""
    version: int
    entries: Tuple[CatalogEntry, ...]
    by_id: Dict[str, CatalogEntry]
    by_key: Dict[str, CatalogEntry]
    candidates: Tuple[Candidate, ...]
    representatives: Dict[str, CatalogEntry]
    by_muscle: Dict[str, Tuple[CatalogEntry, ...]]
    by_equipment: Dict[str, Tuple[CatalogEntry, ...]]
    loaded_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @classmethod
    def empty(cls, version: int = 0) -> "CatalogSnapshot":
        return build_snapshot([], version=version)

    def lookup_exact(self, query: NormalizedQuery) -> Optional[CatalogEntry]:
        """O(1) lookup of a normalized name or alias."""
        if query.is_empty:
            return None
        return self.by_key.get(query.text) or self.by_key.get(query.compact)

    def entries_sharing_tags(
        self,
        muscle_groups: Iterable[str] = (),
        equipment: Iterable[str] = (),
    ) -> Tuple[CatalogEntry, ...]:
        """Entries tagged with at least one of the given muscle groups or equipment."""
        found: Dict[str, CatalogEntry] = {}
        for tag in muscle_groups:
            for entry in self.by_muscle.get(tag, ()):
                found[entry.id] = entry
        for tag in equipment:
            for entry in self.by_equipment.get(tag, ()):
                found[entry.id] = entry
        return tuple(found[k] for k in sorted(found))


def _names(entry: CatalogEntry) -> Iterable[Tuple[NormalizedQuery, bool]]:
    yield normalize(entry.name), True
    for alias in sorted(entry.aliases):
        yield normalize(alias), False


def _group(entries: Iterable[CatalogEntry], attr: str) -> Dict[str, Tuple[CatalogEntry, ...]]:
    grouped: Dict[str, List[CatalogEntry]] = {}
    for entry in entries:
        for tag in getattr(entry, attr):
            grouped.setdefault(tag, []).append(entry)
    return {tag: tuple(group) for tag, group in grouped.items()}


def build_snapshot(entries: Iterable[CatalogEntry], version: int) -> CatalogSnapshot:
    """
    Index entries by normalized name and alias.

    Duplicate ids keep the first entry seen. On key collisions canonical names
    win over aliases, then the lowest id wins.
    """
    by_id: Dict[str, CatalogEntry] = {}
    for entry in entries:
        if entry.id in by_id:
            logger.warning("Duplicate catalog id '%s', keeping first entry", entry.id)
            continue
        by_id[entry.id] = entry
    ordered = tuple(sorted(by_id.values(), key=lambda e: e.id))

    by_key: Dict[str, CatalogEntry] = {}
    candidates: List[Candidate] = []
    for want_canonical in (True, False):
        for entry in ordered:
            for query, is_canonical in _names(entry):
                if is_canonical != want_canonical or query.is_empty:
                    continue
                candidates.append(Candidate(entry, query.compact, is_canonical))
                by_key.setdefault(query.text, entry)
                by_key.setdefault(query.compact, entry)

    representatives: Dict[str, CatalogEntry] = {}
    for category in CATEGORIES:
        rep = next((by_key[n] for n in category.representatives if n in by_key), None)
        if rep is None:
            rep = next((e for e in ordered if e.movement_pattern == category.name), None)
        if rep is not None:
            representatives[category.name] = rep

    return CatalogSnapshot(
        version=version,
        entries=ordered,
        by_id=by_id,
        by_key=by_key,
        candidates=tuple(candidates),
        representatives=representatives,
        by_muscle=_group(ordered, "muscle_groups"),
        by_equipment=_group(ordered, "equipment"),
    )


class CatalogIndex:
    """
    Lazily loaded, atomically swapped exercise catalog.

    Readers call snapshot() (or the convenience lookups, which read the
    current snapshot once) and never block on a rebuild. Rebuild listeners
    run synchronously right after each publish; the resolver uses this to
    invalidate its result cache.
    """

    def __init__(self, source: Optional["CatalogSource"] = None):
        """
        Args:
            source: Catalog source used for lazy loading and default rebuilds
        """
        self._source = source
        self._snapshot = CatalogSnapshot.empty(version=0)
        self._loaded = False
        self._load_failed = False
        self._publish_lock = threading.Lock()
        self._load_lock = threading.Lock()
        self._async_load_lock = asyncio.Lock()
        self._listeners: List[RebuildListener] = []

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------

    def snapshot(self) -> CatalogSnapshot:
        return self._snapshot

    @property
    def version(self) -> int:
        return self._snapshot.version

    @property
    def is_loaded(self) -> bool:
        return self._loaded

    @property
    def loaded_at(self) -> datetime:
        return self._snapshot.loaded_at

    def __len__(self) -> int:
        return len(self._snapshot.entries)

    def lookup_exact(self, query: NormalizedQuery) -> Optional[CatalogEntry]:
        return self._snapshot.lookup_exact(query)

    def all_entries(self) -> Tuple[CatalogEntry, ...]:
        return self._snapshot.entries

    def get(self, entry_id: str) -> Optional[CatalogEntry]:
        return self._snapshot.by_id.get(entry_id)

    def entries_sharing_tags(
        self,
        muscle_groups: Iterable[str] = (),
        equipment: Iterable[str] = (),
    ) -> Tuple[CatalogEntry, ...]:
        return self._snapshot.entries_sharing_tags(muscle_groups, equipment)

    def representative_for(self, category: str) -> Optional[CatalogEntry]:
        return self._snapshot.representatives.get(category)

    # ------------------------------------------------------------------
    # Rebuilds
    # ------------------------------------------------------------------

    def add_rebuild_listener(self, listener: RebuildListener) -> None:
        self._listeners.append(listener)

    def load_entries(self, rows: Iterable[Any]) -> int:
        """Publish a catalog from in-memory rows. Returns the new version."""
        return self._publish(list(rows), source_name="in-memory rows")

    def rebuild_sync(self, source: Optional["CatalogSource"] = None) -> int:
        """Reload from the source (default: the configured one) and publish."""
        source = self._remember(source)
        return self._publish(self._load_rows(source), source_name=_source_name(source))

    async def rebuild(self, source: Optional["CatalogSource"] = None) -> int:
        """Like rebuild_sync(), but loads the source in the default executor."""
        source = self._remember(source)
        loop = asyncio.get_running_loop()
        rows = await loop.run_in_executor(None, self._load_rows, source)
        return self._publish(rows, source_name=_source_name(source))

    def ensure_loaded_sync(self) -> None:
        if self._loaded:
            return
        with self._load_lock:
            if not self._loaded:
                self.rebuild_sync()

    async def ensure_loaded(self) -> None:
        if self._loaded:
            return
        async with self._async_load_lock:
            if not self._loaded:
                await self.rebuild()

    def _remember(self, source: Optional["CatalogSource"]) -> Optional["CatalogSource"]:
        if source is not None:
            self._source = source
        return self._source

    def _load_rows(self, source: Optional["CatalogSource"]) -> Optional[List[Any]]:
        """Load raw rows; None means the load failed and an empty catalog is published."""
        if source is None:
            logger.warning("No catalog source configured, publishing empty catalog")
            return []
        try:
            rows = source.load()
            if not isinstance(rows, list):
                raise CatalogLoadError(
                    f"Catalog source returned {type(rows).__name__}, expected a list",
                    source=_source_name(source),
                )
        except Exception as e:
            # CatalogLoadError, or anything unexpected raised by a third-party client
            self._report_load_failure(source, e)
            return None
        self._load_failed = False
        return rows

    def _report_load_failure(self, source: "CatalogSource", error: Exception) -> None:
        if self._load_failed:
            logger.debug("Catalog source %s still failing: %s", _source_name(source), error)
            return
        self._load_failed = True
        logger.error(
            "Failed to load exercise catalog from %s, all matches will use "
            "generated placeholders until a rebuild succeeds: %s",
            _source_name(source),
            error,
        )

    def _publish(self, rows: Optional[List[Any]], source_name: str) -> int:
        entries = []
        for row in rows or []:
            try:
                entries.append(CatalogEntry.from_dict(row))
            except InvalidCatalogEntryError as e:
                logger.warning("Skipping catalog row: %s", e)

        with self._publish_lock:
            snapshot = build_snapshot(entries, version=self._snapshot.version + 1)
            self._snapshot = snapshot
            self._loaded = True
            for listener in self._listeners:
                listener(snapshot.version)

        logger.info(
            "Published exercise catalog v%d from %s (%d entries, %d lookup keys)",
            snapshot.version,
            source_name,
            len(snapshot.entries),
            len(snapshot.by_key),
        )
        return snapshot.version


def _source_name(source: Optional["CatalogSource"]) -> str:
    if source is None:
        return "no source"
    return getattr(source, "name", type(source).__name__)
