"""
Exercise catalog router.

Lists the loaded asset catalog, looks up single entries, lists the muscle
group and equipment tags in use, and triggers rebuilds from the configured
catalog source. A rebuild publishes a new catalog version and invalidates
every cached resolution.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query

from api.deps import get_catalog_source, get_resolver
from api.schemas.resolution import (
    CatalogEntriesResponse,
    CatalogEntryResponse,
    RebuildResponse,
    TagListResponse,
)
from application.ports import CatalogSource
from backend.core.normalize import normalize_tag
from backend.core.resolver import ExerciseContentResolver

logger = logging.getLogger(__name__)

router = APIRouter(
    prefix="/catalog",
    tags=["Catalog"],
)


@router.get("/entries", response_model=CatalogEntriesResponse)
async def list_catalog_entries(
    muscle: Optional[str] = Query(None, description="Filter by muscle group tag"),
    equipment: Optional[str] = Query(None, description="Filter by equipment tag"),
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> CatalogEntriesResponse:
    """
    List catalog entries, optionally filtered.

    Both filters must match when both are given.
    """
    await resolver.index.ensure_loaded()
    entries = resolver.index.all_entries()
    if muscle:
        tag = normalize_tag(muscle)
        entries = tuple(e for e in entries if tag in e.muscle_groups)
    if equipment:
        tag = normalize_tag(equipment)
        entries = tuple(e for e in entries if tag in e.equipment)

    return CatalogEntriesResponse(
        entries=[CatalogEntryResponse.from_entry(e) for e in entries],
        count=len(entries),
        version=resolver.index.version,
    )


@router.get("/entries/{entry_id}", response_model=CatalogEntryResponse)
async def get_catalog_entry(
    entry_id: str,
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> CatalogEntryResponse:
    """Get one catalog entry by id."""
    await resolver.index.ensure_loaded()
    entry = resolver.index.get(entry_id)
    if entry is None:
        raise HTTPException(status_code=404, detail="Catalog entry not found")
    return CatalogEntryResponse.from_entry(entry)


@router.get("/muscle-groups", response_model=TagListResponse)
async def list_muscle_groups(
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> TagListResponse:
    """List the muscle group tags used by at least one entry."""
    await resolver.index.ensure_loaded()
    snapshot = resolver.index.snapshot()
    return _tag_list(snapshot.by_muscle, snapshot.version)


@router.get("/equipment", response_model=TagListResponse)
async def list_equipment(
    resolver: ExerciseContentResolver = Depends(get_resolver),
) -> TagListResponse:
    """List the equipment tags used by at least one entry."""
    await resolver.index.ensure_loaded()
    snapshot = resolver.index.snapshot()
    return _tag_list(snapshot.by_equipment, snapshot.version)


def _tag_list(groups, version: int) -> TagListResponse:
    tags = sorted(tag for tag, entries in groups.items() if entries)
    return TagListResponse(tags=tags, count=len(tags), version=version)


@router.post("/rebuild", response_model=RebuildResponse)
async def rebuild_catalog(
    resolver: ExerciseContentResolver = Depends(get_resolver),
    source: CatalogSource = Depends(get_catalog_source),
) -> RebuildResponse:
    """
    Reload the catalog from its source.

    If the source fails, an empty catalog is published and resolutions
    fall back to generated placeholders until the next successful rebuild.
    """
    version = await resolver.rebuild_catalog(source)
    logger.info("Catalog rebuild requested via API, now v%d", version)
    return RebuildResponse(
        version=version,
        entries=len(resolver.index),
        source=source.name,
    )
