"""
API Mapper
==========

Transforms internal snapshots into wire DTOs and picks cache headers.
"""
from typing import Any, Dict, List, Optional
from datetime import datetime

from ..categories import CATEGORY_COLORS, CATEGORY_LABELS
from ..contracts import ConflictCategory, ConflictSnapshot
from ..filters import EventFilters, TIMEFRAMES, apply_filters
from .schemas import CategoryDTO, ConflictResponseDTO

CACHE_CONTROL_OK = "public, max-age=600, stale-while-revalidate=300"
CACHE_CONTROL_PARTIAL = "public, max-age=60, stale-while-revalidate=60"


def cache_control_for(snapshot: ConflictSnapshot) -> str:
    return CACHE_CONTROL_PARTIAL if snapshot.partial else CACHE_CONTROL_OK


def build_filters(search: str, categories: List[str], timeframe: Optional[str]) -> EventFilters:
    """Unknown category or timeframe values are ignored rather than rejected."""
    known = {c.value: c for c in ConflictCategory}
    selected = frozenset(known[c] for c in categories if c in known)
    return EventFilters(
        search=search or "",
        categories=selected if selected else None,
        timeframe=timeframe if timeframe in TIMEFRAMES else None,
    )


def map_snapshot_to_dto(
    snapshot: ConflictSnapshot,
    filters: Optional[EventFilters] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Map a ConflictSnapshot to the response body.

    `total` counts the events actually returned, after filtering.
    """
    events = snapshot.events
    if filters is not None and not filters.is_empty and now is not None:
        events = apply_filters(events, filters, now)

    dto = ConflictResponseDTO.model_validate({
        'events': [event.to_dict() for event in events],
        'total': len(events),
        'timestamp': snapshot.timestamp,
        'partial': snapshot.partial,
    })
    return dto.model_dump(by_alias=True)


def map_categories() -> List[Dict[str, Any]]:
    return [
        CategoryDTO(
            value=category.value,
            label=CATEGORY_LABELS[category],
            color=CATEGORY_COLORS[category],
        ).model_dump(by_alias=True)
        for category in ConflictCategory
    ]
