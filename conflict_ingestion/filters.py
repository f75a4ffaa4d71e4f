"""
Event filters applied to a served snapshot.

Filtering happens after the merged cache, so every filter combination
shares one cached snapshot.
"""

from __future__ import annotations
from dataclasses import dataclass
from typing import FrozenSet, List, Optional, Sequence
from datetime import datetime, timedelta, timezone

from .contracts import ConflictCategory, EnrichedConflictEvent


TIMEFRAMES = {
    '24h': timedelta(hours=24),
    '6h': timedelta(hours=6),
    '1h': timedelta(hours=1),
}


@dataclass(frozen=True)
class EventFilters:
    search: str = ""
    categories: Optional[FrozenSet[ConflictCategory]] = None
    timeframe: Optional[str] = None

    @property
    def is_empty(self) -> bool:
        return not self.search and self.categories is None and self.timeframe is None


def _parse_iso(value: str) -> Optional[datetime]:
    try:
        parsed = datetime.fromisoformat(value.replace('Z', '+00:00'))
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def apply_filters(
    events: Sequence[EnrichedConflictEvent],
    filters: EventFilters,
    now: datetime
) -> List[EnrichedConflictEvent]:
    """
    Search matches name or domain (case-insensitive). Events whose
    date_added cannot be parsed are kept by the timeframe filter.
    """
    needle = filters.search.strip().lower()
    window = TIMEFRAMES.get(filters.timeframe) if filters.timeframe else None

    kept = []
    for event in events:
        if needle and needle not in event.name.lower() and needle not in event.domain.lower():
            continue
        if filters.categories is not None and event.category not in filters.categories:
            continue
        if window is not None:
            added = _parse_iso(event.date_added)
            if added is not None and now - added > window:
                continue
        kept.append(event)
    return kept
