"""
Accumulation Store

Id-keyed, in-process store of enriched export events, retained over a
rolling window.

A single export slice covers roughly 15 minutes. Without accumulation,
enriched events would vanish as soon as their slice aged out, even
though the GeoFeed keeps reporting them for up to 24 hours.

PRINCIPLES:
===========
1. Richness never regresses: a record is replaced only by one with
   strictly more articles
2. Prune before insert; entries older than the window are evicted
3. Insert and prune happen under one lock
"""

from __future__ import annotations
from typing import Callable, Dict, Iterable, List, Optional, Tuple
from datetime import datetime, timedelta, timezone
import logging
import threading

from .contracts import EnrichedConflictEvent


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class AccumulationStore:
    """
    Mapping from event id to (event, insertion time).

    Iteration order is insertion order; a replaced entry keeps its slot.
    """

    def __init__(
        self,
        window: timedelta = timedelta(hours=24),
        clock: Callable[[], datetime] = _utc_now
    ):
        self._window = window
        self._clock = clock
        self._entries: Dict[str, Tuple[EnrichedConflictEvent, datetime]] = {}
        self._lock = threading.Lock()

    def ingest(
        self,
        events: Iterable[EnrichedConflictEvent],
        now: Optional[datetime] = None
    ) -> Dict[str, int]:
        """
        Prune, then insert or upgrade each event.

        Returns counts of inserted, replaced, unchanged and pruned entries.
        """
        now = now or self._clock()
        stats = {'inserted': 0, 'replaced': 0, 'unchanged': 0, 'pruned': 0}

        with self._lock:
            stats['pruned'] = self._prune_locked(now)

            for event in events:
                existing = self._entries.get(event.id)
                if existing is None:
                    self._entries[event.id] = (event, now)
                    stats['inserted'] += 1
                elif event.num_articles > existing[0].num_articles:
                    self._entries[event.id] = (event, now)
                    stats['replaced'] += 1
                else:
                    stats['unchanged'] += 1

        logger.info("Accumulation store ingest: %s (size=%d)", stats, len(self))
        return stats

    def prune(self, now: Optional[datetime] = None) -> int:
        now = now or self._clock()
        with self._lock:
            return self._prune_locked(now)

    def snapshot(self, now: Optional[datetime] = None) -> List[EnrichedConflictEvent]:
        """Prune, then return all retained events in insertion order."""
        now = now or self._clock()
        with self._lock:
            self._prune_locked(now)
            return [event for event, _ in self._entries.values()]

    def get(self, event_id: str) -> Optional[EnrichedConflictEvent]:
        entry = self._entries.get(event_id)
        return entry[0] if entry else None

    def inserted_at(self, event_id: str) -> Optional[datetime]:
        entry = self._entries.get(event_id)
        return entry[1] if entry else None

    def stats(self) -> dict:
        with self._lock:
            oldest = min((at for _, at in self._entries.values()), default=None)
            return {
                'size': len(self._entries),
                'window_hours': self._window.total_seconds() / 3600,
                'oldest_inserted_at': oldest.isoformat() if oldest else None,
            }

    def __len__(self) -> int:
        return len(self._entries)

    def _prune_locked(self, now: datetime) -> int:
        cutoff = now - self._window
        stale = [key for key, (_, at) in self._entries.items() if at < cutoff]
        for key in stale:
            del self._entries[key]
        if stale:
            logger.info("Pruned %d entries older than %s", len(stale), self._window)
        return len(stale)
