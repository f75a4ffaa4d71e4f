"""
Conflict Service

Orchestrates GeoFeed fetch, export refresh, accumulation, fusion and
caching for each request.

DESIGN:
=======
1. A valid merged response is served without touching upstreams
2. GeoFeed is fetched live on every merged-cache miss; on failure
   or an empty batch the last good GeoFeed snapshot is used and the
   response is partial
3. The export archive is refreshed at most once per gate TTL; a failed
   refresh marks the response partial but the accumulation store is
   always consulted
4. Refreshes are serialized by one lock so concurrent requests never
   duplicate an in-flight refresh
5. No upstream failure escapes; the worst case is an empty partial
   snapshot
"""

from __future__ import annotations
from typing import Callable, List, Optional, Tuple
from datetime import datetime, timedelta, timezone
import asyncio
import logging

from .cache import TTLCache
from .config import IngestionConfig
from .contracts import ConflictEvent, ConflictSnapshot, iso_timestamp
from .errors import IngestionError
from .export_feed import ExportFeedClient
from .fetcher import FeedFetcher
from .fusion import as_unenriched, fuse_events
from .geo_feed import GeoFeedClient
from .storage import AccumulationStore


logger = logging.getLogger(__name__)


def _utc_now() -> datetime:
    return datetime.now(timezone.utc)


class ConflictService:
    """
    Owns the process-wide conflict state: three caches and the store.

    One instance is created per server and injected into the HTTP layer.
    """

    def __init__(
        self,
        config: Optional[IngestionConfig] = None,
        fetcher: Optional[FeedFetcher] = None,
        store: Optional[AccumulationStore] = None,
        clock: Callable[[], datetime] = _utc_now
    ):
        self._config = config or IngestionConfig()
        self._clock = clock

        fetcher = fetcher or FeedFetcher(user_agent=self._config.user_agent)
        self._geo_client = GeoFeedClient(fetcher, self._config)
        self._export_client = ExportFeedClient(fetcher, self._config)

        self._store = store or AccumulationStore(
            window=timedelta(hours=self._config.window_hours),
            clock=clock
        )

        self._geo_cache: TTLCache[List[ConflictEvent]] = TTLCache(self._config.geo_cache_ttl)
        self._export_gate: TTLCache[int] = TTLCache(
            self._config.export_gate_ttl, size=lambda count: count
        )
        self._merged_cache: TTLCache[ConflictSnapshot] = TTLCache(
            self._config.merged_cache_ttl, size=lambda snapshot: snapshot.total
        )

        self._refresh_lock = asyncio.Lock()

    async def get_conflicts(self) -> ConflictSnapshot:
        """Return the merged conflict snapshot, refreshing if needed."""
        cached = self._merged_cache.get(self._clock())
        if cached is not None:
            return cached

        async with self._refresh_lock:
            # Another request may have refreshed while we waited.
            cached = self._merged_cache.get(self._clock())
            if cached is not None:
                return cached
            return await self._refresh()

    async def _refresh(self) -> ConflictSnapshot:
        geo_events, live_geo, geo_degraded = await self._load_geo()
        export_degraded = await self._refresh_export()

        now = self._clock()
        fusion = fuse_events(
            geo_events,
            self._store.snapshot(now),
            box_degrees=self._config.match_box_degrees
        )
        logger.info(
            "Fused %d events (matched=%d, geo_only=%d, export_only=%d)",
            len(fusion.events), fusion.matched_count,
            fusion.unmatched_geo_count, fusion.standalone_export_count
        )

        if not fusion.events and not live_geo:
            return self._fallback_snapshot(now)

        snapshot = ConflictSnapshot(
            events=fusion.events,
            timestamp=iso_timestamp(now),
            partial=geo_degraded or export_degraded
        )
        self._merged_cache.put(snapshot, now)
        return snapshot

    async def _load_geo(self) -> Tuple[List[ConflictEvent], List[ConflictEvent], bool]:
        """Returns (events to fuse, live events, degraded)."""
        try:
            report = await self._geo_client.fetch_events(self._clock())
        except IngestionError as e:
            return self._stale_geo(f"GeoFeed unavailable ({e})")
        except Exception:
            logger.exception("GeoFeed batch could not be parsed")
            return self._stale_geo("GeoFeed batch unparseable")

        # An empty batch is an outage signature, not a quiet period.
        if not self._geo_cache.put(report.events, self._clock()):
            return self._stale_geo("GeoFeed returned an empty batch")
        return report.events, report.events, False

    def _stale_geo(self, reason: str) -> Tuple[List[ConflictEvent], List[ConflictEvent], bool]:
        stale = self._geo_cache.stale() or []
        logger.warning("%s; falling back to %d cached events", reason, len(stale))
        return list(stale), [], True

    async def _refresh_export(self) -> bool:
        """Refresh the store if the export gate expired. Returns degraded."""
        if self._export_gate.is_fresh(self._clock()):
            return False

        try:
            export_slice = await self._export_client.fetch_slice()
        except IngestionError as e:
            logger.warning(
                "Export refresh failed (%s); serving %d accumulated events", e, len(self._store)
            )
            return True
        except Exception:
            logger.exception(
                "Export slice could not be parsed; serving %d accumulated events", len(self._store)
            )
            return True

        now = self._clock()
        self._store.ingest(export_slice.events, now)
        if not self._export_gate.put(len(export_slice.events), now):
            logger.warning(
                "Export slice %s held no conflict events; retrying next request",
                export_slice.archive_url
            )
        return False

    def _fallback_snapshot(self, now: datetime) -> ConflictSnapshot:
        stale = self._geo_cache.stale() or []
        logger.warning("No live events; serving %d stale GeoFeed events as partial", len(stale))
        return ConflictSnapshot(
            events=[as_unenriched(event) for event in stale],
            timestamp=iso_timestamp(now),
            partial=True
        )

    def now(self) -> datetime:
        return self._clock()

    def empty_snapshot(self) -> ConflictSnapshot:
        return ConflictSnapshot(events=[], timestamp=iso_timestamp(self._clock()), partial=True)

    def status(self) -> dict:
        """Cache ages and store size for health reporting."""
        now = self._clock()
        return {
            'geo_cache': {
                'age_seconds': self._geo_cache.age(now),
                'fresh': self._geo_cache.is_fresh(now),
            },
            'export_gate': {
                'age_seconds': self._export_gate.age(now),
                'fresh': self._export_gate.is_fresh(now),
            },
            'merged_cache': {
                'age_seconds': self._merged_cache.age(now),
                'fresh': self._merged_cache.is_fresh(now),
            },
            'store': self._store.stats(),
        }

    @property
    def config(self) -> IngestionConfig:
        return self._config

    @property
    def store(self) -> AccumulationStore:
        return self._store

    @property
    def geo_cache(self) -> TTLCache[List[ConflictEvent]]:
        return self._geo_cache

    @property
    def merged_cache(self) -> TTLCache[ConflictSnapshot]:
        return self._merged_cache


def create_service(config: Optional[IngestionConfig] = None) -> ConflictService:
    """Create a conflict service from the environment by default."""
    return ConflictService(config=config or IngestionConfig.from_env())
