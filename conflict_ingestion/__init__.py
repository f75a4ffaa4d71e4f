"""
Conflict Ingestion

Fuses two upstream conflict feeds into one deduplicated, classified,
time-windowed event set.

LAYER STRUCTURE:
================

1. FEEDS (geo_feed.py, export_feed.py, archive.py)
   - GeoFeed: near-real-time GeoJSON points, category from free text
   - ExportFeed: 15-minute bulk slice, single-entry zip of TSV rows
   - Outputs: ConflictEvent / EnrichedConflictEvent (immutable)

2. FUSION (fusion.py)
   - Greedy nearest-in-box matching of GeoFeed onto export records

3. STATE (storage.py, cache.py)
   - AccumulationStore: export records over a rolling 24 hour window
   - TTLCache: geo cache, export gate, merged response cache

4. ORCHESTRATION (service.py)
   - Per-request sequencing and the full / partial / degraded decision

CONSTRAINTS ENFORCED:
=====================
- Coordinates (0, 0) never survive parsing
- Category is always one of the five fixed values
- Empty batches are never cached
- No upstream failure escapes the service
"""

from .config import IngestionConfig
from .contracts import (
    Actor,
    ActorType,
    ConflictCategory,
    ConflictEvent,
    ConflictSnapshot,
    EnrichedConflictEvent,
    GeoPrecision,
    QuadClass,
)
from .errors import (
    ArchiveError,
    BadMagic,
    ExportFeedError,
    GeoFeedError,
    IngestionError,
    Truncated,
    UnsupportedCompression,
    UpstreamError,
)
from .service import ConflictService, create_service

__all__ = [
    'Actor',
    'ActorType',
    'ArchiveError',
    'BadMagic',
    'ConflictCategory',
    'ConflictEvent',
    'ConflictService',
    'ConflictSnapshot',
    'EnrichedConflictEvent',
    'ExportFeedError',
    'GeoFeedError',
    'GeoPrecision',
    'IngestionConfig',
    'IngestionError',
    'QuadClass',
    'Truncated',
    'UnsupportedCompression',
    'UpstreamError',
    'create_service',
]
