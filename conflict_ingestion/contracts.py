"""
Conflict Ingestion Contracts

Immutable data structures for the conflict ingestion pipeline.

BOUNDARY: Ingestion Layer
All upstream conflict data enters through these contracts.

INVARIANTS:
===========
1. Coordinates are never exactly (0, 0) - that value is a reject sentinel
2. Category is always one of the five ConflictCategory values
3. Ids are deterministic per source, so repeated fetches reconcile
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional
from datetime import datetime
from enum import Enum


# =============================================================================
# ENUMS
# =============================================================================

class ConflictCategory(Enum):
    """CAMEO root-code based conflict categories."""
    COERCE = "coerce"
    ASSAULT = "assault"
    FIGHT = "fight"
    MASS_VIOLENCE = "mass-violence"
    OTHER = "other"


class ActorType(Enum):
    """Coarse actor role derived from the 3-letter CAMEO type code."""
    GOVERNMENT = "government"
    MILITARY = "military"
    REBEL = "rebel"
    OPPOSITION = "opposition"
    POLICE = "police"
    INTELLIGENCE = "intelligence"
    CIVILIAN = "civilian"
    MEDIA = "media"
    IGO = "igo"
    NGO = "ngo"
    OTHER = "other"


class QuadClass(Enum):
    """Verbal/material x cooperation/conflict classification."""
    VERBAL_COOPERATION = "verbal-cooperation"
    MATERIAL_COOPERATION = "material-cooperation"
    VERBAL_CONFLICT = "verbal-conflict"
    MATERIAL_CONFLICT = "material-conflict"


class GeoPrecision(Enum):
    """Resolution of the event's geocoded location."""
    COUNTRY = "country"
    STATE = "state"
    CITY = "city"
    LANDMARK = "landmark"
    UNKNOWN = "unknown"


class FetchStatus(Enum):
    """Status of a fetch attempt."""
    SUCCESS = "success"
    TIMEOUT = "timeout"
    HTTP_ERROR = "http_error"
    PARSE_ERROR = "parse_error"
    NETWORK_ERROR = "network_error"


# =============================================================================
# EVENT CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class Actor:
    """A participant in a structured export event."""
    name: str
    country_code: str
    type: ActorType
    label: str

    def to_dict(self) -> dict:
        return {
            'name': self.name,
            'countryCode': self.country_code,
            'type': self.type.value,
            'label': self.label,
        }


@dataclass(frozen=True)
class ConflictEvent:
    """
    A single normalized conflict event.

    GeoFeed produces these directly; ExportFeed and fusion produce the
    enriched subclass.
    """
    id: str
    lat: float
    lon: float
    name: str
    url: str
    domain: str
    sharing_image: str
    date_added: str  # ISO8601
    tone: float
    goldstein_scale: Optional[float]
    num_articles: int
    category: ConflictCategory

    def to_dict(self) -> dict:
        return {
            'id': self.id,
            'lat': self.lat,
            'lon': self.lon,
            'name': self.name,
            'url': self.url,
            'domain': self.domain,
            'sharingImage': self.sharing_image,
            'dateAdded': self.date_added,
            'tone': self.tone,
            'goldsteinScale': self.goldstein_scale,
            'numArticles': self.num_articles,
            'category': self.category.value,
        }


@dataclass(frozen=True)
class EnrichedConflictEvent(ConflictEvent):
    """
    Conflict event carrying the structured export metadata.

    Unmatched GeoFeed events keep the defaults below and is_enriched=False.
    """
    actor1: Optional[Actor] = None
    actor2: Optional[Actor] = None
    cameo_code: Optional[str] = None
    cameo_root_code: Optional[str] = None
    cameo_description: Optional[str] = None
    quad_class: Optional[QuadClass] = None
    geo_precision: GeoPrecision = GeoPrecision.UNKNOWN
    event_date: Optional[str] = None
    num_sources: int = 0
    num_mentions: int = 0
    is_enriched: bool = False

    def to_dict(self) -> dict:
        data = super().to_dict()
        data.update({
            'actor1': self.actor1.to_dict() if self.actor1 else None,
            'actor2': self.actor2.to_dict() if self.actor2 else None,
            'cameoCode': self.cameo_code,
            'cameoRootCode': self.cameo_root_code,
            'cameoDescription': self.cameo_description,
            'quadClass': self.quad_class.value if self.quad_class else None,
            'geoPrecision': self.geo_precision.value,
            'eventDate': self.event_date,
            'numSources': self.num_sources,
            'numMentions': self.num_mentions,
            'isEnriched': self.is_enriched,
        })
        return data


# =============================================================================
# FETCH RESULT CONTRACTS
# =============================================================================

@dataclass(frozen=True)
class FetchResult:
    """
    Result of a fetch attempt (success or failure).

    Failed fetches are FIRST-CLASS outputs, not exceptions. The feed
    clients decide whether a failure aborts their batch.
    """
    url: str
    attempted_at: datetime
    completed_at: datetime
    status: FetchStatus

    # On success
    body: bytes = b""

    # On failure
    error_message: Optional[str] = None
    http_status: Optional[int] = None

    @property
    def success(self) -> bool:
        return self.status == FetchStatus.SUCCESS

    @property
    def duration_ms(self) -> float:
        return (self.completed_at - self.attempted_at).total_seconds() * 1000

    def text(self) -> str:
        return self.body.decode('utf-8', errors='replace')


# =============================================================================
# PARSE REPORTS
# =============================================================================

@dataclass
class GeoParseReport:
    """Outcome of parsing one GeoFeed batch."""
    events: List[ConflictEvent] = field(default_factory=list)
    feature_count: int = 0
    rejected_count: int = 0
    duplicate_count: int = 0

    def to_dict(self) -> dict:
        return {
            'feature_count': self.feature_count,
            'event_count': len(self.events),
            'rejected_count': self.rejected_count,
            'duplicate_count': self.duplicate_count,
        }


@dataclass
class ExportParseReport:
    """
    Outcome of parsing one export slice.

    TRACEABLE:
    Every input line results in exactly one of:
    - An event in `events`
    - A count in `out_of_scope_count` (non-conflict root code)
    - A count in `rejected_count` (unusable coordinates)
    - A count in `malformed_count` (short row, bad numeric, missing id)
    """
    events: List[EnrichedConflictEvent] = field(default_factory=list)
    line_count: int = 0
    out_of_scope_count: int = 0
    rejected_count: int = 0
    malformed_count: int = 0

    def to_dict(self) -> dict:
        return {
            'line_count': self.line_count,
            'event_count': len(self.events),
            'out_of_scope_count': self.out_of_scope_count,
            'rejected_count': self.rejected_count,
            'malformed_count': self.malformed_count,
        }


@dataclass(frozen=True)
class ConflictSnapshot:
    """The response object served to callers and held in the merged cache."""
    events: List[EnrichedConflictEvent]
    timestamp: str  # ISO8601
    partial: bool

    @property
    def total(self) -> int:
        return len(self.events)

    def to_dict(self) -> dict:
        return {
            'events': [e.to_dict() for e in self.events],
            'total': self.total,
            'timestamp': self.timestamp,
            'partial': self.partial,
        }


def iso_timestamp(moment: datetime) -> str:
    """Render an aware datetime as ISO8601 with a `Z` suffix."""
    return moment.isoformat(timespec='seconds').replace('+00:00', 'Z')
