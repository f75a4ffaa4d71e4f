"""
GeoFeed Parser
==============

Parses the near-real-time GeoJSON point feed into ConflictEvents.

The feed is coarse: each feature carries a place name, an article count,
a share image and an HTML fragment listing source articles. Category is
derived from free text, since the point feed carries no CAMEO codes.

FAILURE MODES (all full-batch):
- HTTP failure, timeout
- body is not a JSON object, or has no `features` array
- the upstream error sentinel: a single (0, 0) feature named "ERROR..."
"""

from __future__ import annotations
from typing import Any, List, Optional, Pattern, Sequence, Tuple
from datetime import datetime, timezone
from urllib.parse import urlparse
import json
import logging
import math
import re

from .config import IngestionConfig
from .contracts import (
    ConflictCategory, ConflictEvent, GeoParseReport, FetchStatus, iso_timestamp
)
from .errors import GeoFeedError
from .fetcher import FeedFetcher


logger = logging.getLogger(__name__)

# Only the documented anchor shape: <a href="..." title="...">
ANCHOR_PATTERN = re.compile(r'<a\s+href="([^"]*)"\s+title="([^"]*)"', re.IGNORECASE)
ANCHOR_OPEN = re.compile(r'<a ', re.IGNORECASE)

ERROR_PREFIX = "ERROR"

# Priority order matters: first match wins.
CATEGORY_PATTERNS: Sequence[Tuple[ConflictCategory, Pattern[str]]] = (
    (ConflictCategory.MASS_VIOLENCE, re.compile(
        r"\b(massacres?|genocid\w*|ethnic cleansing|mass (?:killings?|graves?|executions?)"
        r"|atrocit(?:y|ies)|slaughter\w*|exterminat\w*)\b",
        re.IGNORECASE,
    )),
    (ConflictCategory.FIGHT, re.compile(
        r"\b(battles?|clash\w*|fighting|firefights?|air ?strikes?|shelling|shelled"
        r"|artillery|bombard\w*|offensives?|combat|missiles?|rockets?|drone strikes?"
        r"|siege|troops|war|warfare|insurgen\w*)\b",
        re.IGNORECASE,
    )),
    (ConflictCategory.ASSAULT, re.compile(
        r"\b(attack\w*|assault\w*|bomb(?:s|ing|ings|ed)?|explosions?|suicide|shooting|gunm[ae]n"
        r"|killed|killing|stabb\w*|ambush\w*|abduct\w*|kidnap\w*|hostages?|assassinat\w*)\b",
        re.IGNORECASE,
    )),
    (ConflictCategory.COERCE, re.compile(
        r"\b(arrest\w*|detain\w*|detention|crackdown|blockade\w*|curfew|sanctions?"
        r"|seiz\w*|raid\w*|expel\w*|deport\w*|repress\w*|confiscat\w*|threat\w*)\b",
        re.IGNORECASE,
    )),
)


def classify_text(text: str) -> ConflictCategory:
    """Keyword cascade: mass-violence > fight > assault > coerce > other."""
    for category, pattern in CATEGORY_PATTERNS:
        if pattern.search(text or ''):
            return category
    return ConflictCategory.OTHER


def extract_anchor(html: str) -> Tuple[str, str]:
    """Return (url, title) of the first anchor, or ("", "")."""
    match = ANCHOR_PATTERN.search(html or '')
    if not match:
        return "", ""
    return match.group(1), match.group(2)


def domain_of(url: str) -> str:
    if not url:
        return ""
    try:
        host = urlparse(url).hostname or ""
    except ValueError:
        return ""
    if host.startswith("www."):
        host = host[4:]
    return host


def count_articles(html: str, count_field: Any) -> int:
    """Anchor count is a lower bound; the embedded count may be higher."""
    anchors = len(ANCHOR_OPEN.findall(html or ''))
    try:
        embedded = int(float(count_field))
    except (TypeError, ValueError, OverflowError):
        embedded = 0
    return max(1, anchors, embedded)


def make_event_id(lat: float, lon: float, name: str) -> str:
    return f"{lat:.2f}_{lon:.2f}_{name}"


def _coordinates(feature: Any) -> Optional[Tuple[float, float]]:
    """(lat, lon) of a Point feature, or None if unusable."""
    if not isinstance(feature, dict):
        return None
    geometry = feature.get('geometry')
    if not isinstance(geometry, dict) or geometry.get('type') != 'Point':
        return None
    coords = geometry.get('coordinates')
    if not isinstance(coords, (list, tuple)) or len(coords) < 2:
        return None
    try:
        lon = float(coords[0])
        lat = float(coords[1])
    except (TypeError, ValueError, OverflowError):
        return None
    if not (math.isfinite(lat) and math.isfinite(lon)):
        return None
    return lat, lon


def _feature_name(feature: Any) -> str:
    if not isinstance(feature, dict):
        return ""
    props = feature.get('properties')
    if not isinstance(props, dict):
        return ""
    return str(props.get('name') or "")


def detect_error_sentinel(features: List[Any]) -> bool:
    """
    The upstream reports rate limits and outages as a single well-formed
    feature at (0, 0) whose name starts with "ERROR".
    """
    if len(features) != 1:
        return False
    coords = _coordinates(features[0])
    if coords is None or coords != (0.0, 0.0):
        return False
    return _feature_name(features[0]).startswith(ERROR_PREFIX)


def parse_feature(feature: Any, fetched_at: datetime) -> Optional[ConflictEvent]:
    """Parse one GeoJSON feature, or return None if it must be rejected."""
    coords = _coordinates(feature)
    if coords is None:
        return None
    lat, lon = coords
    if lat == 0 and lon == 0:
        return None

    props = feature.get('properties')
    if not isinstance(props, dict):
        props = {}

    name = str(props.get('name') or "Unknown event")
    if name.startswith(ERROR_PREFIX):
        return None

    html = str(props.get('html') or "")
    url, title = extract_anchor(html)

    return ConflictEvent(
        id=make_event_id(lat, lon, name),
        lat=lat,
        lon=lon,
        name=name,
        url=url,
        domain=domain_of(url),
        sharing_image=str(props.get('shareimage') or ""),
        date_added=iso_timestamp(fetched_at),
        tone=0.0,
        goldstein_scale=None,
        num_articles=count_articles(html, props.get('count')),
        category=classify_text(f"{name} {title}"),
    )


def parse_geo_feed(payload: Any, fetched_at: Optional[datetime] = None) -> GeoParseReport:
    """
    Parse a decoded FeatureCollection.

    Within-batch duplicates keep the record with more articles, so
    parsing the same batch twice yields the same ids and counts.

    Raises:
        GeoFeedError: body shape is wrong or the error sentinel is present
    """
    fetched = fetched_at or datetime.now(timezone.utc)

    if not isinstance(payload, dict):
        raise GeoFeedError("GeoFeed response is not an object", FetchStatus.PARSE_ERROR)

    features = payload.get('features')
    if not isinstance(features, list):
        raise GeoFeedError("GeoFeed response missing features array", FetchStatus.PARSE_ERROR)

    if detect_error_sentinel(features):
        raise GeoFeedError(
            f"GeoFeed returned error sentinel: {_feature_name(features[0])}",
            FetchStatus.HTTP_ERROR
        )

    report = GeoParseReport(feature_count=len(features))
    by_id = {}

    for feature in features:
        event = parse_feature(feature, fetched)
        if event is None:
            report.rejected_count += 1
            continue

        existing = by_id.get(event.id)
        if existing is None:
            by_id[event.id] = event
            continue

        report.duplicate_count += 1
        if event.num_articles > existing.num_articles:
            by_id[event.id] = event

    report.events = list(by_id.values())
    return report


class GeoFeedClient:
    """Fetches and parses the GeoFeed."""

    def __init__(self, fetcher: FeedFetcher, config: IngestionConfig):
        self._fetcher = fetcher
        self._config = config

    async def fetch_events(self, fetched_at: Optional[datetime] = None) -> GeoParseReport:
        """
        Events are stamped with `fetched_at`, or the fetch completion time.

        Raises:
            GeoFeedError: any transport, body or sentinel failure
        """
        result = await self._fetcher.fetch(
            self._config.geo_url,
            timeout=self._config.geo_timeout,
            params=self._config.geo_params,
            accept="application/json"
        )
        if not result.success:
            raise GeoFeedError(f"GeoFeed fetch failed: {result.error_message}", result.status)

        try:
            payload = json.loads(result.body)
        except ValueError as e:
            raise GeoFeedError(f"GeoFeed body is not JSON: {e}", FetchStatus.PARSE_ERROR)

        report = parse_geo_feed(payload, fetched_at or result.completed_at)
        logger.info("GeoFeed parsed: %s", report.to_dict())
        return report
