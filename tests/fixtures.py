"""
Test Fixtures

Builders for upstream payloads: GeoJSON features, export rows, zip
archives, and an httpx mock upstream with per-endpoint behavior.
"""

import asyncio
import json
import struct
import zlib
from datetime import datetime, timedelta, timezone
from typing import Dict, List, Optional, Sequence

import httpx

from conflict_ingestion.config import IngestionConfig
from conflict_ingestion.contracts import (
    Actor, ActorType, ConflictCategory, ConflictEvent, EnrichedConflictEvent
)


T0 = datetime(2024, 3, 1, 12, 0, 0, tzinfo=timezone.utc)

GEO_URL = "https://geo.test/api/v2/geo/geo"
POINTER_URL = "http://data.test/gdeltv2/lastupdate.txt"
ARCHIVE_URL = "http://data.test/gdeltv2/20240301120000.export.CSV.zip"


# =============================================================================
# CLOCK
# =============================================================================

class FakeClock:
    """Callable clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.now = start

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> datetime:
        self.now = self.now + timedelta(**kwargs)
        return self.now


# =============================================================================
# GEOFEED
# =============================================================================

def anchor_html(url: str, title: str, extra_links: int = 0) -> str:
    html = f'<a href="{url}" title="{title}">{title}</a>'
    for i in range(extra_links):
        html += f'<br><a href="{url}/{i}" title="more">more</a>'
    return html


def geo_feature(
    lat: float,
    lon: float,
    name: str = "Aleppo, Syria",
    html: Optional[str] = None,
    count: int = 1,
    shareimage: str = ""
) -> dict:
    if html is None:
        html = anchor_html("https://www.example.com/story", "Clashes reported")
    return {
        "type": "Feature",
        "geometry": {"type": "Point", "coordinates": [lon, lat]},
        "properties": {
            "name": name,
            "count": count,
            "shareimage": shareimage,
            "html": html,
        },
    }


def geo_collection(*features: dict) -> dict:
    return {"type": "FeatureCollection", "features": list(features)}


def error_sentinel_collection(message: str = "ERROR: rate limit exceeded") -> dict:
    return geo_collection(geo_feature(0.0, 0.0, name=message, html=""))


def make_geo_event(
    lat: float,
    lon: float,
    name: str = "Geo event",
    url: str = "https://geo.example.com/a",
    tone: float = 0.0,
    goldstein: Optional[float] = None,
    num_articles: int = 1
) -> ConflictEvent:
    return ConflictEvent(
        id=f"{lat:.2f}_{lon:.2f}_{name}",
        lat=lat,
        lon=lon,
        name=name,
        url=url,
        domain="geo.example.com",
        sharing_image="https://img.example.com/a.jpg",
        date_added="2024-03-01T12:00:00Z",
        tone=tone,
        goldstein_scale=goldstein,
        num_articles=num_articles,
        category=ConflictCategory.OTHER,
    )


def make_export_event(
    event_id: str,
    lat: float,
    lon: float,
    tone: float = -4.0,
    goldstein: Optional[float] = -10.0,
    num_articles: int = 3,
    category: ConflictCategory = ConflictCategory.FIGHT
) -> EnrichedConflictEvent:
    return EnrichedConflictEvent(
        id=f"gdelt-{event_id}",
        lat=lat,
        lon=lon,
        name="MILITARY → REBEL",
        url="https://export.example.com/story",
        domain="export.example.com",
        sharing_image="",
        date_added="2024-03-01T11:45:00Z",
        tone=tone,
        goldstein_scale=goldstein,
        num_articles=num_articles,
        category=category,
        actor1=Actor("MILITARY", "SYR", ActorType.MILITARY, "Military"),
        actor2=Actor("REBEL", "SYR", ActorType.REBEL, "Rebel"),
        cameo_code="193",
        cameo_root_code="19",
        cameo_description="Fight with small arms and light weapons",
        num_sources=2,
        num_mentions=6,
        is_enriched=True,
    )


# =============================================================================
# EXPORT ROWS
# =============================================================================

def export_columns(
    event_id: str = "1001",
    day: str = "20240301",
    actor1: Sequence[str] = ("MILITARY", "SYR", "MIL"),
    actor2: Sequence[str] = ("REBEL", "SYR", "REB"),
    event_code: str = "193",
    root_code: str = "19",
    quad_class: str = "4",
    goldstein: str = "-10.0",
    mentions: str = "6",
    sources: str = "2",
    articles: str = "4",
    tone: str = "-5.5",
    geo_type: str = "4",
    location: str = "Aleppo, Aleppo, Syria",
    lat: str = "36.2",
    lon: str = "37.16",
    date_added: str = "20240301114500",
    url: str = "https://www.news.example.com/story/1"
) -> List[str]:
    cols = [""] * 61
    cols[0] = event_id
    cols[1] = day
    cols[6], cols[7], cols[12] = actor1
    cols[16], cols[17], cols[22] = actor2
    cols[26] = event_code
    cols[27] = event_code[:3]
    cols[28] = root_code
    cols[29] = quad_class
    cols[30] = goldstein
    cols[31] = mentions
    cols[32] = sources
    cols[33] = articles
    cols[34] = tone
    cols[51] = geo_type
    cols[52] = location
    cols[56] = lat
    cols[57] = lon
    cols[59] = date_added
    cols[60] = url
    return cols


def export_line(**kwargs) -> str:
    return "\t".join(export_columns(**kwargs))


def export_csv(*lines: str) -> bytes:
    return ("\n".join(lines) + "\n").encode("utf-8")


# =============================================================================
# ZIP ARCHIVES
# =============================================================================

def zip_entry(
    payload: bytes,
    method: int = 0,
    name: bytes = b"20240301120000.export.CSV",
    extra: bytes = b"",
    flags: int = 0,
    declared_size: Optional[int] = None
) -> bytes:
    """A single local file header followed by its payload."""
    if method == 8:
        compressor = zlib.compressobj(9, zlib.DEFLATED, -zlib.MAX_WBITS)
        data = compressor.compress(payload) + compressor.flush()
    else:
        data = payload

    size = len(data) if declared_size is None else declared_size
    header = struct.pack(
        "<4sHHHHHIIIHH",
        b"PK\x03\x04",
        20,             # version needed
        flags,
        method,
        0,              # mod time
        0,              # mod date
        zlib.crc32(payload) & 0xFFFFFFFF,
        size,
        len(payload),
        len(name),
        len(extra),
    )
    return header + name + extra + data


def pointer_text(archive_url: str = ARCHIVE_URL) -> str:
    base = archive_url.rsplit(".export.CSV.zip", 1)[0]
    return (
        f"150383 297a16b493de7cf6ca809a7cc31d0b93 {archive_url}\n"
        f"318084 bb27f78ba45f69a17ea6ed7755e9f8ff {base}.mentions.CSV.zip\n"
        f"10768507 ea8dde0beb0ba98810a92db068c0ce99 {base}.gkg.csv.zip\n"
    )


# =============================================================================
# MOCK UPSTREAM
# =============================================================================

class MockUpstream:
    """
    Routes requests by URL to configurable behaviors.

    Each behavior is one of: a bytes/dict body, an int status code,
    "timeout" (transport timeout) or "hang" (sleeps past the deadline).
    """

    def __init__(self):
        self.geo: object = geo_collection()
        self.pointer: object = pointer_text()
        self.archive: object = zip_entry(export_csv(export_line()), method=8)
        self.calls: Dict[str, int] = {"geo": 0, "pointer": 0, "archive": 0}

    def config(self, **overrides) -> IngestionConfig:
        params = dict(
            geo_url=GEO_URL,
            export_pointer_url=POINTER_URL,
            geo_timeout=0.5,
            pointer_timeout=0.5,
            archive_timeout=0.5,
        )
        params.update(overrides)
        return IngestionConfig(**params)

    def transport(self) -> httpx.MockTransport:
        return httpx.MockTransport(self._handle)

    async def _handle(self, request: httpx.Request) -> httpx.Response:
        url = f"{request.url.scheme}://{request.url.host}{request.url.path}"
        if url == GEO_URL:
            key = "geo"
        elif url == POINTER_URL:
            key = "pointer"
        elif url == ARCHIVE_URL:
            key = "archive"
        else:
            return httpx.Response(404, request=request)

        self.calls[key] += 1
        behavior = getattr(self, key)

        if behavior == "timeout":
            raise httpx.ReadTimeout("timed out", request=request)
        if behavior == "hang":
            await asyncio.sleep(5)
        if isinstance(behavior, int):
            return httpx.Response(behavior, request=request)
        if isinstance(behavior, dict):
            return httpx.Response(200, content=json.dumps(behavior).encode(), request=request)
        if isinstance(behavior, str):
            return httpx.Response(200, content=behavior.encode(), request=request)
        return httpx.Response(200, content=behavior, request=request)
