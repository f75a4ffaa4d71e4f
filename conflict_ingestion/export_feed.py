"""
ExportFeed Parser
=================

Resolves the export pointer file, downloads the bulk archive, unpacks
it and parses the tab-separated event rows into EnrichedConflictEvents.

PIPELINE:
=========
1. Pointer file: lines "size hash url"; first *.export.CSV.zip wins
2. Archive download (longer deadline than the pointer)
3. Single-entry zip extraction (see archive.py)
4. Row parsing: conflict root codes only (17-20); malformed rows are
   skipped and counted, never abort the batch
"""

from __future__ import annotations
from typing import List, Optional, Sequence
from dataclasses import dataclass
import logging
import math

from .archive import extract_single_entry
from .cameo import (
    UNKNOWN_EVENT, actor_type_for, describe_event_code, geo_precision_for, quad_class_for
)
from .categories import ACTOR_TYPE_LABELS, classify_cameo_root
from .config import IngestionConfig
from .contracts import Actor, EnrichedConflictEvent, ExportParseReport
from .errors import ExportFeedError
from .fetcher import FeedFetcher
from .geo_feed import domain_of


logger = logging.getLogger(__name__)

EXPORT_SUFFIX = ".export.CSV.zip"
CONFLICT_ROOT_CODES = frozenset({"17", "18", "19", "20"})
MIN_COLUMNS = 61


# =============================================================================
# COLUMN LAYOUT (GDELT 2.0 event export)
# =============================================================================

COL_GLOBAL_EVENT_ID = 0
COL_DAY = 1
COL_ACTOR1_NAME = 6
COL_ACTOR1_COUNTRY = 7
COL_ACTOR1_TYPE = 12
COL_ACTOR2_NAME = 16
COL_ACTOR2_COUNTRY = 17
COL_ACTOR2_TYPE = 22
COL_EVENT_CODE = 26
COL_EVENT_ROOT_CODE = 28
COL_QUAD_CLASS = 29
COL_GOLDSTEIN = 30
COL_NUM_MENTIONS = 31
COL_NUM_SOURCES = 32
COL_NUM_ARTICLES = 33
COL_AVG_TONE = 34
COL_ACTION_GEO_TYPE = 51
COL_ACTION_GEO_NAME = 52
COL_ACTION_GEO_LAT = 56
COL_ACTION_GEO_LON = 57
COL_DATE_ADDED = 59
COL_SOURCE_URL = 60


class MalformedRow(ValueError):
    """A row that cannot be turned into an event."""


class RejectedLocation(ValueError):
    """A row whose action coordinates are unusable."""


# =============================================================================
# FIELD HELPERS
# =============================================================================

def _float_or_none(raw: str) -> Optional[float]:
    raw = raw.strip()
    if not raw:
        return None
    try:
        value = float(raw)
    except ValueError:
        raise MalformedRow(f"not a number: {raw!r}")
    if not math.isfinite(value):
        raise MalformedRow(f"non-finite number: {raw!r}")
    return value


def _int_or_none(raw: str) -> Optional[int]:
    value = _float_or_none(raw)
    return None if value is None else int(value)


def format_date_added(raw: str) -> str:
    """
    YYYYMMDDHHmmss -> YYYY-MM-DDTHH:mm:ssZ.

    Missing hour, minute or second default to "00".
    """
    digits = raw.strip()
    if len(digits) < 8 or not digits.isdigit():
        raise MalformedRow(f"bad DATEADDED: {raw!r}")

    def _part(start: int) -> str:
        part = digits[start:start + 2]
        return part if len(part) == 2 else "00"

    return f"{digits[0:4]}-{digits[4:6]}-{digits[6:8]}T{_part(8)}:{_part(10)}:{_part(12)}Z"


def format_event_date(raw: str) -> Optional[str]:
    digits = raw.strip()
    if len(digits) != 8 or not digits.isdigit():
        return None
    return f"{digits[0:4]}-{digits[4:6]}-{digits[6:8]}"


def build_actor(name: str, country: str, type_code: str) -> Optional[Actor]:
    """An actor slot with all three columns empty is absent, not blank."""
    name, country, type_code = name.strip(), country.strip(), type_code.strip()
    if not (name or country or type_code):
        return None
    actor_type = actor_type_for(type_code)
    return Actor(
        name=name or country or "Unknown actor",
        country_code=country,
        type=actor_type,
        label=ACTOR_TYPE_LABELS[actor_type],
    )


def event_name(actor1: Optional[Actor], actor2: Optional[Actor], location: str) -> str:
    if actor1 and actor2:
        return f"{actor1.name} → {actor2.name}"
    return location.strip() or UNKNOWN_EVENT


# =============================================================================
# POINTER + ROWS
# =============================================================================

def resolve_export_url(pointer_text: str) -> str:
    """
    Pick the export archive url from the pointer file.

    Raises:
        ExportFeedError: no line names an export archive
    """
    for line in pointer_text.splitlines():
        parts = line.split()
        if len(parts) >= 3 and parts[2].endswith(EXPORT_SUFFIX):
            return parts[2]
    raise ExportFeedError("Pointer file lists no export archive")


def parse_export_row(columns: Sequence[str]) -> Optional[EnrichedConflictEvent]:
    """
    Parse one tab-split row.

    Returns None for rows outside the conflict root codes.

    Raises:
        MalformedRow: short row, bad numeric, missing id or date
        RejectedLocation: non-finite or (0, 0) action coordinates
    """
    if len(columns) < MIN_COLUMNS:
        raise MalformedRow(f"expected {MIN_COLUMNS} columns, got {len(columns)}")

    root_code = columns[COL_EVENT_ROOT_CODE].strip()
    if root_code not in CONFLICT_ROOT_CODES:
        return None

    try:
        lat = _float_or_none(columns[COL_ACTION_GEO_LAT])
        lon = _float_or_none(columns[COL_ACTION_GEO_LON])
    except MalformedRow as e:
        raise RejectedLocation(str(e))
    if lat is None or lon is None or (lat == 0 and lon == 0):
        raise RejectedLocation("missing or (0, 0) action coordinates")

    global_id = columns[COL_GLOBAL_EVENT_ID].strip()
    if not global_id:
        raise MalformedRow("missing GlobalEventID")

    event_code = columns[COL_EVENT_CODE].strip()
    goldstein = _float_or_none(columns[COL_GOLDSTEIN])
    num_mentions = _int_or_none(columns[COL_NUM_MENTIONS]) or 0
    num_sources = _int_or_none(columns[COL_NUM_SOURCES]) or 0
    num_articles = _int_or_none(columns[COL_NUM_ARTICLES]) or 0
    tone = _float_or_none(columns[COL_AVG_TONE]) or 0.0
    quad_code = _int_or_none(columns[COL_QUAD_CLASS])
    geo_type = _int_or_none(columns[COL_ACTION_GEO_TYPE])
    date_added = format_date_added(columns[COL_DATE_ADDED])

    actor1 = build_actor(
        columns[COL_ACTOR1_NAME], columns[COL_ACTOR1_COUNTRY], columns[COL_ACTOR1_TYPE]
    )
    actor2 = build_actor(
        columns[COL_ACTOR2_NAME], columns[COL_ACTOR2_COUNTRY], columns[COL_ACTOR2_TYPE]
    )
    url = columns[COL_SOURCE_URL].strip()

    return EnrichedConflictEvent(
        id=f"gdelt-{global_id}",
        lat=lat,
        lon=lon,
        name=event_name(actor1, actor2, columns[COL_ACTION_GEO_NAME]),
        url=url,
        domain=domain_of(url),
        sharing_image="",
        date_added=date_added,
        tone=tone,
        goldstein_scale=goldstein,
        num_articles=max(1, num_articles),
        category=classify_cameo_root(root_code),
        actor1=actor1,
        actor2=actor2,
        cameo_code=event_code or None,
        cameo_root_code=root_code,
        cameo_description=describe_event_code(event_code),
        quad_class=quad_class_for(quad_code),
        geo_precision=geo_precision_for(geo_type),
        event_date=format_event_date(columns[COL_DAY]),
        num_sources=num_sources,
        num_mentions=num_mentions,
        is_enriched=True,
    )


def parse_export_csv(text: str) -> ExportParseReport:
    """Parse an inflated export slice, counting every skipped line."""
    report = ExportParseReport()

    for line in text.splitlines():
        if not line.strip():
            continue
        report.line_count += 1
        try:
            event = parse_export_row(line.split("\t"))
        except RejectedLocation:
            report.rejected_count += 1
            continue
        except MalformedRow:
            report.malformed_count += 1
            continue

        if event is None:
            report.out_of_scope_count += 1
        else:
            report.events.append(event)

    return report


# =============================================================================
# CLIENT
# =============================================================================

@dataclass(frozen=True)
class ExportSlice:
    """One successfully fetched and parsed export archive."""
    archive_url: str
    report: ExportParseReport

    @property
    def events(self) -> List[EnrichedConflictEvent]:
        return self.report.events


class ExportFeedClient:
    """Fetches the latest export slice via the pointer file."""

    def __init__(self, fetcher: FeedFetcher, config: IngestionConfig):
        self._fetcher = fetcher
        self._config = config

    async def fetch_slice(self) -> ExportSlice:
        """
        Raises:
            ExportFeedError: pointer or archive fetch failed
            ArchiveError: archive could not be unpacked
        """
        pointer = await self._fetcher.fetch(
            self._config.export_pointer_url,
            timeout=self._config.pointer_timeout,
            accept="text/plain"
        )
        if not pointer.success:
            raise ExportFeedError(f"Pointer fetch failed: {pointer.error_message}", pointer.status)

        archive_url = resolve_export_url(pointer.text())

        archive = await self._fetcher.fetch(
            archive_url,
            timeout=self._config.archive_timeout,
            accept="application/zip"
        )
        if not archive.success:
            raise ExportFeedError(f"Archive fetch failed: {archive.error_message}", archive.status)

        raw = extract_single_entry(archive.body)
        report = parse_export_csv(raw.decode('utf-8', errors='replace'))

        if report.malformed_count or report.rejected_count:
            logger.warning(
                "Export slice %s skipped %d malformed and %d rejected rows",
                archive_url, report.malformed_count, report.rejected_count
            )
        logger.info("Export slice parsed: %s", report.to_dict())
        return ExportSlice(archive_url=archive_url, report=report)
