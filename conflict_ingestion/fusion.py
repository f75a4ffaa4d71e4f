"""
Event Fusion
============

Merges GeoFeed events (fresh, coarse, primary for geolocation) with
ExportFeed events (structured, primary for metadata).

MATCHING:
=========
For each GeoFeed event, in input order, every still-unmatched export
event inside an axis-aligned box of +/- box_degrees on both axes is a
candidate; the one with the smallest |dlat| + |dlon| wins, ties going to
the earliest in store order. Matching is greedy: the first GeoFeed event
claims an export record even when a later GeoFeed event was closer to
it. There is no re-assignment.

TONE:
=====
An export tone of exactly 0 is treated as missing and falls back to the
GeoFeed tone. A genuinely neutral tone is indistinguishable from the
missing-data sentinel; this approximation is kept on purpose.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import List, Optional, Sequence

from .contracts import ConflictEvent, EnrichedConflictEvent


@dataclass
class FusionResult:
    """Fused output plus match accounting."""
    events: List[EnrichedConflictEvent] = field(default_factory=list)
    matched_count: int = 0
    unmatched_geo_count: int = 0
    standalone_export_count: int = 0


def as_unenriched(event: ConflictEvent) -> EnrichedConflictEvent:
    """Lift a GeoFeed event into the enriched shape with default metadata."""
    return EnrichedConflictEvent(
        id=event.id,
        lat=event.lat,
        lon=event.lon,
        name=event.name,
        url=event.url,
        domain=event.domain,
        sharing_image=event.sharing_image,
        date_added=event.date_added,
        tone=event.tone,
        goldstein_scale=event.goldstein_scale,
        num_articles=event.num_articles,
        category=event.category,
        is_enriched=False,
    )


def merge_pair(geo: ConflictEvent, export: EnrichedConflictEvent) -> EnrichedConflictEvent:
    """GeoFeed keeps location and presentation; export supplies structure."""
    return EnrichedConflictEvent(
        id=geo.id,
        lat=geo.lat,
        lon=geo.lon,
        name=geo.name,
        url=geo.url,
        domain=geo.domain,
        sharing_image=geo.sharing_image,
        date_added=geo.date_added,
        tone=export.tone if export.tone != 0 else geo.tone,
        goldstein_scale=(
            export.goldstein_scale if export.goldstein_scale is not None else geo.goldstein_scale
        ),
        num_articles=max(geo.num_articles, export.num_articles),
        category=export.category,
        actor1=export.actor1,
        actor2=export.actor2,
        cameo_code=export.cameo_code,
        cameo_root_code=export.cameo_root_code,
        cameo_description=export.cameo_description,
        quad_class=export.quad_class,
        geo_precision=export.geo_precision,
        event_date=export.event_date,
        num_sources=export.num_sources,
        num_mentions=export.num_mentions,
        is_enriched=True,
    )


def _nearest_in_box(
    geo: ConflictEvent,
    candidates: Sequence[EnrichedConflictEvent],
    claimed: List[bool],
    box_degrees: float
) -> Optional[int]:
    best_index = None
    best_distance = 0.0
    for index, candidate in enumerate(candidates):
        if claimed[index]:
            continue
        dlat = abs(candidate.lat - geo.lat)
        dlon = abs(candidate.lon - geo.lon)
        if dlat > box_degrees or dlon > box_degrees:
            continue
        distance = dlat + dlon
        if best_index is None or distance < best_distance:
            best_index = index
            best_distance = distance
    return best_index


def fuse_events(
    geo_events: Sequence[ConflictEvent],
    export_events: Sequence[EnrichedConflictEvent],
    box_degrees: float = 0.5
) -> FusionResult:
    """
    Fuse both feeds.

    Output order: GeoFeed-rooted events in input order, then unclaimed
    export events in their given order at their own coordinates.
    """
    result = FusionResult()
    claimed = [False] * len(export_events)

    for geo in geo_events:
        index = _nearest_in_box(geo, export_events, claimed, box_degrees)
        if index is None:
            result.events.append(as_unenriched(geo))
            result.unmatched_geo_count += 1
            continue
        claimed[index] = True
        result.events.append(merge_pair(geo, export_events[index]))
        result.matched_count += 1

    for index, export in enumerate(export_events):
        if not claimed[index]:
            result.events.append(export)
            result.standalone_export_count += 1

    return result
