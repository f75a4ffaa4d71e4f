"""
Ingestion Configuration

Upstream endpoints, deadlines, TTLs and window sizes for the conflict
pipeline. Defaults match the production upstreams; every value can be
overridden from the environment with a CONFLICT_ prefix.
"""

from __future__ import annotations
from dataclasses import dataclass, field
from typing import Dict, Mapping, Optional
import os


GDELT_GEO_URL = "https://api.gdeltproject.org/api/v2/geo/geo"
GDELT_EXPORT_POINTER_URL = "http://data.gdeltproject.org/gdeltv2/lastupdate.txt"

DEFAULT_GEO_PARAMS: Dict[str, str] = {
    'query': 'military conflict',
    'mode': 'pointdata',
    'format': 'geojson',
    'timespan': '24h',
    'maxpoints': '500',
}


@dataclass(frozen=True)
class IngestionConfig:
    """Configuration for fetchers, caches, store and fusion."""
    geo_url: str = GDELT_GEO_URL
    geo_params: Dict[str, str] = field(default_factory=lambda: dict(DEFAULT_GEO_PARAMS))
    export_pointer_url: str = GDELT_EXPORT_POINTER_URL

    # Deadlines (seconds)
    geo_timeout: float = 15.0
    pointer_timeout: float = 15.0
    archive_timeout: float = 30.0

    # Cache TTLs (seconds)
    geo_cache_ttl: float = 600.0
    export_gate_ttl: float = 900.0
    merged_cache_ttl: float = 600.0

    # Accumulation window (hours)
    window_hours: float = 24.0

    # Fusion match box (degrees, per axis)
    match_box_degrees: float = 0.5

    user_agent: str = "ConflictIngestion/1.0"

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> 'IngestionConfig':
        """
        Build a config from CONFLICT_* environment variables.

        Raises ValueError on a non-numeric override for a numeric field.
        """
        env = os.environ if environ is None else environ
        defaults = cls()

        def _float(name: str, default: float) -> float:
            raw = env.get(name)
            if raw is None or raw.strip() == '':
                return default
            try:
                return float(raw)
            except ValueError:
                raise ValueError(f"{name} must be a number, got {raw!r}")

        return cls(
            geo_url=env.get('CONFLICT_GEO_URL', defaults.geo_url),
            export_pointer_url=env.get('CONFLICT_EXPORT_POINTER_URL', defaults.export_pointer_url),
            geo_timeout=_float('CONFLICT_GEO_TIMEOUT', defaults.geo_timeout),
            pointer_timeout=_float('CONFLICT_POINTER_TIMEOUT', defaults.pointer_timeout),
            archive_timeout=_float('CONFLICT_ARCHIVE_TIMEOUT', defaults.archive_timeout),
            geo_cache_ttl=_float('CONFLICT_GEO_CACHE_TTL', defaults.geo_cache_ttl),
            export_gate_ttl=_float('CONFLICT_EXPORT_GATE_TTL', defaults.export_gate_ttl),
            merged_cache_ttl=_float('CONFLICT_MERGED_CACHE_TTL', defaults.merged_cache_ttl),
            window_hours=_float('CONFLICT_WINDOW_HOURS', defaults.window_hours),
            match_box_degrees=_float('CONFLICT_MATCH_BOX_DEGREES', defaults.match_box_degrees),
            user_agent=env.get('CONFLICT_USER_AGENT', defaults.user_agent),
        )
