"""
Ingestion Errors

Typed failures for the conflict ingestion pipeline.

TAXONOMY:
=========
- UpstreamError: transport failures and upstream-embedded error sentinels.
  Recoverable by the service through cache fallback or the partial flag.
- ArchiveError: the export archive could not be unpacked. Aborts the
  export refresh for one cycle only.

Record-level malformed data is NOT an exception; it is counted in the
parse reports and the batch continues.
"""

from __future__ import annotations
from typing import Optional

from .contracts import FetchStatus


class IngestionError(Exception):
    """Base class for all ingestion failures."""


class UpstreamError(IngestionError):
    """An upstream feed could not produce a usable batch."""

    def __init__(self, message: str, status: Optional[FetchStatus] = None):
        super().__init__(message)
        self.status = status


class GeoFeedError(UpstreamError):
    """GeoFeed batch failure (transport, body shape, or error sentinel)."""


class ExportFeedError(UpstreamError):
    """Export pointer or archive could not be fetched or resolved."""


class ArchiveError(IngestionError):
    """The export archive is not a usable single-entry zip."""


class BadMagic(ArchiveError):
    """Buffer does not start with the local-file-header signature."""


class Truncated(ArchiveError):
    """Header or payload extends past the end of the buffer."""


class UnsupportedCompression(ArchiveError):
    """Compression method other than stored (0) or deflate (8)."""

    def __init__(self, method: int):
        super().__init__(f"Unsupported zip compression method: {method}")
        self.method = method
