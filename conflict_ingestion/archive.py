"""
Single-Entry Zip Reader

Extracts the one file inside an export archive without an archive
library. Reads only the first local file header; the central directory
and any further entries are never consulted.

Local file header layout (little-endian):
    0   signature       50 4B 03 04
    6   flags           uint16
    8   method          uint16
    18  compressed size uint32
    26  name length     uint16
    28  extra length    uint16
    30  name, extra, payload
"""

from __future__ import annotations
import struct
import zlib

from .errors import BadMagic, Truncated, UnsupportedCompression


LOCAL_HEADER_MAGIC = b"\x50\x4b\x03\x04"
LOCAL_HEADER_SIZE = 30

METHOD_STORED = 0
METHOD_DEFLATE = 8

FLAG_DATA_DESCRIPTOR = 0x08


def extract_single_entry(data: bytes) -> bytes:
    """
    Return the decompressed bytes of the archive's first entry.

    Raises:
        BadMagic: the buffer is not a zip local file header
        Truncated: header or payload runs past the end of the buffer
        UnsupportedCompression: method is neither stored nor deflate
    """
    if len(data) < 4 or data[:4] != LOCAL_HEADER_MAGIC:
        raise BadMagic("Archive does not start with a zip local file header")
    if len(data) < LOCAL_HEADER_SIZE:
        raise Truncated(f"Local file header needs {LOCAL_HEADER_SIZE} bytes, got {len(data)}")

    flags, method = struct.unpack_from("<HH", data, 6)
    (compressed_size,) = struct.unpack_from("<I", data, 18)
    name_len, extra_len = struct.unpack_from("<HH", data, 26)

    start = LOCAL_HEADER_SIZE + name_len + extra_len
    if start > len(data):
        raise Truncated("Archive ends inside the entry name or extra field")

    if method not in (METHOD_STORED, METHOD_DEFLATE):
        raise UnsupportedCompression(method)

    # Streamed entries record their sizes after the payload.
    streamed = bool(flags & FLAG_DATA_DESCRIPTOR) and compressed_size == 0
    if streamed and method == METHOD_DEFLATE:
        return _inflate(data[start:])

    end = start + compressed_size
    if end > len(data):
        raise Truncated(
            f"Entry payload needs {compressed_size} bytes, only {len(data) - start} available"
        )

    payload = data[start:end]
    if method == METHOD_STORED:
        return payload
    return _inflate(payload)


def _inflate(payload: bytes) -> bytes:
    inflater = zlib.decompressobj(-zlib.MAX_WBITS)
    try:
        out = inflater.decompress(payload) + inflater.flush()
    except zlib.error as e:
        raise Truncated(f"Deflate stream is corrupt or incomplete: {e}")
    if not inflater.eof:
        raise Truncated("Deflate stream ended before its final block")
    return out
