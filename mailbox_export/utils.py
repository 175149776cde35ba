"""Utility helpers shared across modules."""

from __future__ import annotations

import base64
import re
from datetime import UTC, datetime
from hashlib import sha256

_UNSAFE_CHARS = re.compile(r'[\\/:*?"<>|]')


def parse_graph_datetime(value: str) -> datetime:
    """Convert Graph ISO strings (with trailing Z) into aware UTC datetimes."""
    return datetime.fromisoformat(value.replace("Z", "+00:00")).astimezone(UTC)


def ensure_utc(dt: datetime) -> datetime:
    """Force a datetime into UTC without altering instant."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=UTC)
    return dt.astimezone(UTC)


def received_stamp(dt: datetime) -> str:
    """Render a received timestamp as ``yyyyMMdd_HHmmss``."""
    return ensure_utc(dt).strftime("%Y%m%d_%H%M%S")


def sanitize_name(value: str | None) -> str:
    """Replace characters Windows and POSIX refuse in file names with ``_``."""
    return _UNSAFE_CHARS.sub("_", value or "")


def decode_content(content_bytes: str) -> bytes:
    """Decode a Graph ``contentBytes`` payload."""
    return base64.b64decode(content_bytes)


def sha256_hex(payload: bytes) -> str:
    """Convenience wrapper for hex digests."""
    return sha256(payload).hexdigest()
