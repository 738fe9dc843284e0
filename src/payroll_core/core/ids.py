"""Canonical ID and timestamp factories.

All modules import from here instead of defining local _uuid()/_now() copies.

ID Categories
-------------
1. Entity IDs: UUID v4 strings (employee_id, department_id, event_id, ...)
2. Content-derived IDs: SHA256[:N] deterministic hashes (payment references)

Timestamp Rule
--------------
All timestamps are ``datetime`` with ``tzinfo=timezone.utc``, never naive.
"""

from __future__ import annotations

import hashlib
import uuid
from datetime import datetime, timezone


def new_id() -> str:
    """Generate a new UUID v4 string.  Use for all entity IDs."""
    return str(uuid.uuid4())


def utc_now() -> datetime:
    """Return the current UTC time as a timezone-aware datetime."""
    return datetime.now(timezone.utc)


def content_hash(*parts: str, length: int = 16) -> str:
    """Generate a deterministic SHA256-based ID from content strings.

    Use for default payment references and idempotency keys.
    Concatenates all *parts* with ``':'`` before hashing.

    Parameters
    ----------
    *parts:
        Strings to hash together.
    length:
        Number of hex characters to return (default 16).
    """
    raw = ":".join(parts)
    return hashlib.sha256(raw.encode()).hexdigest()[:length]
