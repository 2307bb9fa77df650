"""Store identifiers: generation and the validity check used by by-id lookups."""

from __future__ import annotations

import re
import secrets
import time
from typing import Any, Optional

OBJECT_ID_LENGTH = 24
_OBJECT_ID_RE = re.compile(r"^[0-9a-fA-F]{24}$")


def new_object_id() -> str:
    """Return a fresh 24-character hex id: 4 bytes of epoch seconds, 8 random bytes."""
    return f"{int(time.time()) & 0xFFFFFFFF:08x}{secrets.token_hex(8)}"


def parse_object_id(value: Any) -> Optional[str]:
    """Return the normalized id, or None when ``value`` is not a well-formed id.

    Callers treat None exactly like a missing document, so a malformed id and
    an unknown id look the same from the outside.
    """
    if not isinstance(value, str) or not _OBJECT_ID_RE.match(value):
        return None
    return value.lower()
