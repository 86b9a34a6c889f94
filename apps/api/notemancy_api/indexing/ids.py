from __future__ import annotations

import base64
import binascii
import hashlib
import re

# Meilisearch accepts alphanumerics, hyphens and underscores, up to 511 bytes.
_DOCUMENT_ID_RE = re.compile(r"^[A-Za-z0-9_-]{1,511}$")
MAX_ID_LENGTH = 511


def id_for(relpath: str) -> str:
    """Stable search-engine key for a note, derived from its relpath only."""
    encoded = base64.urlsafe_b64encode(relpath.encode("utf-8")).decode("ascii").rstrip("=")
    if len(encoded) <= MAX_ID_LENGTH:
        return encoded
    return "h" + hashlib.sha256(relpath.encode("utf-8")).hexdigest()


def relpath_for(document_id: str) -> str | None:
    padded = document_id + "=" * (-len(document_id) % 4)
    try:
        return base64.urlsafe_b64decode(padded.encode("ascii")).decode("utf-8")
    except (binascii.Error, UnicodeDecodeError, ValueError):
        return None


def is_document_id(value: str) -> bool:
    return bool(_DOCUMENT_ID_RE.match(value))
