"""Canonical certificate serialization and content-derived certificate ids."""

from __future__ import annotations

import hashlib
import json
from typing import Any

import rfc8785

CANONICALIZATION_JSON_STRINGIFY = "json-stringify"
CANONICALIZATION_RFC8785 = "rfc8785"


def serialize_json_stringify(data: Any) -> str:
    """Compact JSON in member insertion order, matching ``JSON.stringify`` output.

    Certificates already stored in Redis were written this way, so their ids
    can only be reproduced from this exact text.
    """
    return json.dumps(data, separators=(",", ":"), ensure_ascii=False, allow_nan=False)


def serialize_jcs(data: Any) -> str:
    """Return RFC 8785 (JCS) canonical text."""
    canonical = rfc8785.dumps(data)
    if isinstance(canonical, bytes):
        return canonical.decode("utf-8")
    return str(canonical)


def serialize_certificate(data: Any, *, canonicalization: str) -> str:
    """Serialize a certificate for storage with the selected canonicalization mode."""
    if canonicalization == CANONICALIZATION_JSON_STRINGIFY:
        return serialize_json_stringify(data)
    if canonicalization == CANONICALIZATION_RFC8785:
        return serialize_jcs(data)
    raise ValueError(f"Unsupported canonicalization mode: {canonicalization}")


def certificate_id(serialized: str) -> str:
    """MD5 hex digest of a serialized certificate; the certificate's identity."""
    return hashlib.md5(serialized.encode("utf-8"), usedforsecurity=False).hexdigest()
