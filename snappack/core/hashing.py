"""Stable content digests for snapshot artifacts."""

from __future__ import annotations

import hashlib


def compute_content_digest(data: bytes) -> str:
    """Compute a deterministic digest for artifact bytes."""
    digest = hashlib.sha256(data).hexdigest()
    return f"sha256:{digest}"
