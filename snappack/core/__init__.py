"""Deterministic primitives for SnapKit formats."""

from snappack.core.canonical import VOLATILE_FIELD_NAMES, canonical_json, canonicalize
from snappack.core.hashing import compute_content_digest

__all__ = [
    "VOLATILE_FIELD_NAMES",
    "canonicalize",
    "canonical_json",
    "compute_content_digest",
]
