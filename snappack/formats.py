"""Diffable formats: byte codecs with a diff hook for snapshot artifacts."""

from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Callable, Generic, TypeVar

from snappack.core.hashing import compute_content_digest
from snappack.diff import DiffReport, line_diff

F = TypeVar("F")


@dataclass(frozen=True, slots=True)
class Diffable(Generic[F]):
    """Serialize, deserialize and diff a snapshot format value.

    ``diff(reference, current)`` returns ``None`` when the two values are
    equal byte for byte, and a ``DiffReport`` describing the mismatch
    otherwise.
    """

    to_bytes: Callable[[F], bytes]
    from_bytes: Callable[[bytes], F]
    diff: Callable[[F, F], DiffReport | None]
    file_extension: str | None = None

    def with_extension(self, file_extension: str | None) -> "Diffable[F]":
        return replace(self, file_extension=file_extension)


def _diff_data(reference: bytes, current: bytes) -> DiffReport | None:
    if reference == current:
        return None
    return DiffReport(
        message=(
            f"Expected {len(reference)} bytes ({compute_content_digest(reference)}), "
            f"got {len(current)} bytes ({compute_content_digest(current)})"
        ),
    )


def _encode_text(value: str) -> bytes:
    return value.encode("utf-8")


def _decode_text(data: bytes) -> str:
    return data.decode("utf-8", errors="replace")


DATA: Diffable[bytes] = Diffable(
    to_bytes=bytes,
    from_bytes=bytes,
    diff=_diff_data,
    file_extension=None,
)

LINES: Diffable[str] = Diffable(
    to_bytes=_encode_text,
    from_bytes=_decode_text,
    diff=line_diff,
    file_extension="txt",
)


def lines_with_context(context: int) -> Diffable[str]:
    """Return a text format whose diff hunks carry ``context`` unchanged lines."""

    def diff(reference: str, current: str) -> DiffReport | None:
        return line_diff(reference, current, context=context)

    return replace(LINES, diff=diff)
