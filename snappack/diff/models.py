"""Data models for line diffs, hunks and diff attachments."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Literal

DiffSide = Literal["both", "first", "second"]

KEEP_PREFIX = " "
DELETE_PREFIX = "-"
INSERT_PREFIX = "+"


@dataclass(frozen=True, slots=True)
class Difference:
    """A run of consecutive lines that are kept, deleted or inserted.

    ``first`` marks lines only present in the old sequence (deletions),
    ``second`` lines only present in the new sequence (insertions), and
    ``both`` lines common to the two.
    """

    which: DiffSide
    elements: tuple[str, ...]

    def to_dict(self) -> dict[str, Any]:
        return {
            "which": self.which,
            "elements": list(self.elements),
        }


@dataclass(frozen=True, slots=True)
class Hunk:
    """Grouped line edits with surrounding context and range header."""

    old_start: int
    old_length: int
    new_start: int
    new_length: int
    lines: tuple[str, ...] = ()

    @property
    def patch_mark(self) -> str:
        return (
            f"@@ -{self.old_start + 1},{self.old_length} "
            f"+{self.new_start + 1},{self.new_length} @@"
        )

    @property
    def has_changes(self) -> bool:
        return any(
            line.startswith(DELETE_PREFIX) or line.startswith(INSERT_PREFIX)
            for line in self.lines
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "patch_mark": self.patch_mark,
            "old_start": self.old_start + 1,
            "old_length": self.old_length,
            "new_start": self.new_start + 1,
            "new_length": self.new_length,
            "lines": list(self.lines),
        }


@dataclass(frozen=True, slots=True)
class Attachment:
    """Named diagnostic payload produced alongside a failure message."""

    name: str
    content: bytes
    media_type: str = "text/plain"
    uniform_type_identifier: str | None = None

    @classmethod
    def from_text(
        cls,
        name: str,
        text: str,
        *,
        media_type: str = "text/plain",
        uniform_type_identifier: str | None = None,
    ) -> "Attachment":
        return cls(
            name=name,
            content=text.encode("utf-8"),
            media_type=media_type,
            uniform_type_identifier=uniform_type_identifier,
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "name": self.name,
            "media_type": self.media_type,
            "uniform_type_identifier": self.uniform_type_identifier,
            "size": len(self.content),
        }


@dataclass(frozen=True, slots=True)
class DiffReport:
    """Failure message plus ordered attachments for a format mismatch."""

    message: str
    attachments: tuple[Attachment, ...] = field(default_factory=tuple)

    def to_dict(self) -> dict[str, Any]:
        return {
            "message": self.message,
            "attachments": [attachment.to_dict() for attachment in self.attachments],
        }
