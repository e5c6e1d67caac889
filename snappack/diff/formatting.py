"""Hunk grouping and patch rendering for line diffs."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Sequence

from snappack.diff.engine import diff_lines
from snappack.diff.models import (
    DELETE_PREFIX,
    INSERT_PREFIX,
    KEEP_PREFIX,
    Attachment,
    Difference,
    DiffReport,
    Hunk,
)

DEFAULT_CONTEXT_LINES = 4
PATCH_ATTACHMENT_NAME = "difference.patch"
PATCH_UNIFORM_TYPE = "public.patch-file"


@dataclass(slots=True)
class _HunkBuilder:
    old_start: int
    new_start: int
    old_length: int = 0
    new_length: int = 0
    lines: list[str] = field(default_factory=list)

    def keep(self, elements: Sequence[str]) -> None:
        self.old_length += len(elements)
        self.new_length += len(elements)
        self.lines.extend(KEEP_PREFIX + line for line in elements)

    def delete(self, elements: Sequence[str]) -> None:
        self.old_length += len(elements)
        self.lines.extend(DELETE_PREFIX + line for line in elements)

    def insert(self, elements: Sequence[str]) -> None:
        self.new_length += len(elements)
        self.lines.extend(INSERT_PREFIX + line for line in elements)

    def build(self) -> Hunk:
        return Hunk(
            old_start=self.old_start,
            old_length=self.old_length,
            new_start=self.new_start,
            new_length=self.new_length,
            lines=tuple(self.lines),
        )


def chunk(
    differences: Sequence[Difference],
    *,
    context: int = DEFAULT_CONTEXT_LINES,
) -> list[Hunk]:
    """Group an edit script into hunks with ``context`` unchanged lines around edits.

    Edits separated by at most ``2 * context`` unchanged lines share a hunk.
    """
    context = max(0, context)
    hunks: list[Hunk] = []
    current: _HunkBuilder | None = None
    old_index = 0
    new_index = 0
    last_position = len(differences) - 1

    for position, difference in enumerate(differences):
        elements = difference.elements
        length = len(elements)

        if difference.which == "both":
            is_last = position == last_position
            if current is None:
                if not is_last:
                    lead = elements[max(length - context, 0) :]
                    current = _HunkBuilder(
                        old_start=old_index + length - len(lead),
                        new_start=new_index + length - len(lead),
                    )
                    current.keep(lead)
            elif is_last or length > context * 2:
                current.keep(elements[:context])
                hunks.append(current.build())
                current = None
                if not is_last:
                    lead = elements[max(length - context, 0) :]
                    current = _HunkBuilder(
                        old_start=old_index + length - len(lead),
                        new_start=new_index + length - len(lead),
                    )
                    current.keep(lead)
            else:
                current.keep(elements)
            old_index += length
            new_index += length
            continue

        if current is None:
            current = _HunkBuilder(old_start=old_index, new_start=new_index)
        if difference.which == "first":
            current.delete(elements)
            old_index += length
        else:
            current.insert(elements)
            new_index += length

    if current is not None:
        hunks.append(current.build())
    return [hunk for hunk in hunks if hunk.has_changes]


def render_hunks(hunks: Sequence[Hunk]) -> str:
    lines: list[str] = []
    for hunk in hunks:
        lines.append(hunk.patch_mark)
        lines.extend(hunk.lines)
    return "\n".join(lines)


def split_lines(text: str) -> list[str]:
    """Split on ``\\n`` keeping empty interior and trailing lines."""
    return text.split("\n")


def line_diff(
    old: str,
    new: str,
    *,
    context: int = DEFAULT_CONTEXT_LINES,
) -> DiffReport | None:
    """Diff two texts line by line; ``None`` when they are identical."""
    if old == new:
        return None

    hunks = chunk(diff_lines(split_lines(old), split_lines(new)), context=context)
    patch = render_hunks(hunks)
    return DiffReport(
        message=f"Diff:\n\n{patch}",
        attachments=(
            Attachment.from_text(
                PATCH_ATTACHMENT_NAME,
                patch,
                media_type="text/x-diff",
                uniform_type_identifier=PATCH_UNIFORM_TYPE,
            ),
        ),
    )
