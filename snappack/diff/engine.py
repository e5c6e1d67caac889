"""Minimal line diff engine based on a longest-common-subsequence table."""

from __future__ import annotations

from typing import Sequence

from snappack.diff.models import Difference, DiffSide


def diff_lines(old: Sequence[str], new: Sequence[str]) -> list[Difference]:
    """Compute a minimal edit script between two line sequences.

    Runs of kept, deleted and inserted lines are merged into ``Difference``
    entries. Inside a changed block deletions are always emitted before
    insertions, so the output is deterministic for equal inputs.
    """
    old_lines = list(old)
    new_lines = list(new)

    prefix = _common_prefix_length(old_lines, new_lines)
    suffix = _common_suffix_length(old_lines[prefix:], new_lines[prefix:])

    old_middle = old_lines[prefix : len(old_lines) - suffix]
    new_middle = new_lines[prefix : len(new_lines) - suffix]

    ops: list[tuple[DiffSide, str]] = [("both", line) for line in old_lines[:prefix]]
    ops.extend(_edit_script(old_middle, new_middle))
    ops.extend(("both", line) for line in old_lines[len(old_lines) - suffix :])

    return _group(ops)


def _edit_script(old: list[str], new: list[str]) -> list[tuple[DiffSide, str]]:
    rows = len(old)
    cols = len(new)
    # lcs[i][j] is the LCS length of old[i:] and new[j:].
    lcs = [[0] * (cols + 1) for _ in range(rows + 1)]
    for i in range(rows - 1, -1, -1):
        row = lcs[i]
        below = lcs[i + 1]
        for j in range(cols - 1, -1, -1):
            if old[i] == new[j]:
                row[j] = below[j + 1] + 1
            else:
                row[j] = max(below[j], row[j + 1])

    ops: list[tuple[DiffSide, str]] = []
    i = 0
    j = 0
    while i < rows and j < cols:
        if old[i] == new[j]:
            ops.append(("both", old[i]))
            i += 1
            j += 1
        elif lcs[i + 1][j] >= lcs[i][j + 1]:
            ops.append(("first", old[i]))
            i += 1
        else:
            ops.append(("second", new[j]))
            j += 1
    ops.extend(("first", line) for line in old[i:])
    ops.extend(("second", line) for line in new[j:])
    return ops


def _group(ops: list[tuple[DiffSide, str]]) -> list[Difference]:
    differences: list[Difference] = []
    kept: list[str] = []
    deleted: list[str] = []
    inserted: list[str] = []

    def flush_changes() -> None:
        if deleted:
            differences.append(Difference(which="first", elements=tuple(deleted)))
            deleted.clear()
        if inserted:
            differences.append(Difference(which="second", elements=tuple(inserted)))
            inserted.clear()

    for which, line in ops:
        if which == "both":
            flush_changes()
            kept.append(line)
            continue
        if kept:
            differences.append(Difference(which="both", elements=tuple(kept)))
            kept.clear()
        if which == "first":
            deleted.append(line)
        else:
            inserted.append(line)

    flush_changes()
    if kept:
        differences.append(Difference(which="both", elements=tuple(kept)))
    return differences


def _common_prefix_length(left: list[str], right: list[str]) -> int:
    limit = min(len(left), len(right))
    idx = 0
    while idx < limit and left[idx] == right[idx]:
        idx += 1
    return idx


def _common_suffix_length(left: list[str], right: list[str]) -> int:
    limit = min(len(left), len(right))
    idx = 0
    while idx < limit and left[-1 - idx] == right[-1 - idx]:
        idx += 1
    return idx
