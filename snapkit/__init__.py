"""Stable public API surface for SnapKit.

This module is the supported import path for library users.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any

from snappack.config import SnapshotConfig
from snappack.context import (
    SnapshotContext,
    get_current_context,
    recording,
    reset_default_context,
    use_context,
)
from snappack.diff import DEFAULT_CONTEXT_LINES, DiffReport, line_diff
from snappack.exceptions import (
    MismatchError,
    RecordingEvent,
    ReductionTimeoutError,
    SnapshotConfigError,
    SnapshotError,
    SnapshotFormatError,
    SnapshotIOError,
)
from snappack.formats import DATA, LINES, Diffable
from snappack.snapshot import (
    SnapshotResult,
    assert_snapshot,
    assert_snapshot_async,
    compare_snapshot_file,
    verify_snapshot,
    verify_snapshot_async,
)
from snappack.strategies import (
    Describable,
    Strategy,
    data,
    dump,
    json,
    json_strategy,
    lines,
    plist,
    plist_strategy,
    raw_request,
)

__version__ = "0.1.0"

_UNSET: Any = object()


def configure(
    *,
    record: bool = _UNSET,
    diff_tool: str | None = _UNSET,
    artifacts_dir: str | Path | None = _UNSET,
) -> SnapshotConfig:
    """Update settings of the active snapshot context.

    Args:
        record: Overwrite artifacts instead of comparing against them.
        diff_tool: External diff command shown in failure messages, e.g.
            ``"ksdiff"``. ``None`` restores the ``@-``/``@+`` markers.
        artifacts_dir: Directory receiving failure artifacts. ``None``
            restores the system temp directory.

    Returns:
        The updated configuration.
    """
    changes: dict[str, Any] = {}
    if record is not _UNSET:
        changes["record"] = record
    if diff_tool is not _UNSET:
        changes["diff_tool"] = diff_tool
    if artifacts_dir is not _UNSET:
        changes["artifacts_dir"] = artifacts_dir
    return get_current_context().configure(**changes)


def diff_text(old: str, new: str, *, context: int = DEFAULT_CONTEXT_LINES) -> DiffReport | None:
    """Line diff two texts; ``None`` when they are identical."""
    return line_diff(old, new, context=context)


def snapshot_file(
    name: str,
    candidate: str | Path,
    *,
    snapshots_dir: str | Path = "__Snapshots__",
    record: bool = False,
    strategy: Strategy[Any, Any] = lines,
) -> SnapshotResult:
    """Record or compare a file on disk against a named baseline artifact.

    Args:
        name: Baseline name, stored as ``<name>.<extension>``.
        candidate: Candidate file path.
        snapshots_dir: Directory holding baseline artifacts.
        record: Overwrite the baseline with the candidate.
        strategy: ``lines`` for text files, ``data`` for raw bytes.

    Returns:
        Snapshot result; call ``raise_for_status()`` to assert.
    """
    return compare_snapshot_file(
        snapshot_name=name,
        candidate_path=candidate,
        snapshots_dir=snapshots_dir,
        strategy=strategy,
        record=record,
    )


__all__ = [
    "__version__",
    "Diffable",
    "DATA",
    "LINES",
    "Strategy",
    "Describable",
    "lines",
    "data",
    "json",
    "json_strategy",
    "plist",
    "plist_strategy",
    "dump",
    "raw_request",
    "SnapshotConfig",
    "SnapshotContext",
    "SnapshotResult",
    "DiffReport",
    "SnapshotError",
    "RecordingEvent",
    "MismatchError",
    "ReductionTimeoutError",
    "SnapshotFormatError",
    "SnapshotIOError",
    "SnapshotConfigError",
    "assert_snapshot",
    "assert_snapshot_async",
    "verify_snapshot",
    "verify_snapshot_async",
    "snapshot_file",
    "diff_text",
    "configure",
    "recording",
    "use_context",
    "reset_default_context",
]
