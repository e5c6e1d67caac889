"""Tracking of on-disk snapshot artifacts never referenced during a run."""

from __future__ import annotations

import ast
from dataclasses import dataclass, field
from pathlib import Path
import threading
from typing import Iterable

from snappack.naming import SNAPSHOTS_DIRNAME


@dataclass(slots=True)
class StaleSnapshotTracker:
    """Per source file set of artifact paths not yet touched by an assertion.

    The directory listing is taken on the first reference to a source file;
    every resolved artifact path is removed as assertions run. Whatever is
    left at the end of the process is stale. Nothing is ever deleted.
    """

    _tracked: dict[str, set[str]] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock,
        init=False,
        repr=False,
        compare=False,
    )

    def observe(self, source_file: str, directory: str | Path, path: str | Path) -> None:
        """Start tracking ``directory`` for ``source_file`` if needed and touch ``path``."""
        with self._lock:
            tracked = self._tracked.get(source_file)
            if tracked is None:
                tracked = _list_artifacts(Path(directory))
                self._tracked[source_file] = tracked
            tracked.discard(str(path))

    def is_tracking(self, source_file: str) -> bool:
        with self._lock:
            return source_file in self._tracked

    def stale(self) -> dict[str, list[str]]:
        with self._lock:
            return {
                source: sorted(paths)
                for source, paths in sorted(self._tracked.items())
                if paths
            }

    def consume(self) -> dict[str, list[str]]:
        """Return stale artifacts and stop reporting them."""
        with self._lock:
            stale = {
                source: sorted(paths)
                for source, paths in sorted(self._tracked.items())
                if paths
            }
            for paths in self._tracked.values():
                paths.clear()
            return stale

    def reset(self) -> None:
        with self._lock:
            self._tracked.clear()


def _list_artifacts(directory: Path) -> set[str]:
    try:
        entries = list(directory.iterdir())
    except (FileNotFoundError, NotADirectoryError):
        return set()
    return {
        str(entry)
        for entry in entries
        if not entry.name.startswith(".") and entry.is_file()
    }


def flatten_stale(stale: dict[str, list[str]]) -> list[str]:
    return sorted(path for paths in stale.values() for path in paths)


def render_stale_report(paths: Iterable[str]) -> str:
    """Render the advisory stale report; empty string when nothing is stale."""
    stale_paths = sorted(paths)
    if not stale_paths:
        return ""
    count = len(stale_paths)
    listing = "\n".join(f'  - "{path}"' for path in stale_paths)
    return f"\nFound {count} stale snapshot{'' if count == 1 else 's'}:\n\n{listing}\n"


def scan_stale_artifacts(root: str | Path) -> list[str]:
    """List artifacts under ``root`` whose test function no longer exists.

    Offline approximation of the exit-time report: an artifact
    ``__Snapshots__/<stem>/<function>.<identifier>[.<ext>]`` is stale when
    ``<stem>.py`` next to the ``__Snapshots__`` directory defines no function
    whose qualified name is a dotted prefix of the artifact name.
    """
    stale: list[str] = []
    for snapshots_dir in sorted(Path(root).rglob(SNAPSHOTS_DIRNAME)):
        if not snapshots_dir.is_dir():
            continue
        for source_dir in sorted(snapshots_dir.iterdir()):
            if not source_dir.is_dir() or source_dir.name.startswith("."):
                continue
            source_file = snapshots_dir.parent / f"{source_dir.name}.py"
            defined = _defined_functions(source_file)
            for artifact in sorted(_list_artifacts(source_dir)):
                if not _is_referenced(Path(artifact).name, defined):
                    stale.append(artifact)
    return stale


def _defined_functions(source_file: Path) -> set[str]:
    try:
        tree = ast.parse(source_file.read_text(encoding="utf-8"), filename=str(source_file))
    except FileNotFoundError:
        return set()

    names: set[str] = set()

    def visit(node: ast.AST, prefix: str) -> None:
        for child in ast.iter_child_nodes(node):
            if isinstance(child, (ast.FunctionDef, ast.AsyncFunctionDef)):
                qualname = f"{prefix}{child.name}"
                names.add(qualname)
                visit(child, f"{qualname}.")
            elif isinstance(child, ast.ClassDef):
                visit(child, f"{prefix}{child.name}.")

    visit(tree, "")
    return names


def _is_referenced(artifact_name: str, defined: set[str]) -> bool:
    parts = artifact_name.split(".")
    return any(".".join(parts[:size]) in defined for size in range(1, len(parts)))
