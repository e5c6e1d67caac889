"""Snapshot artifact naming and per-call-site counters."""

from __future__ import annotations

from dataclasses import dataclass, field
import inspect
from pathlib import Path
import threading
from types import CodeType

from snappack.exceptions import SnapshotConfigError

SNAPSHOTS_DIRNAME = "__Snapshots__"


@dataclass(frozen=True, slots=True)
class CallSite:
    source_file: str
    function: str


@dataclass(slots=True)
class CallSiteCounter:
    """Process-wide counter keyed by snapshot directory and test function."""

    _counts: dict[tuple[str, str], int] = field(default_factory=dict, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock,
        init=False,
        repr=False,
        compare=False,
    )

    def next(self, directory: str | Path, function: str) -> int:
        """Return the next index for the call site, starting at 0."""
        key = (str(directory), function)
        with self._lock:
            value = self._counts.get(key, 0)
            self._counts[key] = value + 1
            return value

    def reset(self) -> None:
        with self._lock:
            self._counts.clear()


def resolve_call_site(
    *,
    file: str | Path | None = None,
    function: str | None = None,
    stacklevel: int = 1,
) -> CallSite:
    """Resolve source file and function of the frame ``stacklevel`` levels above the caller."""
    if file is not None and function is not None:
        return CallSite(source_file=str(Path(file).resolve()), function=function)

    frame = inspect.currentframe()
    try:
        caller = frame.f_back if frame is not None else None
        for _ in range(stacklevel):
            if caller is None:
                break
            caller = caller.f_back
        if caller is None:
            raise SnapshotConfigError("unable to resolve snapshot call site; pass file= and function=")

        code = caller.f_code
        source_file = file if file is not None else code.co_filename
        function_name = function if function is not None else _function_name(code)
    finally:
        del frame

    return CallSite(source_file=str(Path(source_file).resolve()), function=function_name)


def _function_name(code: CodeType) -> str:
    name = code.co_qualname.replace("<locals>.", "")
    return name.strip("<>") or "module"


def snapshot_directory(source_file: str | Path) -> Path:
    """``<dir of source>/__Snapshots__/<source stem>``."""
    source = Path(source_file)
    return source.parent / SNAPSHOTS_DIRNAME / source.stem


def sanitize_identifier(name: str) -> str:
    normalized = name.strip()
    if not normalized:
        raise SnapshotConfigError("snapshot name must be non-empty")
    if "/" in normalized or "\\" in normalized:
        raise SnapshotConfigError("snapshot name must not include path separators")
    return normalized


def snapshot_file_name(function: str, identifier: str, path_extension: str | None) -> str:
    """``<function>.<identifier>`` plus ``.<extension>`` when one is declared."""
    base = f"{function}.{identifier}"
    if path_extension:
        return f"{base}.{path_extension.lstrip('.')}"
    return base
