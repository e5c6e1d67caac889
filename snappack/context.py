"""Process-scoped snapshot context: config, call-site counters and stale tracking."""

from __future__ import annotations

import atexit
from contextlib import contextmanager
from contextvars import ContextVar
from dataclasses import dataclass, field, replace
from pathlib import Path
import sys
import threading
from typing import Any, Iterator, Mapping, TextIO

from snappack.config import SnapshotConfig, config_from_env
from snappack.naming import CallSiteCounter
from snappack.plugins import StaleReportEvent, get_active_plugin_manager
from snappack.staleness import StaleSnapshotTracker, flatten_stale, render_stale_report

_UNSET: Any = object()

_CURRENT_CONTEXT: ContextVar["SnapshotContext | None"] = ContextVar(
    "snappack_current_snapshot_context", default=None
)
_RECORDING: ContextVar[bool] = ContextVar("snappack_recording", default=False)

_DEFAULT_CONTEXT: "SnapshotContext | None" = None
_DEFAULT_CONTEXT_LOCK = threading.Lock()


@dataclass(slots=True)
class SnapshotContext:
    """Shared state for every snapshot assertion in a process (or an isolated scope)."""

    config: SnapshotConfig = field(default_factory=SnapshotConfig)
    counter: CallSiteCounter = field(default_factory=CallSiteCounter)
    tracker: StaleSnapshotTracker = field(default_factory=StaleSnapshotTracker)
    report_at_exit: bool = False
    _exit_report_installed: bool = field(default=False, init=False, repr=False)
    _lock: threading.Lock = field(
        default_factory=threading.Lock,
        init=False,
        repr=False,
        compare=False,
    )

    @classmethod
    def from_env(
        cls,
        environ: Mapping[str, str] | None = None,
        *,
        report_at_exit: bool = False,
    ) -> "SnapshotContext":
        return cls(config=config_from_env(environ), report_at_exit=report_at_exit)

    def configure(
        self,
        *,
        record: bool = _UNSET,
        diff_tool: str | None = _UNSET,
        artifacts_dir: str | Path | None = _UNSET,
    ) -> SnapshotConfig:
        """Update process-wide settings; omitted arguments keep their value."""
        changes: dict[str, Any] = {}
        if record is not _UNSET:
            changes["record"] = record
        if diff_tool is not _UNSET:
            changes["diff_tool"] = diff_tool
        if artifacts_dir is not _UNSET:
            changes["artifacts_dir"] = Path(artifacts_dir) if artifacts_dir is not None else None
        with self._lock:
            self.config = replace(self.config, **changes)
            return self.config

    def is_recording(self, explicit: bool = False) -> bool:
        return explicit or self.config.record or _RECORDING.get()

    def observe_snapshot(self, source_file: str, directory: Path, path: Path) -> None:
        first_reference = not self.tracker.is_tracking(source_file)
        self.tracker.observe(source_file, directory, path)
        if first_reference and self.report_at_exit:
            self._install_exit_report()

    def take_stale_report(self) -> str:
        """Consume leftover artifacts and render them; later calls only see new leftovers."""
        stale = self.tracker.consume()
        report = render_stale_report(flatten_stale(stale))
        if report:
            get_active_plugin_manager().on_stale_report(
                StaleReportEvent(stale_count=sum(len(paths) for paths in stale.values()), stale=stale)
            )
        return report

    def emit_stale_report(self, *, stream: TextIO | None = None) -> str:
        report = self.take_stale_report()
        if report:
            print(report, file=stream if stream is not None else sys.stdout)
        return report

    def reset(self) -> None:
        """Clear counters and tracked artifacts (test isolation hook)."""
        self.counter.reset()
        self.tracker.reset()

    def _install_exit_report(self) -> None:
        with self._lock:
            if self._exit_report_installed:
                return
            self._exit_report_installed = True
        atexit.register(self.emit_stale_report)


def get_default_context() -> SnapshotContext:
    """Process-wide context built from environment on first use."""
    global _DEFAULT_CONTEXT
    with _DEFAULT_CONTEXT_LOCK:
        if _DEFAULT_CONTEXT is None:
            _DEFAULT_CONTEXT = SnapshotContext.from_env(report_at_exit=True)
        return _DEFAULT_CONTEXT


def peek_default_context() -> SnapshotContext | None:
    """Return the process-wide context only if an assertion already built it."""
    with _DEFAULT_CONTEXT_LOCK:
        return _DEFAULT_CONTEXT


def get_current_context() -> SnapshotContext:
    context = _CURRENT_CONTEXT.get()
    if context is not None:
        return context
    return get_default_context()


@contextmanager
def use_context(context: SnapshotContext) -> Iterator[SnapshotContext]:
    """Route assertions in the current block to ``context``."""
    token = _CURRENT_CONTEXT.set(context)
    try:
        yield context
    finally:
        _CURRENT_CONTEXT.reset(token)


@contextmanager
def recording() -> Iterator[None]:
    """Force every assertion in the current block into record mode."""
    token = _RECORDING.set(True)
    try:
        yield
    finally:
        _RECORDING.reset(token)


def reset_default_context() -> None:
    """Drop the process-wide context; the next assertion rebuilds it from env."""
    global _DEFAULT_CONTEXT
    with _DEFAULT_CONTEXT_LOCK:
        if _DEFAULT_CONTEXT is not None:
            _DEFAULT_CONTEXT.reset()
        _DEFAULT_CONTEXT = None
