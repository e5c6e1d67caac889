"""Reference lifecycle plugin writing snapshot outcomes to NDJSON."""

from __future__ import annotations

from dataclasses import dataclass, field
import json
from pathlib import Path
import threading

from snappack.plugins.base import (
    LifecyclePlugin,
    SnapshotEndEvent,
    SnapshotStartEvent,
    StaleReportEvent,
)


@dataclass(slots=True)
class LifecycleTracePlugin(LifecyclePlugin):
    """Appends one JSON line per hook call, e.g. for CI artifact collection."""

    output_path: str = "snapshot-artifacts/lifecycle-trace.ndjson"
    name: str = "lifecycle-trace"
    _lock: threading.Lock = field(default_factory=threading.Lock, init=False, repr=False)

    def on_snapshot_start(self, event: SnapshotStartEvent) -> None:
        self._append("on_snapshot_start", event.to_dict())

    def on_snapshot_end(self, event: SnapshotEndEvent) -> None:
        self._append("on_snapshot_end", event.to_dict())

    def on_stale_report(self, event: StaleReportEvent) -> None:
        self._append("on_stale_report", event.to_dict())

    def _append(self, hook: str, event: dict) -> None:
        path = Path(self.output_path)
        line = json.dumps(
            {"hook": hook, "plugin": self.name, "event": event},
            ensure_ascii=True,
            sort_keys=True,
            separators=(",", ":"),
        )
        with self._lock:
            path.parent.mkdir(parents=True, exist_ok=True)
            with path.open("a", encoding="utf-8") as handle:
                handle.write(line + "\n")
