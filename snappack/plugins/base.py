"""Versioned plugin interfaces and snapshot lifecycle event payloads."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Literal

PLUGIN_API_VERSION = "1.0"
PLUGIN_CONFIG_VERSION = 1
PLUGIN_CONFIG_ENV_VAR = "SNAPKIT_PLUGIN_CONFIG"

SnapshotEventStatus = Literal["recorded", "pass", "fail", "error"]


@dataclass(frozen=True, slots=True)
class SnapshotStartEvent:
    identifier: str
    snapshot_path: str
    source_file: str
    function: str
    recording: bool

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class SnapshotEndEvent:
    identifier: str
    snapshot_path: str
    status: SnapshotEventStatus
    failure_path: str | None = None
    attachment_names: tuple[str, ...] = ()
    error_type: str | None = None
    error_message: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


@dataclass(frozen=True, slots=True)
class StaleReportEvent:
    stale_count: int
    stale: dict[str, list[str]]

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)


class LifecyclePlugin:
    """Base no-op lifecycle plugin interface (API v1.x)."""

    api_version = PLUGIN_API_VERSION
    name = "lifecycle-plugin"

    def on_snapshot_start(self, event: SnapshotStartEvent) -> None:
        return None

    def on_snapshot_end(self, event: SnapshotEndEvent) -> None:
        return None

    def on_stale_report(self, event: StaleReportEvent) -> None:
        return None
