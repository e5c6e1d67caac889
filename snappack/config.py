"""Snapshot configuration from environment variables and versioned JSON files."""

from __future__ import annotations

from dataclasses import dataclass, replace
import json
import os
from pathlib import Path
import tempfile
from typing import Any, Mapping

from jsonschema import Draft202012Validator

from snappack.exceptions import SnapshotConfigError

CONFIG_VERSION = 1
CONFIG_ENV_VAR = "SNAPKIT_CONFIG"
ARTIFACTS_ENV_VAR = "SNAPSHOT_ARTIFACTS"
DIFF_TOOL_ENV_VAR = "SNAPKIT_DIFF_TOOL"
RECORD_ENV_VAR = "SNAPKIT_RECORD"

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"", "0", "false", "no", "off"})

CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "SnapKit Config",
    "type": "object",
    "required": ["config_version"],
    "additionalProperties": False,
    "properties": {
        "config_version": {"const": CONFIG_VERSION},
        "record": {"type": "boolean"},
        "diff_tool": {"type": ["string", "null"], "minLength": 1},
        "artifacts_dir": {"type": ["string", "null"], "minLength": 1},
    },
}

_VALIDATOR = Draft202012Validator(CONFIG_SCHEMA)


@dataclass(frozen=True, slots=True)
class SnapshotConfig:
    """Process-level snapshot settings."""

    record: bool = False
    diff_tool: str | None = None
    artifacts_dir: Path | None = None

    def resolved_artifacts_dir(self) -> Path:
        if self.artifacts_dir is not None:
            return self.artifacts_dir
        return Path(tempfile.gettempdir())

    def to_dict(self) -> dict[str, Any]:
        return {
            "record": self.record,
            "diff_tool": self.diff_tool,
            "artifacts_dir": str(self.artifacts_dir) if self.artifacts_dir is not None else None,
        }


def config_from_mapping(raw: Any, *, source: str = "<config>") -> SnapshotConfig:
    """Validate a decoded config payload and build a ``SnapshotConfig``."""
    errors = sorted(_VALIDATOR.iter_errors(raw), key=lambda error: list(error.absolute_path))
    if errors:
        first = errors[0]
        location = "/" + "/".join(str(part) for part in first.absolute_path)
        raise SnapshotConfigError(f"Invalid snapshot config ({source}) at {location}: {first.message}")

    artifacts_dir = raw.get("artifacts_dir")
    return SnapshotConfig(
        record=raw.get("record", False),
        diff_tool=raw.get("diff_tool"),
        artifacts_dir=Path(artifacts_dir) if artifacts_dir else None,
    )


def load_config_file(path: str | Path) -> SnapshotConfig:
    """Load snapshot config from JSON file."""
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except json.JSONDecodeError as error:
        raise SnapshotConfigError(f"Invalid snapshot config JSON ({config_path}): {error}") from error

    return config_from_mapping(raw, source=str(config_path))


def config_from_env(environ: Mapping[str, str] | None = None) -> SnapshotConfig:
    """Build config from ``SNAPKIT_CONFIG`` overlaid with individual env vars."""
    env = os.environ if environ is None else environ

    config_path = env.get(CONFIG_ENV_VAR, "").strip()
    config = load_config_file(config_path) if config_path else SnapshotConfig()

    record = env.get(RECORD_ENV_VAR)
    if record is not None:
        config = replace(config, record=parse_bool(record, name=RECORD_ENV_VAR))

    diff_tool = env.get(DIFF_TOOL_ENV_VAR, "").strip()
    if diff_tool:
        config = replace(config, diff_tool=diff_tool)

    artifacts_dir = env.get(ARTIFACTS_ENV_VAR, "").strip()
    if artifacts_dir:
        config = replace(config, artifacts_dir=Path(artifacts_dir))

    return config


def parse_bool(raw: str, *, name: str) -> bool:
    normalized = raw.strip().lower()
    if normalized in _TRUE_VALUES:
        return True
    if normalized in _FALSE_VALUES:
        return False
    raise SnapshotConfigError(f"{name} must be a boolean flag (1/0, true/false); got {raw!r}")
