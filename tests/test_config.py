import json
from pathlib import Path
import tempfile

import pytest

from snappack.config import (
    SnapshotConfig,
    config_from_env,
    config_from_mapping,
    load_config_file,
)
from snappack.context import SnapshotContext
from snappack.exceptions import SnapshotConfigError


def _write_config(path: Path, payload: dict) -> Path:
    path.write_text(json.dumps(payload), encoding="utf-8")
    return path


def test_defaults_use_system_temp_directory() -> None:
    config = config_from_env({})

    assert config == SnapshotConfig()
    assert config.resolved_artifacts_dir() == Path(tempfile.gettempdir())


def test_env_vars_configure_record_diff_tool_and_artifacts(tmp_path: Path) -> None:
    config = config_from_env(
        {
            "SNAPKIT_RECORD": "yes",
            "SNAPKIT_DIFF_TOOL": "ksdiff",
            "SNAPSHOT_ARTIFACTS": str(tmp_path / "failures"),
        }
    )

    assert config.record is True
    assert config.diff_tool == "ksdiff"
    assert config.resolved_artifacts_dir() == tmp_path / "failures"


def test_invalid_record_flag_is_rejected() -> None:
    with pytest.raises(SnapshotConfigError, match="SNAPKIT_RECORD must be a boolean flag"):
        config_from_env({"SNAPKIT_RECORD": "maybe"})


def test_config_file_is_loaded_and_env_overrides_it(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path / "snapkit.json",
        {
            "config_version": 1,
            "record": True,
            "diff_tool": "opendiff",
            "artifacts_dir": str(tmp_path / "from-file"),
        },
    )

    from_file = load_config_file(config_path)
    assert from_file.diff_tool == "opendiff"
    assert from_file.record is True

    merged = config_from_env(
        {
            "SNAPKIT_CONFIG": str(config_path),
            "SNAPKIT_RECORD": "0",
            "SNAPKIT_DIFF_TOOL": "ksdiff",
        }
    )
    assert merged.record is False
    assert merged.diff_tool == "ksdiff"
    assert merged.artifacts_dir == tmp_path / "from-file"


def test_schema_errors_name_source_and_location(tmp_path: Path) -> None:
    config_path = _write_config(
        tmp_path / "snapkit.json",
        {"config_version": 1, "record": "sometimes"},
    )

    with pytest.raises(SnapshotConfigError, match=r"snapkit.json\) at /record"):
        load_config_file(config_path)


def test_unknown_keys_and_versions_are_rejected() -> None:
    with pytest.raises(SnapshotConfigError, match="Invalid snapshot config"):
        config_from_mapping({"config_version": 1, "colour": "red"})
    with pytest.raises(SnapshotConfigError, match="config_version"):
        config_from_mapping({"config_version": 2})


def test_malformed_json_raises_config_error(tmp_path: Path) -> None:
    config_path = tmp_path / "broken.json"
    config_path.write_text("{not json", encoding="utf-8")

    with pytest.raises(SnapshotConfigError, match="Invalid snapshot config JSON"):
        load_config_file(config_path)


def test_context_configure_keeps_omitted_settings(tmp_path: Path) -> None:
    context = SnapshotContext(config=SnapshotConfig(diff_tool="ksdiff"))

    updated = context.configure(artifacts_dir=tmp_path)

    assert updated.diff_tool == "ksdiff"
    assert updated.artifacts_dir == tmp_path
    assert context.configure(diff_tool=None).diff_tool is None
    assert context.config.to_dict() == {
        "record": False,
        "diff_tool": None,
        "artifacts_dir": str(tmp_path),
    }
