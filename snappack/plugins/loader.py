"""Versioned plugin configuration loader."""

from __future__ import annotations

import importlib
import inspect
import json
from pathlib import Path
from typing import Any

from jsonschema import Draft202012Validator

from snappack.plugins.base import PLUGIN_API_VERSION, PLUGIN_CONFIG_VERSION
from snappack.plugins.exceptions import PluginConfigError, PluginLoadError
from snappack.plugins.manager import PluginManager

PLUGIN_CONFIG_SCHEMA: dict[str, Any] = {
    "$schema": "https://json-schema.org/draft/2020-12/schema",
    "title": "SnapKit Plugin Config",
    "type": "object",
    "required": ["config_version", "plugins"],
    "properties": {
        "config_version": {"type": "integer"},
        "plugins": {
            "type": "array",
            "items": {
                "type": "object",
                "required": ["entrypoint"],
                "additionalProperties": False,
                "properties": {
                    "entrypoint": {"type": "string", "pattern": r"^[\w.]+:[\w.]+$"},
                    "options": {"type": "object"},
                    "enabled": {"type": "boolean"},
                },
            },
        },
    },
}

_VALIDATOR = Draft202012Validator(PLUGIN_CONFIG_SCHEMA)


def load_plugin_manager_from_file(path: str | Path) -> PluginManager:
    """Load a plugin manager from JSON config."""
    config_path = Path(path)
    try:
        raw = json.loads(config_path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        raise
    except json.JSONDecodeError as error:
        raise PluginConfigError(f"Invalid plugin config JSON ({config_path}): {error}") from error

    return plugin_manager_from_config(raw, source=str(config_path))


def plugin_manager_from_config(raw: Any, *, source: str = "<config>") -> PluginManager:
    errors = sorted(_VALIDATOR.iter_errors(raw), key=lambda error: list(error.absolute_path))
    if errors:
        first = errors[0]
        location = "/" + "/".join(str(part) for part in first.absolute_path)
        raise PluginConfigError(f"Invalid plugin config ({source}) at {location}: {first.message}")

    version = raw["config_version"]
    if version != PLUGIN_CONFIG_VERSION:
        raise PluginConfigError(
            "Unsupported plugin config version "
            f"{version!r}; expected {PLUGIN_CONFIG_VERSION}."
        )

    plugins = [
        _load_plugin(entry["entrypoint"], options=entry.get("options", {}), index=index)
        for index, entry in enumerate(raw["plugins"], start=1)
        if entry.get("enabled", True)
    ]
    return PluginManager(plugins=tuple(plugins))


def _load_plugin(entrypoint: str, *, options: dict[str, Any], index: int) -> object:
    module_name, _, attribute = entrypoint.partition(":")
    try:
        module = importlib.import_module(module_name)
    except Exception as error:
        raise PluginLoadError(
            f"Plugin entry #{index} failed to import module '{module_name}': {error}",
            entrypoint=entrypoint,
        ) from error

    target = getattr(module, attribute, None)
    if target is None:
        raise PluginLoadError(
            f"Plugin entry #{index} could not find attribute '{attribute}' in '{module_name}'.",
            entrypoint=entrypoint,
        )

    if inspect.isclass(target) or callable(target):
        try:
            plugin = target(**options)
        except Exception as error:
            raise PluginLoadError(
                f"Plugin entry #{index} failed to instantiate '{entrypoint}' "
                f"with options {sorted(options.keys())}: {error}",
                entrypoint=entrypoint,
            ) from error
    elif options:
        raise PluginLoadError(
            f"Plugin entry #{index} uses non-callable '{entrypoint}' and cannot accept options.",
            entrypoint=entrypoint,
        )
    else:
        plugin = target

    version = str(getattr(plugin, "api_version", PLUGIN_API_VERSION))
    expected_major = PLUGIN_API_VERSION.split(".", 1)[0]
    if version.split(".", 1)[0] != expected_major:
        raise PluginLoadError(
            f"Plugin entry #{index} '{entrypoint}' declares unsupported api_version "
            f"{version!r}; supported major version is {expected_major}.",
            entrypoint=entrypoint,
        )
    return plugin
