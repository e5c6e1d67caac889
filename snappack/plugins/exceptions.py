"""Snapshot plugin exceptions."""

from __future__ import annotations


class PluginError(Exception):
    """Base class for SnapKit plugin errors."""


class PluginConfigError(PluginError):
    """Plugin config file is malformed or declares an unsupported version."""


class PluginLoadError(PluginError):
    """Plugin entrypoint could not be imported, instantiated or validated."""

    def __init__(self, message: str, *, entrypoint: str | None = None) -> None:
        super().__init__(message)
        self.entrypoint = entrypoint
