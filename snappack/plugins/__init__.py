"""Plugin subsystem for SnapKit lifecycle extensions."""

from snappack.plugins.base import (
    PLUGIN_API_VERSION,
    PLUGIN_CONFIG_ENV_VAR,
    PLUGIN_CONFIG_VERSION,
    LifecyclePlugin,
    SnapshotEndEvent,
    SnapshotStartEvent,
    StaleReportEvent,
)
from snappack.plugins.exceptions import PluginConfigError, PluginError, PluginLoadError
from snappack.plugins.loader import load_plugin_manager_from_file, plugin_manager_from_config
from snappack.plugins.manager import PluginDiagnostic, PluginManager
from snappack.plugins.reference import LifecycleTracePlugin
from snappack.plugins.runtime import (
    get_active_plugin_manager,
    reset_plugin_runtime_cache,
    use_plugin_manager,
    use_plugins_from_config,
)

__all__ = [
    "PLUGIN_API_VERSION",
    "PLUGIN_CONFIG_VERSION",
    "PLUGIN_CONFIG_ENV_VAR",
    "PluginError",
    "PluginConfigError",
    "PluginLoadError",
    "SnapshotStartEvent",
    "SnapshotEndEvent",
    "StaleReportEvent",
    "LifecyclePlugin",
    "PluginDiagnostic",
    "PluginManager",
    "LifecycleTracePlugin",
    "load_plugin_manager_from_file",
    "plugin_manager_from_config",
    "get_active_plugin_manager",
    "use_plugin_manager",
    "use_plugins_from_config",
    "reset_plugin_runtime_cache",
]
