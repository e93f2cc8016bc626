"""YAML configuration loader for the build cache.

This module applies the ``build_cache`` section of a YAML file to a
:class:`~buildcache.configuration.BuildCacheConfiguration`:

.. code-block:: yaml

    build_cache:
      local:
        enabled: true
        push: true
        directory: .cache/build
        remove_unused_entries_after_days: 14
      remote:
        type: http
        enabled: true
        push: false
        settings:
          url: https://cache.example.com/cache/
"""

from pathlib import Path
from typing import Any, Dict, Optional

import yaml

from buildcache.configuration import (
    BuildCacheConfiguration,
    LocalBuildCache,
    RemoteBuildCache,
)
from buildcache.core.exceptions import BuildCacheError

SECTION = "build_cache"

_LOCAL_KEYS = {"enabled", "push", "directory", "remove_unused_entries_after_days"}
_REMOTE_KEYS = {"type", "enabled", "push", "settings"}


class ConfigError(BuildCacheError):
    """Configuration parsing or validation error."""

    pass


def load_config(
    config_path: Path, configuration: Optional[BuildCacheConfiguration] = None
) -> BuildCacheConfiguration:
    """
    Load build cache settings from a YAML file.

    Args:
        config_path: Path to YAML file
        configuration: Configuration to apply settings to (default: new one)

    Returns:
        The configuration the settings were applied to

    Raises:
        ConfigError: If the file is missing or invalid
    """
    config_path = Path(config_path)
    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML syntax: {e}")

    if configuration is None:
        configuration = BuildCacheConfiguration()

    if data is None:
        return configuration
    if not isinstance(data, dict):
        raise ConfigError("Configuration file must contain a mapping")

    apply_config(data.get(SECTION) or {}, configuration)
    return configuration


def apply_config(data: Dict[str, Any], configuration: BuildCacheConfiguration) -> None:
    """
    Apply a ``build_cache`` mapping to ``configuration``.

    Settings go through the configuration API, so a remote type that
    conflicts with one configured earlier is reported the same way.

    Raises:
        ConfigError: If the mapping is malformed
    """
    _require_mapping(data, SECTION)
    _check_keys(data, {"local", "remote"}, SECTION)

    if data.get("local") is not None:
        local_data = data["local"]
        _require_mapping(local_data, f"{SECTION}.local")
        _check_keys(local_data, _LOCAL_KEYS, f"{SECTION}.local")
        configuration.configure_local(lambda local: _apply_local(local_data, local))

    if data.get("remote") is not None:
        remote_data = data["remote"]
        _require_mapping(remote_data, f"{SECTION}.remote")
        _check_keys(remote_data, _REMOTE_KEYS, f"{SECTION}.remote")
        if not remote_data.get("type"):
            raise ConfigError(f"{SECTION}.remote missing required field: type")

        configuration.remote(
            str(remote_data["type"]),
            lambda remote: _apply_remote(remote_data, remote),
        )


def _apply_local(data: Dict[str, Any], local: LocalBuildCache) -> None:
    """Apply local cache settings."""
    _apply_common(data, local, f"{SECTION}.local")

    if "directory" in data:
        directory = data["directory"]
        if directory is not None and not isinstance(directory, str):
            raise ConfigError(f"{SECTION}.local.directory must be a string")
        local.directory = directory

    if "remove_unused_entries_after_days" in data:
        try:
            local.remove_unused_entries_after_days = data[
                "remove_unused_entries_after_days"
            ]
        except ValueError as e:
            raise ConfigError(f"{SECTION}.local: {e}")


def _apply_remote(data: Dict[str, Any], remote: RemoteBuildCache) -> None:
    """Apply remote cache settings."""
    _apply_common(data, remote, f"{SECTION}.remote")

    settings = data.get("settings")
    if settings is not None:
        _require_mapping(settings, f"{SECTION}.remote.settings")
        if not all(isinstance(key, str) for key in settings):
            raise ConfigError(f"{SECTION}.remote.settings keys must be strings")
        remote.configure(**settings)


def _apply_common(data: Dict[str, Any], cache, path: str) -> None:
    for flag in ("enabled", "push"):
        if flag in data:
            if not isinstance(data[flag], bool):
                raise ConfigError(f"{path}.{flag} must be true or false")
            setattr(cache, flag, data[flag])


def _require_mapping(value: Any, path: str) -> None:
    if not isinstance(value, dict):
        raise ConfigError(f"{path} must be a mapping")


def _check_keys(data: Dict[str, Any], allowed: set, path: str) -> None:
    unknown = set(data) - allowed
    if unknown:
        names = ", ".join(sorted(map(str, unknown)))
        raise ConfigError(f"Unknown keys in {path}: {names}")
