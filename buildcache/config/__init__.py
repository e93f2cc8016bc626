"""Configuration file support for buildcache."""

from .parser import ConfigError, apply_config, load_config

__all__ = ["ConfigError", "apply_config", "load_config"]
