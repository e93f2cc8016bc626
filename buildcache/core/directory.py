"""
Directory management for buildcache.

Resolves the user-level cache home where the local build cache lives
by default:

    Cache Home (~/.buildcache/ or %USERPROFILE%\\.buildcache\\):
        - build-cache-1/  : Local build cache entries
"""

import os
from pathlib import Path
from typing import Optional

from buildcache.core.exceptions import BuildCacheError

CACHE_HOME_ENV = "BUILDCACHE_HOME"
LOCAL_CACHE_DIR_NAME = "build-cache-1"


class DirectoryError(BuildCacheError):
    """Base exception for directory-related errors."""

    pass


def get_cache_home() -> Path:
    """
    Get the platform-specific cache home directory path.

    The ``BUILDCACHE_HOME`` environment variable takes precedence.

    Returns:
        Path: The cache home directory path.
            - Windows: %USERPROFILE%\\.buildcache
            - Linux/macOS: ~/.buildcache/

    Example:
        >>> get_cache_home()
        PosixPath('/home/user/.buildcache')
    """
    override = os.environ.get(CACHE_HOME_ENV)
    if override:
        return Path(override)

    if os.name == "nt":  # Windows
        user_profile = os.environ.get("USERPROFILE")
        if not user_profile:
            raise DirectoryError(
                "USERPROFILE environment variable is not set. "
                "Cannot determine build cache home directory."
            )
        return Path(user_profile) / ".buildcache"
    else:  # Linux/macOS
        return Path.home() / ".buildcache"


def get_default_local_cache_dir(cache_home: Optional[Path] = None) -> Path:
    """Get the default local build cache directory under ``cache_home``."""
    if cache_home is None:
        cache_home = get_cache_home()
    return Path(cache_home) / LOCAL_CACHE_DIR_NAME


def verify_directory_writable(path: Path) -> bool:
    """
    Check that the local cache can store entries in ``path``.

    Returns False when ``path`` is missing, is not a directory, or refuses
    a marker file.
    """
    if not path.is_dir():
        return False

    marker = path / ".buildcache-writable"
    try:
        marker.touch()
        marker.unlink()
    except OSError:
        return False
    return True
