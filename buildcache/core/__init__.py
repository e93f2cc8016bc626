"""
Core functionality for buildcache.

This package contains the foundational modules that other components depend on.
"""

from .directory import (
    get_cache_home,
    get_default_local_cache_dir,
    verify_directory_writable,
    DirectoryError,
)

from .filesystem import atomic_write

from .exceptions import (
    BuildCacheError,
    BuildCacheConfigurationError,
    ConflictingRemoteTypeError,
    NoRemoteConfiguredError,
    BuildCacheStateError,
    ConfigurationFrozenError,
    BuildCacheClosedError,
    RegistryError,
    UnregisteredBackendError,
    DuplicateBackendError,
    RegistrationClosedError,
    BuildCacheInstantiationError,
    LocalInstantiationError,
    RemoteInstantiationError,
    BuildCacheServiceError,
    BuildCacheStoreError,
)

__all__ = [
    "get_cache_home",
    "get_default_local_cache_dir",
    "verify_directory_writable",
    "DirectoryError",
    "atomic_write",
    "BuildCacheError",
    "BuildCacheConfigurationError",
    "ConflictingRemoteTypeError",
    "NoRemoteConfiguredError",
    "BuildCacheStateError",
    "ConfigurationFrozenError",
    "BuildCacheClosedError",
    "RegistryError",
    "UnregisteredBackendError",
    "DuplicateBackendError",
    "RegistrationClosedError",
    "BuildCacheInstantiationError",
    "LocalInstantiationError",
    "RemoteInstantiationError",
    "BuildCacheServiceError",
    "BuildCacheStoreError",
]
