"""
buildcache: build cache configuration and resolution.

A build caches task outputs in a local directory cache and, optionally,
in one remote cache whose type is provided by a registered factory.

Modules:
    configuration: Local/remote cache configuration model
    registry: Factory registry for cache backends
    resolution: Creates the composed build cache at build start
    service: Backend contract and the composed build cache handle
    backends: Built-in local directory and HTTP backends
    config: YAML configuration loader
"""

from buildcache.configuration import (
    BuildCache,
    BuildCacheConfiguration,
    ConfigurationState,
    LocalBuildCache,
    RemoteBuildCache,
)
from buildcache.context import BuildContext
from buildcache.core.exceptions import (
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
from buildcache.registry import (
    BuildCacheServiceFactoryRegistry,
    create_default_registry,
    register_builtin_factories,
)
from buildcache.resolution import BuildCacheResolver, open_build_cache, resolve
from buildcache.service import (
    BuildCacheHandle,
    BuildCacheMember,
    BuildCacheService,
    BuildCacheServiceFactory,
)

__version__ = "0.1.0"

__all__ = [
    "BuildCache",
    "BuildCacheConfiguration",
    "ConfigurationState",
    "LocalBuildCache",
    "RemoteBuildCache",
    "BuildContext",
    "BuildCacheServiceFactoryRegistry",
    "create_default_registry",
    "register_builtin_factories",
    "BuildCacheResolver",
    "open_build_cache",
    "resolve",
    "BuildCacheHandle",
    "BuildCacheMember",
    "BuildCacheService",
    "BuildCacheServiceFactory",
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
