"""
Factory registry for build cache backends.

This module provides the registry that maps a backend type identifier
(e.g. 'local', 'http') to the factory able to create a running service
for it. The registry is an explicit object owned by the build; it is
sealed when resolution starts.
"""

import logging
from typing import Dict, List

from buildcache.backends.local import LOCAL_TYPE, DirectoryBuildCacheServiceFactory
from buildcache.core.exceptions import (
    DuplicateBackendError,
    RegistrationClosedError,
    UnregisteredBackendError,
)
from buildcache.service import BuildCacheServiceFactory

logger = logging.getLogger(__name__)


class BuildCacheServiceFactoryRegistry:
    """
    Registry of build cache service factories keyed by type identifier.

    The local directory factory is registered on construction under the
    reserved 'local' identifier and cannot be replaced. Each other type
    may be registered once, and only until the registry is sealed.

    Example:
        >>> registry = BuildCacheServiceFactoryRegistry()
        >>> registry.register('http', HttpBuildCacheServiceFactory())
        >>> registry.lookup('http')
        <HttpBuildCacheServiceFactory ...>
    """

    def __init__(self):
        """Initialize registry with the local directory factory."""
        self._factories: Dict[str, BuildCacheServiceFactory] = {
            LOCAL_TYPE: DirectoryBuildCacheServiceFactory()
        }
        self._sealed = False

    # ========================================================================
    # Registration Methods
    # ========================================================================

    def register(self, type_id: str, factory: BuildCacheServiceFactory) -> None:
        """
        Register a factory for a backend type.

        Args:
            type_id: Backend type identifier (e.g., 'http', 's3')
            factory: Factory creating services for this type

        Raises:
            ValueError: If type_id is empty
            TypeError: If factory is not a BuildCacheServiceFactory
            DuplicateBackendError: If type_id is already registered
            RegistrationClosedError: If the registry has been sealed

        Example:
            registry.register('http', HttpBuildCacheServiceFactory())
        """
        if not isinstance(type_id, str) or not type_id:
            raise ValueError("Backend type identifier must be a non-empty string")
        if not isinstance(factory, BuildCacheServiceFactory):
            raise TypeError(
                f"Factory for '{type_id}' must be a BuildCacheServiceFactory, "
                f"got {type(factory).__name__}"
            )
        if self._sealed:
            raise RegistrationClosedError(type_id)
        if type_id in self._factories:
            raise DuplicateBackendError(type_id)

        self._factories[type_id] = factory
        logger.debug(f"Registered build cache service factory: {type_id}")

    def seal(self) -> None:
        """
        Close registration.

        Called by the resolver when resolution starts. Sealing twice is
        harmless.
        """
        if not self._sealed:
            self._sealed = True
            logger.debug(
                f"Sealed build cache registry with types: {', '.join(self.list_types())}"
            )

    @property
    def is_sealed(self) -> bool:
        return self._sealed

    # ========================================================================
    # Lookup Methods
    # ========================================================================

    def lookup(self, type_id: str) -> BuildCacheServiceFactory:
        """
        Get factory registered for ``type_id``.

        Raises:
            UnregisteredBackendError: If no factory is registered
        """
        if type_id not in self._factories:
            raise UnregisteredBackendError(type_id)
        return self._factories[type_id]

    def has_factory(self, type_id: str) -> bool:
        return type_id in self._factories

    def list_types(self) -> List[str]:
        """List registered type identifiers, local first."""
        return list(self._factories.keys())


def register_builtin_factories(registry: BuildCacheServiceFactoryRegistry) -> None:
    """
    Register the remote backends shipped with buildcache.

    Currently registers the 'http' backend.
    """
    from buildcache.backends.http import HTTP_TYPE, HttpBuildCacheServiceFactory

    registry.register(HTTP_TYPE, HttpBuildCacheServiceFactory())


def create_default_registry() -> BuildCacheServiceFactoryRegistry:
    """
    Create a registry with local and all built-in remote factories.

    Returns:
        New registry; each build should use its own
    """
    registry = BuildCacheServiceFactoryRegistry()
    register_builtin_factories(registry)
    return registry


__all__ = [
    "BuildCacheServiceFactoryRegistry",
    "register_builtin_factories",
    "create_default_registry",
]
