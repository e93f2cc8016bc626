"""
Build cache service contract and the composite service handle.

Backends implement :class:`BuildCacheService`. The resolution step wraps
the enabled backends in a :class:`BuildCacheHandle`, which the task
executor uses for concurrent ``get``/``put`` calls:

- reads go to local first, then remote, and stop at the first hit
- writes fan out to every backend that accepts pushes
- remote failures are logged and ignored, local write failures are
  raised for the affected entry only
"""

import logging
import threading
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Callable, List, Optional

from buildcache.core.exceptions import (
    BuildCacheClosedError,
    BuildCacheStoreError,
    RemoteInstantiationError,
)

logger = logging.getLogger(__name__)

LOCAL_ROLE = "local"
REMOTE_ROLE = "remote"


class BuildCacheService(ABC):
    """
    Base class for build cache backends.

    Implementations must be safe for concurrent ``load``/``store`` calls
    from multiple threads.
    """

    @property
    def description(self) -> str:
        """Human-readable description used in log messages."""
        return type(self).__name__

    @abstractmethod
    def load(self, key: str) -> Optional[bytes]:
        """
        Load the entry stored under ``key``.

        Returns:
            Entry contents, or None on a cache miss

        Raises:
            BuildCacheServiceError: If the backend cannot be read
        """
        pass

    @abstractmethod
    def store(self, key: str, value: bytes) -> None:
        """
        Store ``value`` under ``key``.

        Raises:
            BuildCacheServiceError: If the backend cannot be written
        """
        pass

    def close(self) -> None:
        """Release backend resources. Default implementation does nothing."""
        pass


class BuildCacheServiceFactory(ABC):
    """
    Creates a :class:`BuildCacheService` for one backend type.

    Factories are registered by type identifier in a
    :class:`~buildcache.registry.BuildCacheServiceFactoryRegistry` and
    called once per build during resolution. They hold no reference to
    the configuration model.

    Example:
        class MemcachedFactory(BuildCacheServiceFactory):
            def create_build_cache_service(self, descriptor, context):
                return MemcachedService(descriptor.settings['servers'])

        registry.register('memcached', MemcachedFactory())
    """

    @abstractmethod
    def create_build_cache_service(self, descriptor, context) -> BuildCacheService:
        """
        Create a service for ``descriptor``.

        Args:
            descriptor: LocalBuildCache or RemoteBuildCache to create the service for
            context: BuildContext of the current build

        Returns:
            Ready-to-use build cache service

        Raises:
            Exception: Any failure; resolution decides whether it is fatal
        """
        pass


@dataclass
class BuildCacheMember:
    """One backend taking part in a composed build cache."""

    role: str  # 'local' or 'remote'
    type_id: str
    service: BuildCacheService
    push: bool


class BuildCacheHandle:
    """
    Composite build cache used by task executions.

    The handle holds no lock while calling into backends; calls to
    different backends proceed independently. Only the closed flag is
    guarded.

    Example:
        >>> with resolve(configuration, context) as handle:
        ...     data = handle.get(key)
        ...     if data is None:
        ...         handle.put(key, build_output())
    """

    def __init__(
        self,
        members: List[BuildCacheMember],
        remote_failure: Optional[RemoteInstantiationError] = None,
        on_close: Optional[Callable[[], None]] = None,
    ):
        """
        Initialize handle.

        Args:
            members: Backends in precedence order (local first)
            remote_failure: Error that disabled the remote cache, if any
            on_close: Callback run once after all members are closed
        """
        self._members = list(members)
        self._remote_failure = remote_failure
        self._on_close = on_close
        self._closed = False
        self._close_lock = threading.Lock()

    @property
    def members(self) -> List[BuildCacheMember]:
        """Backends in precedence order."""
        return list(self._members)

    @property
    def remote_failure(self) -> Optional[RemoteInstantiationError]:
        """Error that disabled the remote cache for this build, or None."""
        return self._remote_failure

    @property
    def remote_disabled(self) -> bool:
        """True when a configured remote cache could not be created."""
        return self._remote_failure is not None

    @property
    def closed(self) -> bool:
        return self._closed

    def has_member(self, role: str) -> bool:
        return any(member.role == role for member in self._members)

    def get(self, key: str) -> Optional[bytes]:
        """
        Look up ``key`` in every backend in precedence order.

        Args:
            key: Cache key

        Returns:
            Entry from the first backend that has it, or None
        """
        self._check_open()

        for member in self._members:
            try:
                value = member.service.load(key)
            except Exception as e:
                logger.warning(
                    f"Could not load entry {key} from {member.role} build cache "
                    f"({member.service.description}): {e}"
                )
                continue

            if value is not None:
                logger.debug(f"Build cache hit for {key} in {member.role} cache")
                return value

        logger.debug(f"Build cache miss for {key}")
        return None

    def put(self, key: str, value: bytes) -> None:
        """
        Store ``value`` in every backend with push enabled.

        Args:
            key: Cache key
            value: Entry contents

        Raises:
            BuildCacheStoreError: If the local cache could not store the entry
        """
        self._check_open()

        local_error: Optional[Exception] = None
        for member in self._members:
            if not member.push:
                continue

            try:
                member.service.store(key, value)
                logger.debug(f"Stored {key} in {member.role} build cache")
            except Exception as e:
                if member.role == LOCAL_ROLE:
                    local_error = e
                    logger.error(
                        f"Could not store entry {key} in local build cache: {e}"
                    )
                else:
                    logger.warning(
                        f"Could not store entry {key} in {member.role} build cache "
                        f"({member.service.description}): {e}"
                    )

        if local_error is not None:
            raise BuildCacheStoreError(key, local_error) from local_error

    def close(self) -> None:
        """
        Close all backends.

        Safe to call more than once; only the first call has an effect.
        """
        with self._close_lock:
            if self._closed:
                return
            self._closed = True

        for member in self._members:
            try:
                member.service.close()
                logger.debug(f"Closed {member.role} build cache")
            except Exception as e:
                logger.error(
                    f"Error closing {member.role} build cache "
                    f"({member.service.description}): {e}",
                    exc_info=True,
                )

        if self._on_close is not None:
            self._on_close()

        logger.info("Build cache closed")

    def _check_open(self) -> None:
        if self._closed:
            raise BuildCacheClosedError("Build cache has already been closed")

    def __enter__(self) -> "BuildCacheHandle":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()

    def __repr__(self) -> str:
        roles = ", ".join(
            f"{m.role}:{m.type_id}{'' if m.push else ' (pull-only)'}"
            for m in self._members
        )
        return f"BuildCacheHandle([{roles}])"
