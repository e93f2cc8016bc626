"""
Build cache configuration model.

The configuration consists of a local and a remote part that are
configured separately. The local part always exists and is backed by
the built-in directory cache. The remote part is created on first use by
naming a backend type; once a type is chosen it cannot be changed for
the rest of the build.

Usage:
    from buildcache.configuration import BuildCacheConfiguration

    configuration = BuildCacheConfiguration()
    configuration.configure_local(lambda local: setattr(local, 'push', False))
    configuration.remote('http', lambda remote: remote.configure(
        url='https://cache.example.com/cache/',
    ))
    configuration.with_remote(lambda remote: setattr(remote, 'push', True))
"""

import logging
from enum import Enum
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, Mapping, Optional, TypeVar, Union

from buildcache.core.exceptions import (
    ConfigurationFrozenError,
    ConflictingRemoteTypeError,
    NoRemoteConfiguredError,
)

logger = logging.getLogger(__name__)

LOCAL_TYPE = "local"
DEFAULT_REMOVE_UNUSED_ENTRIES_AFTER_DAYS = 7

T = TypeVar("T", bound="BuildCache")
Action = Callable[[T], Any]


class ConfigurationState(Enum):
    """Lifecycle of a build cache configuration."""

    CONFIGURING = "configuring"
    FROZEN = "frozen"
    RESOLVED = "resolved"
    CLOSED = "closed"


class BuildCache:
    """
    Common settings of a build cache backend.

    Attributes:
        enabled: Whether the backend takes part in the build
        push: Whether the backend receives writes in addition to reads
    """

    def __init__(self, owner: "BuildCacheConfiguration", type_id: str, push: bool):
        self._owner = owner
        self._type_id = type_id
        self._enabled = True
        self._push = push

    @property
    def type_id(self) -> str:
        """Backend type identifier. Fixed when the descriptor is created."""
        return self._type_id

    @property
    def enabled(self) -> bool:
        return self._enabled

    @enabled.setter
    def enabled(self, value: bool) -> None:
        self._check_mutable()
        self._enabled = bool(value)

    @property
    def push(self) -> bool:
        return self._push

    @push.setter
    def push(self, value: bool) -> None:
        self._check_mutable()
        self._push = bool(value)

    def _check_mutable(self) -> None:
        if self._owner.is_frozen:
            raise ConfigurationFrozenError(f"{self.type_id} build cache")


class LocalBuildCache(BuildCache):
    """
    Configuration of the local directory build cache.

    Pushing is enabled by default.

    Attributes:
        directory: Cache directory (default: <cache home>/build-cache-1)
        remove_unused_entries_after_days: Age after which unused entries are removed
    """

    def __init__(self, owner: "BuildCacheConfiguration"):
        super().__init__(owner, LOCAL_TYPE, push=True)
        self._directory: Optional[Path] = None
        self._remove_unused_entries_after_days = (
            DEFAULT_REMOVE_UNUSED_ENTRIES_AFTER_DAYS
        )

    @property
    def directory(self) -> Optional[Path]:
        return self._directory

    @directory.setter
    def directory(self, value: Optional[Union[str, Path]]) -> None:
        self._check_mutable()
        self._directory = Path(value) if value is not None else None

    @property
    def remove_unused_entries_after_days(self) -> int:
        return self._remove_unused_entries_after_days

    @remove_unused_entries_after_days.setter
    def remove_unused_entries_after_days(self, value: int) -> None:
        self._check_mutable()
        if isinstance(value, bool) or not isinstance(value, int) or value < 1:
            raise ValueError(
                f"remove_unused_entries_after_days must be a positive integer, got {value!r}"
            )
        self._remove_unused_entries_after_days = value

    def __repr__(self) -> str:
        return (
            f"LocalBuildCache(enabled={self.enabled}, push={self.push}, "
            f"directory={self.directory})"
        )


class RemoteBuildCache(BuildCache):
    """
    Configuration of the remote build cache.

    Carries the backend type identifier and a settings mapping whose keys
    are defined by the backend's factory. Pushing is disabled by default.

    Example:
        >>> remote = configuration.remote('http')
        >>> remote.configure(url='https://cache.example.com/')
        >>> remote.settings['url']
        'https://cache.example.com/'
    """

    def __init__(self, owner: "BuildCacheConfiguration", type_id: str):
        super().__init__(owner, type_id, push=False)
        self._settings: Dict[str, Any] = {}

    @property
    def settings(self) -> Mapping[str, Any]:
        """Read-only view of the backend settings."""
        return MappingProxyType(self._settings)

    def configure(self, **settings: Any) -> "RemoteBuildCache":
        """
        Merge ``settings`` into the backend settings.

        Existing keys not named in ``settings`` are kept.

        Raises:
            ConfigurationFrozenError: If the configuration has been frozen
        """
        self._check_mutable()
        self._settings.update(settings)
        return self

    def __repr__(self) -> str:
        return (
            f"RemoteBuildCache(type_id={self.type_id!r}, enabled={self.enabled}, "
            f"push={self.push}, settings={sorted(self._settings)})"
        )


class BuildCacheConfiguration:
    """
    Configuration for the build cache of an entire build.

    When both local and remote are enabled, reads use the first cache
    that has an entry, local first.
    """

    def __init__(self):
        self._state = ConfigurationState.CONFIGURING
        self._local = LocalBuildCache(self)
        self._remote: Optional[RemoteBuildCache] = None

    # ========================================================================
    # State
    # ========================================================================

    @property
    def state(self) -> ConfigurationState:
        return self._state

    @property
    def is_frozen(self) -> bool:
        return self._state is not ConfigurationState.CONFIGURING

    def freeze(self) -> None:
        """
        End the configuration phase.

        Further mutation raises ConfigurationFrozenError. Freezing an
        already frozen configuration has no effect.
        """
        if self._state is ConfigurationState.CONFIGURING:
            self._state = ConfigurationState.FROZEN
            logger.debug(f"Froze build cache configuration: {self!r}")

    def mark_resolved(self) -> None:
        """Record that services were created from this configuration."""
        self._state = ConfigurationState.RESOLVED

    def mark_closed(self) -> None:
        """Record that the services created from this configuration were closed."""
        self._state = ConfigurationState.CLOSED

    def _check_mutable(self, what: str) -> None:
        if self.is_frozen:
            raise ConfigurationFrozenError(what)

    # ========================================================================
    # Local
    # ========================================================================

    @property
    def local(self) -> LocalBuildCache:
        """The local cache configuration. Never None."""
        return self._local

    def get_local(self) -> LocalBuildCache:
        return self._local

    def configure_local(self, action: Action[LocalBuildCache]) -> None:
        """
        Execute ``action`` against the local cache configuration.

        Raises:
            ConfigurationFrozenError: If the configuration has been frozen
        """
        self._check_mutable("local build cache")
        action(self._local)

    # ========================================================================
    # Remote
    # ========================================================================

    def remote(
        self, type_id: str, action: Optional[Action[RemoteBuildCache]] = None
    ) -> RemoteBuildCache:
        """
        Configure a remote cache with the given type.

        The first call creates the remote configuration. Later calls with
        the same type return the same instance and keep its settings.

        Args:
            type_id: Backend type identifier
            action: Optional action executed against the remote configuration

        Returns:
            The remote cache configuration

        Raises:
            ConflictingRemoteTypeError: If a different type is already configured
            ConfigurationFrozenError: If the configuration has been frozen
        """
        self._check_mutable("remote build cache")

        if self._remote is None:
            if not isinstance(type_id, str) or not type_id:
                raise ValueError("Remote build cache type must be a non-empty string")
            self._remote = RemoteBuildCache(self, type_id)
            logger.debug(f"Configured remote build cache type: {type_id}")
        elif self._remote.type_id != type_id:
            raise ConflictingRemoteTypeError(self._remote.type_id, type_id)

        if action is not None:
            action(self._remote)
        return self._remote

    configure_remote = remote

    @property
    def has_remote(self) -> bool:
        return self._remote is not None

    def get_remote(self) -> RemoteBuildCache:
        """
        Get the remote cache configuration.

        Raises:
            NoRemoteConfiguredError: If no remote type was configured
        """
        if self._remote is None:
            raise NoRemoteConfiguredError()
        return self._remote

    def with_remote(self, action: Action[RemoteBuildCache]) -> None:
        """
        Execute ``action`` against the configured remote cache.

        Raises:
            NoRemoteConfiguredError: If no remote type was configured
            ConfigurationFrozenError: If the configuration has been frozen
        """
        self._check_mutable("remote build cache")
        action(self.get_remote())

    def __repr__(self) -> str:
        return (
            f"BuildCacheConfiguration(state={self._state.value}, "
            f"local={self._local!r}, remote={self._remote!r})"
        )
