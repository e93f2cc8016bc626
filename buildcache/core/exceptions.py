"""
Centralized exception hierarchy for buildcache.

This module defines all custom exceptions used across the codebase
so callers can tell configuration mistakes, fatal resolution failures
and degraded remote failures apart.
"""

from typing import Optional


# ============================================================================
# Base Exceptions
# ============================================================================


class BuildCacheError(Exception):
    """Base exception for all buildcache errors."""

    pass


# ============================================================================
# Configuration Exceptions
# ============================================================================


class BuildCacheConfigurationError(BuildCacheError):
    """Base exception for user-facing configuration errors."""

    pass


class ConflictingRemoteTypeError(BuildCacheConfigurationError):
    """Raised when the remote cache is reconfigured with a different type."""

    def __init__(self, configured_type: str, requested_type: str):
        self.configured_type = configured_type
        self.requested_type = requested_type
        super().__init__(
            f"The remote build cache was already configured with type "
            f"'{configured_type}', cannot configure type '{requested_type}'"
        )


class NoRemoteConfiguredError(BuildCacheConfigurationError):
    """Raised when the remote cache is accessed before a type was set."""

    def __init__(self):
        super().__init__(
            "A type for the remote build cache must be configured first"
        )


# ============================================================================
# State Exceptions
# ============================================================================


class BuildCacheStateError(BuildCacheError):
    """Raised when an operation is invalid in the current lifecycle state."""

    pass


class ConfigurationFrozenError(BuildCacheStateError):
    """Raised when configuration is mutated after it was frozen."""

    def __init__(self, what: str = "build cache configuration"):
        self.what = what
        super().__init__(
            f"Cannot modify {what}: configuration phase has already ended"
        )


class BuildCacheClosedError(BuildCacheStateError):
    """Raised when a closed build cache handle is used."""

    pass


# ============================================================================
# Registry Exceptions
# ============================================================================


class RegistryError(BuildCacheError):
    """Base exception for factory registry errors."""

    pass


class UnregisteredBackendError(RegistryError):
    """Raised when no factory is registered for a backend type."""

    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(
            f"No build cache service factory registered for type '{type_id}'"
        )


class DuplicateBackendError(RegistryError):
    """Raised when a backend type is registered more than once."""

    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(
            f"Build cache service factory for type '{type_id}' is already registered"
        )


class RegistrationClosedError(RegistryError):
    """Raised when a factory is registered after resolution started."""

    def __init__(self, type_id: str):
        self.type_id = type_id
        super().__init__(
            f"Cannot register factory for type '{type_id}': "
            "build cache resolution has already started"
        )


# ============================================================================
# Instantiation Exceptions
# ============================================================================


class BuildCacheInstantiationError(BuildCacheError):
    """Base exception when a factory fails to create a service."""

    def __init__(self, type_id: str, reason: str, cause: Optional[Exception] = None):
        self.type_id = type_id
        self.reason = reason
        self.cause = cause
        super().__init__(self._message())

    def _message(self) -> str:
        return f"Could not create build cache service '{self.type_id}': {self.reason}"


class LocalInstantiationError(BuildCacheInstantiationError):
    """Local cache could not be created. Fatal for the build."""

    def _message(self) -> str:
        return f"Could not create local build cache: {self.reason}"


class RemoteInstantiationError(BuildCacheInstantiationError):
    """Remote cache could not be created. The build continues without it."""

    def _message(self) -> str:
        return (
            f"Could not create remote build cache '{self.type_id}', "
            f"remote caching is disabled for this build: {self.reason}"
        )


# ============================================================================
# Service Exceptions
# ============================================================================


class BuildCacheServiceError(BuildCacheError):
    """Raised by a backend when a load or store operation fails."""

    pass


class BuildCacheStoreError(BuildCacheServiceError):
    """Raised when storing an entry in the local cache fails."""

    def __init__(self, key: str, cause: Exception):
        self.key = key
        self.cause = cause
        super().__init__(f"Could not store entry '{key}' in local build cache: {cause}")
