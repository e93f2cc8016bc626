"""
Build cache resolution.

Turns a build cache configuration into a running, composed build cache
at build start:

1. The configuration is frozen and the factory registry sealed.
2. Factories for every enabled cache are looked up. A remote type that
   nobody registered fails the build here, before any service exists.
3. The local cache is created. Failure is fatal.
4. The remote cache is created. Failure disables remote caching for the
   build and is reported on the returned handle.

Usage:
    from buildcache import BuildContext, create_default_registry, open_build_cache

    registry = create_default_registry()
    with open_build_cache(configuration, BuildContext(root_dir), registry) as cache:
        run_tasks(cache)
"""

import logging
from contextlib import contextmanager
from typing import Iterator, List, Optional, Tuple

from buildcache.configuration import (
    BuildCacheConfiguration,
    ConfigurationState,
    RemoteBuildCache,
)
from buildcache.context import BuildContext
from buildcache.core.exceptions import (
    BuildCacheStateError,
    LocalInstantiationError,
    RemoteInstantiationError,
)
from buildcache.registry import BuildCacheServiceFactoryRegistry, create_default_registry
from buildcache.service import (
    LOCAL_ROLE,
    REMOTE_ROLE,
    BuildCacheHandle,
    BuildCacheMember,
    BuildCacheServiceFactory,
)

logger = logging.getLogger(__name__)


class BuildCacheResolver:
    """
    Resolves configurations into build cache handles.

    Attributes:
        registry: Factory registry used to look up backends
    """

    def __init__(self, registry: BuildCacheServiceFactoryRegistry):
        self.registry = registry

    def resolve(
        self, configuration: BuildCacheConfiguration, context: BuildContext
    ) -> BuildCacheHandle:
        """
        Create the build cache for one build.

        Args:
            configuration: Build cache configuration (frozen by this call)
            context: Context of the current build

        Returns:
            Composed handle; the caller must close it at build end

        Raises:
            BuildCacheStateError: If the configuration was already resolved
            UnregisteredBackendError: If the remote type has no factory
            LocalInstantiationError: If the local cache cannot be created
        """
        if configuration.state not in (
            ConfigurationState.CONFIGURING,
            ConfigurationState.FROZEN,
        ):
            raise BuildCacheStateError(
                f"Build cache configuration has already been resolved "
                f"(state: {configuration.state.value})"
            )

        configuration.freeze()
        self.registry.seal()

        local = configuration.local
        members: List[BuildCacheMember] = []

        # A fatal failure ends the configuration lifecycle; it is never resolved again
        try:
            remote, remote_factory = self._remote_to_resolve(configuration, context)
            local_factory = (
                self.registry.lookup(local.type_id) if local.enabled else None
            )

            if local_factory is not None:
                try:
                    service = local_factory.create_build_cache_service(local, context)
                except Exception as e:
                    logger.error(
                        f"Failed to create local build cache: {e}", exc_info=True
                    )
                    raise LocalInstantiationError(local.type_id, str(e), e) from e
                members.append(
                    BuildCacheMember(LOCAL_ROLE, local.type_id, service, local.push)
                )
            else:
                logger.info("Local build cache is disabled")
        except Exception:
            configuration.mark_closed()
            raise

        remote_failure = None
        if remote is not None:
            member, remote_failure = self._create_remote(remote, remote_factory, context)
            if member is not None:
                members.append(member)

        configuration.mark_resolved()
        handle = BuildCacheHandle(
            members,
            remote_failure=remote_failure,
            on_close=configuration.mark_closed,
        )
        logger.info(f"Resolved build cache: {handle!r}")
        return handle

    def _remote_to_resolve(
        self, configuration: BuildCacheConfiguration, context: BuildContext
    ) -> Tuple[Optional[RemoteBuildCache], Optional[BuildCacheServiceFactory]]:
        if not configuration.has_remote:
            return None, None

        remote = configuration.get_remote()
        if not remote.enabled:
            logger.info(f"Remote build cache '{remote.type_id}' is disabled")
            return None, None

        # Looked up before the offline check so an unknown type always fails
        factory = self.registry.lookup(remote.type_id)
        if context.offline:
            logger.info(
                f"Remote build cache '{remote.type_id}' is skipped in offline mode"
            )
            return None, None
        return remote, factory

    def _create_remote(
        self,
        remote: RemoteBuildCache,
        factory: BuildCacheServiceFactory,
        context: BuildContext,
    ):
        try:
            service = factory.create_build_cache_service(remote, context)
        except Exception as e:
            failure = RemoteInstantiationError(remote.type_id, str(e), e)
            logger.warning(str(failure))
            logger.debug("Remote build cache creation failure", exc_info=True)
            return None, failure

        member = BuildCacheMember(REMOTE_ROLE, remote.type_id, service, remote.push)
        return member, None


def resolve(
    configuration: BuildCacheConfiguration,
    context: BuildContext,
    registry: Optional[BuildCacheServiceFactoryRegistry] = None,
) -> BuildCacheHandle:
    """
    Resolve ``configuration`` into a build cache handle.

    Args:
        configuration: Build cache configuration
        context: Context of the current build
        registry: Factory registry (default: local + built-in remote backends)

    Returns:
        Composed handle; the caller must close it at build end
    """
    if registry is None:
        registry = create_default_registry()
    return BuildCacheResolver(registry).resolve(configuration, context)


@contextmanager
def open_build_cache(
    configuration: BuildCacheConfiguration,
    context: BuildContext,
    registry: Optional[BuildCacheServiceFactoryRegistry] = None,
) -> Iterator[BuildCacheHandle]:
    """
    Resolve the build cache and close it on every exit path.

    Yields:
        Composed build cache handle
    """
    handle = resolve(configuration, context, registry)
    try:
        yield handle
    finally:
        handle.close()


__all__ = ["BuildCacheResolver", "resolve", "open_build_cache"]
