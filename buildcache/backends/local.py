"""
Local directory build cache.

Stores one file per cache key in a directory shared by all builds of the
current user. Entries are written atomically, so concurrent task
executions and concurrent builds can share the directory without
locking on the read/write path.

Entries not used for ``remove_unused_entries_after_days`` days are
removed when the cache is closed. Cleanup runs at most once per
``CLEANUP_INTERVAL_HOURS`` across all processes; a file lock keeps two
builds from cleaning up at the same time.

Directory layout:
    <directory>/
        - <key>           : Cache entry
        - gc.properties   : Time of the last cleanup
        - gc.lock         : Cleanup lock
"""

import logging
import os
import re
import time
from pathlib import Path
from typing import Optional

from filelock import FileLock, Timeout

from buildcache.configuration import LOCAL_TYPE, LocalBuildCache
from buildcache.context import BuildContext
from buildcache.core.directory import verify_directory_writable
from buildcache.core.exceptions import BuildCacheServiceError
from buildcache.core.filesystem import atomic_write, is_temp_file
from buildcache.service import BuildCacheService, BuildCacheServiceFactory

logger = logging.getLogger(__name__)

CLEANUP_INTERVAL_HOURS = 24
GC_MARKER_NAME = "gc.properties"
GC_LOCK_NAME = "gc.lock"

_KEY_PATTERN = re.compile(r"^[0-9A-Za-z_-]+$")
_RESERVED_NAMES = {GC_MARKER_NAME, GC_LOCK_NAME}


class DirectoryBuildCacheService(BuildCacheService):
    """
    Build cache backed by a local directory.

    Attributes:
        directory: Directory holding cache entries
        remove_unused_entries_after_days: Retention for unused entries
    """

    def __init__(
        self,
        directory: Path,
        remove_unused_entries_after_days: int = 7,
        lock_timeout: int = 10,
    ):
        self.directory = Path(directory)
        self.remove_unused_entries_after_days = remove_unused_entries_after_days
        self.lock_timeout = lock_timeout

    @property
    def description(self) -> str:
        return f"directory {self.directory}"

    def _entry_path(self, key: str) -> Path:
        if not _KEY_PATTERN.match(key) or key in _RESERVED_NAMES:
            raise ValueError(f"Invalid build cache key: {key!r}")
        return self.directory / key

    def load(self, key: str) -> Optional[bytes]:
        path = self._entry_path(key)
        try:
            data = path.read_bytes()
        except FileNotFoundError:
            return None
        except OSError as e:
            raise BuildCacheServiceError(f"Failed to read {path}: {e}") from e

        # Refresh access time for cleanup; a concurrent cleanup may have won
        try:
            os.utime(path)
        except OSError:
            logger.debug(f"Could not update access time of {path}")
        return data

    def store(self, key: str, value: bytes) -> None:
        path = self._entry_path(key)
        try:
            atomic_write(path, value)
        except OSError as e:
            raise BuildCacheServiceError(f"Failed to write {path}: {e}") from e

    def close(self) -> None:
        if self._cleanup_due():
            self.cleanup()

    # ========================================================================
    # Cleanup
    # ========================================================================

    def _cleanup_due(self) -> bool:
        marker = self.directory / GC_MARKER_NAME
        try:
            last = float(marker.read_text(encoding="utf-8").split("=", 1)[1])
        except (OSError, IndexError, ValueError):
            return True
        return time.time() - last >= CLEANUP_INTERVAL_HOURS * 3600

    def cleanup(self) -> int:
        """
        Remove entries unused for longer than the retention period.

        Returns:
            Number of removed entries (0 if another process holds the lock)
        """
        lock = FileLock(self.directory / GC_LOCK_NAME, timeout=self.lock_timeout)
        try:
            with lock:
                removed = self._remove_unused_entries()
                atomic_write(
                    self.directory / GC_MARKER_NAME, f"gc.time={time.time()}\n"
                )
        except Timeout:
            logger.debug(
                f"Skipping build cache cleanup, lock held by another process: "
                f"{self.directory}"
            )
            return 0

        if removed:
            logger.info(f"Removed {removed} unused entries from {self.directory}")
        return removed

    def _remove_unused_entries(self) -> int:
        cutoff = time.time() - self.remove_unused_entries_after_days * 86400
        removed = 0

        for path in self.directory.iterdir():
            if path.name in _RESERVED_NAMES or not path.is_file():
                continue
            if not (_KEY_PATTERN.match(path.name) or is_temp_file(path)):
                continue
            try:
                if path.stat().st_mtime < cutoff:
                    path.unlink()
                    removed += 1
            except FileNotFoundError:
                continue
            except OSError as e:
                logger.warning(f"Could not remove build cache entry {path}: {e}")

        return removed


class DirectoryBuildCacheServiceFactory(BuildCacheServiceFactory):
    """Creates the local directory cache from a :class:`LocalBuildCache`."""

    def create_build_cache_service(
        self, descriptor: LocalBuildCache, context: BuildContext
    ) -> DirectoryBuildCacheService:
        directory = descriptor.directory
        if directory is None:
            directory = context.default_local_cache_dir()
        elif not directory.is_absolute():
            directory = Path(context.root_dir) / directory

        directory.mkdir(parents=True, exist_ok=True)
        if not verify_directory_writable(directory):
            raise PermissionError(f"Build cache directory is not writable: {directory}")

        logger.debug(f"Using local build cache directory: {directory}")
        return DirectoryBuildCacheService(
            directory,
            remove_unused_entries_after_days=descriptor.remove_unused_entries_after_days,
        )


__all__ = [
    "LOCAL_TYPE",
    "DirectoryBuildCacheService",
    "DirectoryBuildCacheServiceFactory",
]
