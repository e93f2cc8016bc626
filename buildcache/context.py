"""
Build context handed to build cache service factories.

The context carries the per-build information a factory may need to
create its service: where the build runs, where the cache home is, and
whether the build runs offline.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, Optional

from buildcache.core.directory import get_cache_home, get_default_local_cache_dir


@dataclass
class BuildContext:
    """
    Per-build information for factories.

    Attributes:
        root_dir: Root directory of the build
        cache_home: Cache home override (default: ``get_cache_home()``)
        offline: Build runs without network access; remote caches are skipped
        properties: Free-form properties for backend-specific use

    Example:
        >>> context = BuildContext(root_dir=Path('/src/project'), offline=True)
    """

    root_dir: Path = field(default_factory=Path.cwd)
    cache_home: Optional[Path] = None
    offline: bool = False
    properties: Dict[str, Any] = field(default_factory=dict)

    def resolve_cache_home(self) -> Path:
        """Return the cache home for this build."""
        if self.cache_home is not None:
            return Path(self.cache_home)
        return get_cache_home()

    def default_local_cache_dir(self) -> Path:
        """Return the local cache directory used when none is configured."""
        return get_default_local_cache_dir(self.resolve_cache_home())
