"""
Build cache backends shipped with buildcache.

Modules:
    local: Local directory cache (always registered as 'local')
    http: HTTP remote cache (registered as 'http' by register_builtin_factories)
"""

from .local import (
    LOCAL_TYPE,
    DirectoryBuildCacheService,
    DirectoryBuildCacheServiceFactory,
)
from .http import (
    HTTP_TYPE,
    HttpBuildCacheService,
    HttpBuildCacheServiceFactory,
    HttpBuildCacheSettings,
)

__all__ = [
    "LOCAL_TYPE",
    "DirectoryBuildCacheService",
    "DirectoryBuildCacheServiceFactory",
    "HTTP_TYPE",
    "HttpBuildCacheService",
    "HttpBuildCacheServiceFactory",
    "HttpBuildCacheSettings",
]
