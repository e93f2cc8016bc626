"""
Mock implementations for testing buildcache components.

This package provides in-memory build cache services and factories to
enable isolated, deterministic testing of resolution and composition.
"""

from .services import (
    FailingBuildCacheService,
    FailingFactory,
    InMemoryBuildCacheService,
    RecordingFactory,
)

__all__ = [
    "FailingBuildCacheService",
    "FailingFactory",
    "InMemoryBuildCacheService",
    "RecordingFactory",
]
