"""
Pytest configuration and shared fixtures for buildcache tests.
"""

import pytest


@pytest.fixture(autouse=True)
def isolated_cache_home(tmp_path, monkeypatch):
    """Keep every test away from the real ~/.buildcache directory."""
    monkeypatch.setenv("BUILDCACHE_HOME", str(tmp_path / "buildcache-home"))
