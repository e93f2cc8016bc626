"""
Unit tests for atomic writes and cache home resolution.
"""

from pathlib import Path
from unittest.mock import patch

import pytest

from buildcache.core.directory import (
    get_cache_home,
    get_default_local_cache_dir,
    verify_directory_writable,
)
from buildcache.core.filesystem import atomic_write, is_temp_file


class TestAtomicWrite:
    """Test atomic_write function."""

    def test_write_bytes(self, tmp_path):
        """Test writing binary content."""
        target = tmp_path / "entry"

        atomic_write(target, b"\x00\x01")

        assert target.read_bytes() == b"\x00\x01"

    def test_write_text_creates_parents(self, tmp_path):
        """Test parent directories are created."""
        target = tmp_path / "a" / "b" / "gc.properties"

        atomic_write(target, "gc.time=1")

        assert target.read_text() == "gc.time=1"

    def test_failed_write_keeps_original(self, tmp_path):
        """Test original file is unchanged and no temp file remains on failure."""
        target = tmp_path / "entry"
        target.write_bytes(b"original")

        with patch.object(Path, "replace", side_effect=OSError("disk full")):
            with pytest.raises(OSError):
                atomic_write(target, b"new")

        assert target.read_bytes() == b"original"
        assert [p.name for p in tmp_path.iterdir()] == ["entry"]

    def test_is_temp_file(self):
        """Test temp file names are recognized."""
        assert is_temp_file(Path(".entry.abc123.tmp"))
        assert not is_temp_file(Path("entry"))


class TestCacheHome:
    """Test cache home resolution."""

    def test_environment_override(self, tmp_path, monkeypatch):
        """Test BUILDCACHE_HOME takes precedence."""
        monkeypatch.setenv("BUILDCACHE_HOME", str(tmp_path))

        assert get_cache_home() == tmp_path

    def test_default_under_home(self, monkeypatch):
        """Test default cache home is in the user's home directory."""
        monkeypatch.delenv("BUILDCACHE_HOME", raising=False)

        assert get_cache_home().name == ".buildcache"

    def test_default_local_cache_dir(self, tmp_path):
        """Test local cache directory name."""
        assert get_default_local_cache_dir(tmp_path) == tmp_path / "build-cache-1"

    def test_verify_directory_writable(self, tmp_path):
        """Test writable directory detection."""
        assert verify_directory_writable(tmp_path)
        assert not verify_directory_writable(tmp_path / "missing")

    def test_verify_directory_writable_rejects_file(self, tmp_path):
        """Test a regular file is not accepted as a cache directory."""
        entry = tmp_path / "entry"
        entry.write_bytes(b"x")

        assert not verify_directory_writable(entry)
        assert verify_directory_writable(tmp_path)
        assert sorted(p.name for p in tmp_path.iterdir()) == ["entry"]
