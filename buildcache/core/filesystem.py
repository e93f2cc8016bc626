"""
File system utilities for buildcache.

Cache entries are written by many task executions at once, so every
write goes through a temp file in the target directory followed by a
rename. A reader never observes a partially written entry.
"""

import tempfile
from pathlib import Path
from typing import Union


def atomic_write(
    file_path: Union[str, Path], content: Union[str, bytes], encoding: str = "utf-8"
) -> None:
    """
    Publish a cache entry or marker file in one step.

    The content lands in a hidden sibling file first and is then renamed
    over ``file_path``. Concurrent readers see either the previous entry
    or the complete new one. On failure the sibling is removed and the
    previous entry is left as it was.

    Args:
        file_path: Entry or marker file to publish
        content: Entry payload (bytes) or marker text (str)
        encoding: Encoding applied to text content

    Example:
        >>> atomic_write(cache_dir / 'gc.properties', 'gc.time=0')
        >>> atomic_write(cache_dir / '0a1b2c', payload)
    """
    target = Path(file_path)
    target.parent.mkdir(parents=True, exist_ok=True)

    # Sibling of the entry, so the rename never crosses filesystems
    fd, staging_name = tempfile.mkstemp(
        dir=target.parent, prefix=f".{target.name}.", suffix=".tmp"
    )
    staging = Path(staging_name)

    try:
        if isinstance(content, bytes):
            with open(fd, "wb") as out:
                out.write(content)
        else:
            with open(fd, "w", encoding=encoding) as out:
                out.write(content)
        staging.replace(target)
    except Exception:
        try:
            staging.unlink(missing_ok=True)
        except OSError:
            pass
        raise


def is_temp_file(path: Path) -> bool:
    """Return True for leftovers of an interrupted :func:`atomic_write`."""
    return path.name.startswith(".") and path.name.endswith(".tmp")
