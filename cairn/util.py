"""Utility functions for Cairn."""

import logging
import os
import tempfile
from pathlib import Path
from typing import BinaryIO

from rich.logging import RichHandler


def setup_logging(verbose: bool = False, quiet: bool = False) -> None:
    """Configure logging for the application."""
    if quiet:
        level = logging.ERROR
    elif verbose:
        level = logging.DEBUG
    else:
        level = logging.INFO
    
    logging.basicConfig(
        level=level,
        format="%(message)s",
        handlers=[RichHandler(rich_tracebacks=True)],
    )


def open_temp_sibling(path: Path) -> tuple[BinaryIO, Path]:
    """Create a uniquely named temp file next to *path* for writing."""
    fd, name = tempfile.mkstemp(dir=path.parent, prefix=path.name + ".", suffix=".tmp")
    os.chmod(name, 0o644)
    return os.fdopen(fd, "wb"), Path(name)


def atomic_write(path: Path, content: str | bytes) -> None:
    """Write file atomically using temp file and rename.
    
    Args:
        path: Target file path
        content: Content to write; text is written as UTF-8
    """
    if isinstance(content, str):
        content = content.encode("utf-8")
    
    f, temp_path = open_temp_sibling(path)
    
    try:
        with f:
            f.write(content)
        
        # Atomic rename
        temp_path.replace(path)
        
    except BaseException:
        # Clean up temp file on error
        temp_path.unlink(missing_ok=True)
        raise


def relative_to_root(root: Path, path: Path) -> Path | None:
    """Return *path* relative to *root*, or None if it escapes the root.
    
    Relative paths are interpreted against *root*, not the process working
    directory.
    """
    base = root.resolve()
    
    if not path.is_absolute():
        path = base / path
    
    joined = path.resolve()
    
    try:
        return joined.relative_to(base)
    except ValueError:
        return None


def format_size(bytes: int) -> str:
    """Format byte size as human-readable string."""
    for unit in ["B", "KB", "MB", "GB"]:
        if bytes < 1024:
            return f"{bytes:.1f} {unit}"
        bytes /= 1024
    return f"{bytes:.1f} TB"
