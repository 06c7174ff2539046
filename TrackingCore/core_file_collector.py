"""
core_file_collector: collect installed font files from files/dirs.

Features:
- Supports TTF, OTF, WOFF, WOFF2 by default
- Optional recursive directory scanning
- Case-insensitive extension matching
- De-duplicates and returns sorted list of absolute paths

Used by core_font_registry to index the fonts a tracking fix may load.
"""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, Iterator, List, Optional, Set

from TrackingCore.core_logging_config import get_logger

logger = get_logger(__name__)

SUPPORTED_EXTENSIONS: Set[str] = {".ttf", ".otf", ".woff", ".woff2"}


def _matches_extension(path: Path, allowed_extensions: Set[str]) -> bool:
    """Check if path has an allowed extension (case-insensitive)."""
    ext = path.suffix.lower()
    if not ext:
        return False
    return ext in {e.lower() for e in allowed_extensions}


def _iter_directory(path_obj: Path, recursive: bool) -> Iterator[Path]:
    if recursive:
        for root, _dirs, files in os.walk(path_obj):
            for filename in files:
                yield Path(root) / filename
        return
    try:
        for entry in path_obj.iterdir():
            if entry.is_file():
                yield entry
    except (PermissionError, OSError) as e:
        logger.warning(f"Cannot list {path_obj}: {e}")


def iter_font_files(
    paths: Iterable[str | Path],
    recursive: bool = False,
    *,
    allowed_extensions: Optional[Set[str]] = None,
) -> Iterator[str]:
    """Yield absolute font file paths as they are discovered.

    - paths: files and/or directories
    - recursive: recurse into directories
    - allowed_extensions: override supported extensions; compared case-insensitively
    """
    allowed = allowed_extensions or SUPPORTED_EXTENSIONS
    for raw in paths:
        path_obj = Path(raw).expanduser()
        if path_obj.is_file():
            if _matches_extension(path_obj, allowed):
                yield str(path_obj.resolve())
        elif path_obj.is_dir():
            for candidate in _iter_directory(path_obj, recursive):
                if _matches_extension(candidate, allowed):
                    yield str(candidate.resolve())
        else:
            logger.warning(f"Skipping {path_obj}: not a file or directory")


def collect_font_files(
    paths: Iterable[str | Path],
    recursive: bool = False,
    *,
    allowed_extensions: Optional[Set[str]] = None,
) -> List[str]:
    """Collect font file paths from a list of files and/or directories.

    Returns:
        Sorted, de-duplicated list of absolute file paths
    """
    return sorted(
        set(
            iter_font_files(
                paths, recursive=recursive, allowed_extensions=allowed_extensions
            )
        )
    )


__all__ = [
    "SUPPORTED_EXTENSIONS",
    "collect_font_files",
    "iter_font_files",
]
