"""Bounded, symlink-safe directory scanning."""

from __future__ import annotations

import logging
import os
from collections.abc import Callable
from pathlib import Path

from agent_bridge.config import get_config
from agent_bridge.models import FileEntry

logger = logging.getLogger(__name__)

PathPredicate = Callable[[Path], bool]


def collect_matching_files(
    root: Path,
    predicate: PathPredicate,
    recursive: bool = False,
    max_files: int | None = None,
) -> list[FileEntry]:
    """Collect files under ``root`` accepted by ``predicate``.

    The walk uses an explicit stack and a match counter: once ``max_files``
    matches have been collected no further directory is read. Symbolic links
    are never followed.

    Args:
        root: Directory to scan. A missing root yields an empty list.
        predicate: Called with each regular file path; True keeps the file.
        recursive: Descend into subdirectories.
        max_files: Match ceiling; defaults to the configured ``max_scan_files``.

    Returns:
        Matching entries, most recently modified first, ties by path.
    """
    if max_files is None:
        max_files = get_config().limits.max_scan_files

    if not root.is_dir():
        return []

    matches: list[FileEntry] = []
    stack = [root]

    while stack and len(matches) < max_files:
        current = stack.pop()
        try:
            with os.scandir(current) as it:
                entries = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.debug("Skipping unreadable directory %s: %s", current, exc)
            continue

        subdirs: list[Path] = []
        for entry in entries:
            if len(matches) >= max_files:
                break
            try:
                if entry.is_symlink():
                    continue
                if entry.is_dir(follow_symlinks=False):
                    if recursive:
                        subdirs.append(Path(entry.path))
                    continue
                if not entry.is_file(follow_symlinks=False):
                    continue
            except OSError:
                continue

            path = Path(entry.path)
            if not predicate(path):
                continue

            try:
                mtime_ns = entry.stat(follow_symlinks=False).st_mtime_ns
            except OSError:
                # Entry disappeared while scanning
                continue
            matches.append(FileEntry(path=path, mtime_ns=mtime_ns))

        # Reverse so the alphabetically-first directory is popped first
        stack.extend(reversed(subdirs))

    if len(matches) >= max_files:
        logger.debug("Scan of %s stopped at %d files", root, max_files)

    sort_entries(matches)
    return matches


def sort_entries(entries: list[FileEntry]) -> None:
    """Sort entries in place: newest first, then by path for determinism."""
    entries.sort(key=lambda e: (-e.mtime_ns, str(e.path)))


def has_extension(path: Path, *extensions: str) -> bool:
    """Case-insensitive file extension check (extensions without the dot)."""
    suffix = path.suffix.lower().lstrip(".")
    return suffix in {ext.lower() for ext in extensions}


def path_contains(path: Path, needle: str) -> bool:
    """Substring match over the full path string."""
    return needle in str(path)
