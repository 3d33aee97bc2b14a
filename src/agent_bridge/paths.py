"""Path and working-directory normalization helpers."""

from __future__ import annotations

import hashlib
import os
from pathlib import Path


def expand_home(path_str: str) -> str:
    """Expand a leading ``~`` or ``~/`` to the user's home directory.

    Other ``~user`` forms are left untouched.
    """
    if path_str == "~":
        return str(Path.home())
    if path_str.startswith("~/"):
        return str(Path.home() / path_str[2:])
    return path_str


def normalize_path(path_str: str | os.PathLike[str]) -> str:
    """Normalize a path for cwd comparison.

    Expands the home marker, resolves relative paths against the current
    process directory and canonicalizes symlinks and ``..`` segments. When
    canonicalization fails (e.g. the path does not exist) the absolute,
    lexically-normalized path is returned instead.

    Args:
        path_str: Any path string.

    Returns:
        The normalized absolute path as a string.
    """
    absolute = os.path.abspath(expand_home(os.fspath(path_str)))
    try:
        return str(Path(absolute).resolve(strict=True))
    except (OSError, RuntimeError):
        return absolute


def hash_path(path_str: str | os.PathLike[str]) -> str:
    """Return the SHA-256 hex digest of the normalized path."""
    return hashlib.sha256(normalize_path(path_str).encode("utf-8")).hexdigest()
