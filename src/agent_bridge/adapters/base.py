"""Base adapter interface for session sources."""

from __future__ import annotations

import logging
import os
from abc import ABC, abstractmethod
from collections.abc import Iterator
from dataclasses import dataclass, field
from itertools import islice
from pathlib import Path

from agent_bridge.adapters.common import (
    ParsedTranscript,
    file_timestamp,
    read_text_file,
    select_content,
    skipped_lines_warning,
)
from agent_bridge.config import get_config
from agent_bridge.errors import BridgeError, BridgeIOError, NotFoundError
from agent_bridge.models import FileEntry, Session, SessionEntry
from agent_bridge.paths import expand_home, normalize_path
from agent_bridge.scanner import collect_matching_files, path_contains
from agent_bridge.security import redact

logger = logging.getLogger(__name__)

SYSTEM_DIRS = (
    "/etc",
    "/usr",
    "/var",
    "/bin",
    "/sbin",
    "/System",
    "/Library",
    "/Windows",
    "/Program Files",
    "/Program Files (x86)",
)


def is_system_directory(path_str: str) -> bool:
    """Return True for paths at or below a well-known system directory."""
    resolved = normalize_path(path_str)
    return any(resolved == d or resolved.startswith(d + os.sep) for d in SYSTEM_DIRS)


@dataclass
class Resolution:
    """The file chosen for a read, plus warnings gathered while choosing it."""

    path: Path
    warnings: list[str] = field(default_factory=list)


class SessionAdapter(ABC):
    """Base class for all session adapters.

    Subclasses describe where a provider keeps its files and how to parse
    them; the selection ladder (explicit id, cwd-scoped latest, latest with a
    warning) and the catalog operations live here.
    """

    recursive: bool = True

    def __init__(self, base_path: Path | None = None) -> None:
        """Initialize the adapter.

        Args:
            base_path: Optional base directory. Defaults to the configured
                      path (environment override, config file, built-in default).
        """
        self._base_path = base_path

    @property
    @abstractmethod
    def name(self) -> str:
        """Adapter identifier (e.g., 'codex', 'claude')."""
        ...

    @property
    @abstractmethod
    def display_name(self) -> str:
        """Human-readable name."""
        ...

    @property
    def base_path(self) -> Path:
        """Base directory in effect for this adapter."""
        return self._base_path if self._base_path is not None else self.get_default_path()

    def get_default_path(self) -> Path:
        """Get the configured base directory for this provider."""
        path = get_config().get_source_path(self.name)
        if path is None:
            raise NotFoundError(f"No base directory configured for {self.display_name}.")
        return path

    @abstractmethod
    def is_session_file(self, path: Path) -> bool:
        """Return True if ``path`` looks like one of this provider's session files."""
        ...

    @abstractmethod
    def session_cwd(self, path: Path) -> str | None:
        """Return the normalized working directory recorded in a session file."""
        ...

    @abstractmethod
    def parse(self, path: Path) -> ParsedTranscript:
        """Parse one session file."""
        ...

    def cwd_matches(self, path: Path, file_cwd: str | None, expected: str) -> bool:
        """Decide whether a session file belongs to ``expected`` cwd."""
        return file_cwd is not None and file_cwd == expected

    def scan_root(self, explicit_dir: str | None = None) -> Path:
        """Directory to scan: the explicit one when given, else the base directory."""
        if explicit_dir:
            if is_system_directory(explicit_dir):
                raise BridgeIOError(
                    f"Refusing to scan system directory: {normalize_path(explicit_dir)}"
                )
            return Path(normalize_path(explicit_dir))
        return Path(os.path.abspath(expand_home(str(self.base_path))))

    def scan(self, root: Path, session_id: str | None = None) -> list[FileEntry]:
        """List session files under ``root``, optionally only those matching an id."""
        if session_id:
            return collect_matching_files(
                root,
                lambda p: self.is_session_file(p) and path_contains(p, session_id),
                recursive=self.recursive,
            )
        return collect_matching_files(root, self.is_session_file, recursive=self.recursive)

    def resolve(
        self,
        session_id: str | None,
        cwd: str,
        explicit_dir: str | None = None,
    ) -> Resolution:
        """Select the session file to read.

        Args:
            session_id: Substring of the wanted session's path.
            cwd: Working directory used for scoping when no id is given.
            explicit_dir: Directory to scan instead of the base directory.

        Returns:
            The chosen file and any fallback warnings.

        Raises:
            NotFoundError: If the directory is missing or holds no match.
        """
        root = self.scan_root(explicit_dir)
        if not root.is_dir():
            raise NotFoundError(f"No {self.display_name} session found. Directory not found: {root}")

        if session_id:
            matches = self.scan(root, session_id)
            if not matches:
                raise NotFoundError(
                    f"No {self.display_name} session found matching id '{session_id}'."
                )
            return Resolution(path=matches[0].path)

        files = self.scan(root)
        if not files:
            raise NotFoundError(f"No {self.display_name} session found in {root}.")

        expected = normalize_path(cwd)
        scoped = self.find_latest_by_cwd(files, expected)
        if scoped is not None:
            return Resolution(path=scoped)

        logger.debug("No %s session matched cwd %s", self.name, expected)
        return Resolution(
            path=files[0].path,
            warnings=[
                f"Warning: no {self.display_name} session matched cwd {expected}; "
                "falling back to latest session."
            ],
        )

    def find_latest_by_cwd(self, files: list[FileEntry], expected: str) -> Path | None:
        """Return the first (most recent) file whose recorded cwd matches."""
        for entry in files:
            if self.cwd_matches(entry.path, self.session_cwd(entry.path), expected):
                return entry.path
        return None

    def read_session(
        self,
        session_id: str | None = None,
        cwd: str | None = None,
        explicit_dir: str | None = None,
        last_n: int = 1,
    ) -> Session:
        """Resolve, parse, select and redact one session.

        Args:
            session_id: Optional session id substring.
            cwd: Working directory for scoping (defaults to the process cwd).
            explicit_dir: Optional directory overriding the base directory.
            last_n: Number of trailing assistant messages to include.

        Returns:
            The normalized, redacted Session.
        """
        resolution = self.resolve(session_id, cwd or os.getcwd(), explicit_dir)
        path = resolution.path
        parsed = self.parse(path)

        warnings = list(resolution.warnings)
        if parsed.skipped_lines:
            warnings.append(skipped_lines_warning(parsed.skipped_lines, path))

        content, returned = select_content(parsed, max(1, last_n))

        return Session(
            agent=self.name,
            content=redact(content),
            source=str(path),
            warnings=warnings,
            session_id=parsed.session_id or path.stem,
            cwd=parsed.cwd,
            timestamp=file_timestamp(path),
            message_count=len(parsed.assistant_messages),
            messages_returned=returned,
        )

    def catalog(self, cwd: str | None = None) -> Iterator[SessionEntry]:
        """Yield catalog entries newest first, scoped to ``cwd`` when given."""
        root = self.scan_root()
        if not root.is_dir():
            return

        expected = normalize_path(cwd) if cwd else None
        for entry in self.scan(root):
            file_cwd = self.session_cwd(entry.path)
            if expected is not None and not self.cwd_matches(entry.path, file_cwd, expected):
                continue
            yield self.make_entry(entry.path, file_cwd)

    def make_entry(self, path: Path, file_cwd: str | None) -> SessionEntry:
        """Build a catalog row for ``path``."""
        return SessionEntry(
            session_id=path.stem,
            agent=self.name,
            cwd=file_cwd,
            modified_at=file_timestamp(path),
            file_path=str(path),
        )

    def list_sessions(self, cwd: str | None = None, limit: int = 10) -> list[SessionEntry]:
        """List at most ``limit`` sessions, newest first."""
        if limit <= 0:
            return []
        return list(islice(self.catalog(cwd), limit))

    def search_sessions(
        self, query: str, cwd: str | None = None, limit: int = 10
    ) -> list[SessionEntry]:
        """List at most ``limit`` sessions whose raw content contains ``query``.

        Matching is a case-insensitive substring test over the whole file.
        Unreadable or oversized files are skipped.
        """
        needle = query.lower()
        results: list[SessionEntry] = []
        if limit <= 0:
            return results

        for entry in self.catalog(cwd):
            try:
                content = read_text_file(Path(entry.file_path))
            except BridgeError as exc:
                logger.debug("Skipping %s during search: %s", entry.file_path, exc)
                continue
            if needle in content.lower():
                results.append(entry)
                if len(results) >= limit:
                    break

        return results
