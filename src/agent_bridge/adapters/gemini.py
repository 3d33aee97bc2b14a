"""Gemini CLI session adapter.

Parses Gemini CLI sessions stored in ~/.gemini/tmp/<project_hash>/chats/session-*.json.
``<project_hash>`` is the SHA-256 of the project directory, so sessions are
scoped by directory rather than by a cwd recorded inside the file.

Two document shapes are accepted:
- ``{"sessionId": ..., "messages": [{"type": "user"|"gemini", "content": ...}]}``
- ``{"history": [{"role": "user"|"model", "parts": [{"text": ...}]}]}``
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterator
from pathlib import Path
from typing import Any

from agent_bridge.adapters.base import Resolution, SessionAdapter
from agent_bridge.adapters.common import (
    NO_TEXT_CONTENT,
    ParsedTranscript,
    extract_text,
    read_text_file,
)
from agent_bridge.config import get_config
from agent_bridge.errors import EmptySessionError, NotFoundError, ParseFailedError
from agent_bridge.models import FileEntry, SessionEntry
from agent_bridge.paths import hash_path, normalize_path
from agent_bridge.scanner import (
    collect_matching_files,
    has_extension,
    path_contains,
    sort_entries,
)

logger = logging.getLogger(__name__)

SESSION_FILE_PREFIX = "session-"
ASSISTANT_TYPES = frozenset({"gemini", "assistant", "model"})


def _is_assistant_type(value: Any) -> bool:
    return isinstance(value, str) and value.lower() in ASSISTANT_TYPES


def _history_text(turn: dict[str, Any]) -> str:
    """Join a history turn's parts with newlines."""
    parts = turn.get("parts")
    if isinstance(parts, list):
        return "\n".join(
            p["text"] if isinstance(p, dict) and isinstance(p.get("text"), str) else ""
            for p in parts
        )
    if isinstance(parts, str):
        return parts
    return NO_TEXT_CONTENT


class GeminiCliAdapter(SessionAdapter):
    """Adapter for Gemini CLI session files."""

    recursive = False

    @property
    def name(self) -> str:
        """Adapter identifier."""
        return "gemini"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return "Gemini"

    def is_session_file(self, path: Path) -> bool:
        """Gemini sessions are ``session-*.json`` files in a chats directory."""
        return has_extension(path, "json") and path.name.startswith(SESSION_FILE_PREFIX)

    def session_cwd(self, path: Path) -> str | None:
        """Gemini files do not record a cwd usable for scoping."""
        return None

    def scoped_chats_dir(self, cwd: str) -> Path:
        """Chats directory for ``cwd`` under the hashed project layout."""
        return self.scan_root() / hash_path(cwd) / "chats"

    def chat_dirs(self) -> list[Path]:
        """Existing ``<tmp>/<hash>/chats`` directories, sorted by path.

        At most ``max_scan_files`` directories are returned.
        """
        tmp_base = self.scan_root()
        if not tmp_base.is_dir():
            return []

        max_dirs = get_config().limits.max_scan_files
        try:
            with os.scandir(tmp_base) as it:
                project_dirs = sorted(it, key=lambda e: e.name)
        except OSError as exc:
            logger.debug("Skipping unreadable Gemini tmp directory %s: %s", tmp_base, exc)
            return []

        dirs: list[Path] = []
        for project_dir in project_dirs:
            if len(dirs) >= max_dirs:
                logger.debug("Gemini directory listing stopped at %d projects", max_dirs)
                break
            if project_dir.is_symlink() or not project_dir.is_dir(follow_symlinks=False):
                continue
            chats = Path(project_dir.path) / "chats"
            if chats.is_dir() and not chats.is_symlink():
                dirs.append(chats)
        return dirs

    def _candidates(self, dirs: list[Path], session_id: str | None = None) -> list[FileEntry]:
        """Session files across ``dirs``, newest first.

        With an id, any ``.json`` file whose path contains it qualifies. The
        scan cap applies to the whole call, not to each directory.
        """
        if session_id:

            def predicate(p: Path) -> bool:
                return has_extension(p, "json") and path_contains(p, session_id)

        else:
            predicate = self.is_session_file

        remaining = get_config().limits.max_scan_files
        candidates: list[FileEntry] = []
        for chats_dir in dirs:
            if remaining <= 0:
                break
            found = collect_matching_files(
                chats_dir, predicate, recursive=False, max_files=remaining
            )
            candidates.extend(found)
            remaining -= len(found)
        sort_entries(candidates)
        return candidates

    def resolve(
        self,
        session_id: str | None,
        cwd: str,
        explicit_dir: str | None = None,
    ) -> Resolution:
        """Select a session file.

        The hashed directory for ``cwd`` is preferred; sibling project
        directories are only used (with a warning) when it holds no sessions.
        An explicit chats directory replaces both.
        """
        if explicit_dir:
            explicit = self.scan_root(explicit_dir)
            scoped_dir: Path | None = explicit if explicit.is_dir() else None
            siblings: list[Path] = []
        else:
            scoped = self.scoped_chats_dir(cwd)
            scoped_dir = scoped if scoped.is_dir() else None
            siblings = [d for d in self.chat_dirs() if d != scoped]

        searched = ([scoped_dir] if scoped_dir else []) + siblings
        if not searched:
            raise NotFoundError("No Gemini session found. No chats directories exist.")

        if session_id:
            matches = self._candidates(searched, session_id)
            if not matches:
                raise NotFoundError(f"No Gemini session found matching id '{session_id}'.")
            return Resolution(path=matches[0].path)

        if scoped_dir is not None:
            scoped_files = self._candidates([scoped_dir])
            if scoped_files:
                return Resolution(path=scoped_files[0].path)

        fallback = self._candidates(siblings)
        if not fallback:
            raise NotFoundError(
                "No Gemini session found. Searched chats directories: "
                + ", ".join(str(d) for d in searched)
            )

        logger.debug("No Gemini chats directory for cwd %s; using latest session", cwd)
        return Resolution(
            path=fallback[0].path,
            warnings=[
                f"Warning: no Gemini session matched cwd {normalize_path(cwd)}; "
                "falling back to latest session."
            ],
        )

    def catalog(self, cwd: str | None = None) -> Iterator[SessionEntry]:
        """Yield sessions from the hashed directory for ``cwd``, or from all projects."""
        if cwd:
            scoped = self.scoped_chats_dir(cwd)
            dirs = [scoped] if scoped.is_dir() else []
        else:
            dirs = self.chat_dirs()

        for entry in self._candidates(dirs):
            yield self.make_entry(entry.path, None)

    def parse(self, path: Path) -> ParsedTranscript:
        """Parse a Gemini session JSON document.

        Raises:
            ParseFailedError: If the file is not JSON or has an unknown schema.
            EmptySessionError: If the messages/history array is empty.
        """
        raw = read_text_file(path)
        try:
            data = json.loads(raw)
        except json.JSONDecodeError as exc:
            raise ParseFailedError(f"Failed to parse Gemini JSON: {exc}") from exc
        if not isinstance(data, dict):
            raise ParseFailedError("Failed to parse Gemini JSON: top-level value is not an object")

        session_id = data.get("sessionId")
        parsed = ParsedTranscript(
            raw_lines=[line for line in raw.splitlines() if line.strip()],
            session_id=session_id if isinstance(session_id, str) else None,
            cwd=self._extract_project_path(data),
        )

        messages = data.get("messages")
        history = data.get("history")
        if isinstance(messages, list):
            records = [m for m in messages if isinstance(m, dict)]
            if not records:
                raise EmptySessionError("Gemini session has no messages.")
            parsed.assistant_messages = [
                extract_text(m.get("content")) for m in records if _is_assistant_type(m.get("type"))
            ]
            parsed.fallback_message = extract_text(records[-1].get("content"))
        elif isinstance(history, list):
            turns = [t for t in history if isinstance(t, dict)]
            if not turns:
                raise EmptySessionError("Gemini history is empty.")
            parsed.assistant_messages = [
                _history_text(t)
                for t in turns
                if not (isinstance(t.get("role"), str) and t["role"].lower() == "user")
            ]
            parsed.fallback_message = _history_text(turns[-1])
        else:
            raise ParseFailedError(
                "Unknown Gemini session schema. Supported fields: messages, history."
            )

        return parsed

    def _extract_project_path(self, data: dict[str, Any]) -> str | None:
        """Extract a project path from recorded directories."""
        directories = data.get("directories")
        if isinstance(directories, list):
            for item in directories:
                if isinstance(item, str) and item.strip():
                    return item
        return None
