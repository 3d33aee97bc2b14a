"""Cursor session adapter.

Cursor keeps chat exports under its workspace storage directory:
``<cursor data>/User/workspaceStorage/<workspace>/...``. Only JSON or JSONL
files whose name mentions ``chat``, ``composer`` or ``conversation`` are
treated as sessions.

Data formats:
- JSON document with a ``messages`` array of ``{"role", "content"}`` objects
  (a bare top-level array is accepted too)
- JSON document with a single ``content`` string
- JSON Lines, one ``{"role", "content"}`` object per line

Files carry no working directory, so cwd scoping is a substring match of the
cwd against the raw file content.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from agent_bridge.adapters.base import SessionAdapter
from agent_bridge.adapters.common import (
    ParsedTranscript,
    extract_text,
    is_assistant_role,
    read_text_file,
)
from agent_bridge.errors import BridgeError
from agent_bridge.scanner import has_extension

logger = logging.getLogger(__name__)

SESSION_NAME_KEYWORDS = ("chat", "composer", "conversation")
WORKSPACE_STORAGE = Path("User") / "workspaceStorage"


class CursorAdapter(SessionAdapter):
    """Adapter for Cursor chat exports.

    The base directory is Cursor's data directory; the scan starts at its
    ``User/workspaceStorage`` subdirectory unless an explicit directory is given.
    """

    @property
    def name(self) -> str:
        """Adapter identifier."""
        return "cursor"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return "Cursor"

    def scan_root(self, explicit_dir: str | None = None) -> Path:
        """Workspace storage directory, or the explicit directory when given."""
        if explicit_dir:
            return super().scan_root(explicit_dir)
        return super().scan_root() / WORKSPACE_STORAGE

    def is_session_file(self, path: Path) -> bool:
        """JSON/JSONL files named like chat, composer or conversation exports."""
        if not has_extension(path, "json", "jsonl"):
            return False
        lowered = path.name.lower()
        return any(keyword in lowered for keyword in SESSION_NAME_KEYWORDS)

    def session_cwd(self, path: Path) -> str | None:
        """Cursor exports do not record a working directory."""
        return None

    def cwd_matches(self, path: Path, file_cwd: str | None, expected: str) -> bool:
        """Match when the raw file content mentions ``expected``."""
        try:
            return expected in read_text_file(path)
        except BridgeError as exc:
            logger.debug("Skipping %s during cwd match: %s", path, exc)
            return False

    def parse(self, path: Path) -> ParsedTranscript:
        """Parse a Cursor export as a JSON document, falling back to JSON Lines.

        Args:
            path: Path to the session file.

        Returns:
            Extracted messages; in JSONL mode malformed lines are counted.
        """
        raw = read_text_file(path)
        lines = [line.strip() for line in raw.splitlines() if line.strip()]
        parsed = ParsedTranscript(raw_lines=lines, session_id=path.stem)

        try:
            document = json.loads(raw)
        except json.JSONDecodeError:
            self._parse_lines(lines, parsed)
            return parsed

        if isinstance(document, dict) and isinstance(document.get("messages"), list):
            self._collect_records(document["messages"], parsed)
        elif isinstance(document, list):
            self._collect_records(document, parsed)
        elif isinstance(document, dict) and isinstance(document.get("content"), str):
            parsed.assistant_messages.append(document["content"])
        # Anything else is left to the raw-lines fallback

        return parsed

    def _collect_records(self, records: list[Any], parsed: ParsedTranscript) -> None:
        messages = [r for r in records if isinstance(r, dict)]
        for message in messages:
            if is_assistant_role(message.get("role")):
                parsed.assistant_messages.append(extract_text(message.get("content")))
        if messages:
            parsed.fallback_message = extract_text(messages[-1].get("content"))

    def _parse_lines(self, lines: list[str], parsed: ParsedTranscript) -> None:
        last_record: dict[str, Any] | None = None
        for line in lines:
            try:
                record = json.loads(line)
            except json.JSONDecodeError:
                parsed.skipped_lines += 1
                continue
            if not isinstance(record, dict):
                continue

            last_record = record
            if is_assistant_role(record.get("role")):
                parsed.assistant_messages.append(extract_text(record.get("content")))

        if last_record is not None:
            parsed.fallback_message = extract_text(last_record.get("content"))
