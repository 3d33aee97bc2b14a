"""Claude Code session adapter.

Parses sessions from Claude Code's JSONL format stored in ~/.claude/projects/.
Each line is an entry; conversational entries carry a ``message`` object with
``role`` and ``content``, older or flattened entries carry them at the top level.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agent_bridge.adapters.base import SessionAdapter
from agent_bridge.adapters.common import (
    ParsedTranscript,
    extract_typed_text,
    is_assistant_role,
    read_jsonl_lines,
)
from agent_bridge.errors import BridgeError
from agent_bridge.paths import normalize_path
from agent_bridge.scanner import has_extension


class ClaudeCodeAdapter(SessionAdapter):
    """Adapter for Claude Code session files."""

    @property
    def name(self) -> str:
        """Adapter identifier."""
        return "claude"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return "Claude"

    def is_session_file(self, path: Path) -> bool:
        """Claude sessions are ``.jsonl`` files inside per-project directories."""
        return has_extension(path, "jsonl")

    def session_cwd(self, path: Path) -> str | None:
        """Return the first ``cwd`` recorded by any entry."""
        try:
            lines = read_jsonl_lines(path)
        except BridgeError:
            return None

        for line in lines:
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                continue
            if isinstance(entry, dict) and isinstance(entry.get("cwd"), str):
                return normalize_path(entry["cwd"])
        return None

    def parse(self, path: Path) -> ParsedTranscript:
        """Parse a Claude Code JSONL session file.

        Args:
            path: Path to the session file.

        Returns:
            Extracted assistant texts and metadata; malformed lines are counted.
        """
        lines = read_jsonl_lines(path)
        parsed = ParsedTranscript(raw_lines=lines, session_id=path.stem)

        for line in lines:
            try:
                entry = json.loads(line)
            except json.JSONDecodeError:
                parsed.skipped_lines += 1
                continue
            if not isinstance(entry, dict):
                continue

            if parsed.cwd is None and isinstance(entry.get("cwd"), str):
                parsed.cwd = entry["cwd"]

            text = self._entry_text(entry)
            if not text:
                continue

            message = self._message(entry)
            if entry.get("type") == "assistant" or is_assistant_role(message.get("role")):
                parsed.assistant_messages.append(text)
            parsed.fallback_message = text

        return parsed

    def _message(self, entry: dict[str, Any]) -> dict[str, Any]:
        message = entry.get("message")
        return message if isinstance(message, dict) else entry

    def _entry_text(self, entry: dict[str, Any]) -> str:
        """Extract text parts from the entry's message content."""
        message = self._message(entry)
        content = message.get("content") if "content" in message else entry.get("content")
        return extract_typed_text(content)
