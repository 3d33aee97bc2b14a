"""Codex CLI session adapter.

Parses OpenAI Codex CLI sessions from ~/.codex/sessions/.
Codex CLI uses JSONL files stored in date-based directories (YYYY/MM/DD/).

Two session formats are supported:
1. Legacy format (pre-0.63.0): Direct JSON lines with 'type: message', 'role', 'content'
2. Modern format (0.63.0+): Wrapped in 'type/payload' with 'session_meta', 'response_item',
   'event_msg', 'turn_context' event types. Assistant text shows up both as
   ``response_item`` messages and as ``event_msg`` agent messages.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from agent_bridge.adapters.base import SessionAdapter
from agent_bridge.adapters.common import (
    ParsedTranscript,
    extract_text,
    is_assistant_role,
    read_first_line,
    read_jsonl_lines,
)
from agent_bridge.paths import normalize_path
from agent_bridge.scanner import has_extension


class CodexAdapter(SessionAdapter):
    """Adapter for OpenAI Codex CLI sessions."""

    @property
    def name(self) -> str:
        """Adapter identifier."""
        return "codex"

    @property
    def display_name(self) -> str:
        """Human-readable name."""
        return "Codex"

    def is_session_file(self, path: Path) -> bool:
        """Codex sessions are ``.jsonl`` files anywhere below the base directory."""
        return has_extension(path, "jsonl")

    def session_cwd(self, path: Path) -> str | None:
        """Read the cwd from the leading ``session_meta`` line."""
        first = read_first_line(path)
        if first is None:
            return None
        try:
            event = json.loads(first)
        except json.JSONDecodeError:
            return None
        if not isinstance(event, dict) or event.get("type") != "session_meta":
            return None
        payload = event.get("payload")
        if isinstance(payload, dict) and isinstance(payload.get("cwd"), str):
            return normalize_path(payload["cwd"])
        return None

    def parse(self, path: Path) -> ParsedTranscript:
        """Parse a Codex JSONL event log.

        Args:
            path: Path to the session file.

        Returns:
            Extracted messages and metadata; malformed lines are counted.
        """
        lines = read_jsonl_lines(path)
        parsed = ParsedTranscript(raw_lines=lines)
        records: list[tuple[Any, str]] = []

        for line in lines:
            try:
                event = json.loads(line)
            except json.JSONDecodeError:
                parsed.skipped_lines += 1
                continue
            if not isinstance(event, dict):
                continue

            record = self._message_record(event, parsed)
            if record is not None:
                records.append(record)

        parsed.assistant_messages = [text for role, text in records if is_assistant_role(role)]
        if records:
            parsed.fallback_message = records[-1][1]
        return parsed

    def _message_record(
        self, event: dict[str, Any], parsed: ParsedTranscript
    ) -> tuple[Any, str] | None:
        """Normalize one event to ``(role, text)``; collect session metadata."""
        event_type = event.get("type")
        payload = event.get("payload")

        if event_type == "session_meta" and isinstance(payload, dict):
            if isinstance(payload.get("cwd"), str) and parsed.cwd is None:
                parsed.cwd = payload["cwd"]
            session_id = payload.get("id") or payload.get("session_id")
            if isinstance(session_id, str) and parsed.session_id is None:
                parsed.session_id = session_id
            return None

        if event_type == "response_item" and isinstance(payload, dict):
            if payload.get("type") == "message":
                return payload.get("role"), extract_text(payload.get("content"))
            return None

        if event_type == "event_msg" and isinstance(payload, dict):
            if payload.get("type") == "agent_message":
                return "assistant", extract_text(payload.get("message"))
            return None

        # Legacy format: un-enveloped message lines
        if event_type == "message" and "role" in event:
            return event.get("role"), extract_text(event.get("content"))

        return None
