"""Helpers shared by the provider adapters: bounded reads, text extraction
and the message selection policy."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from agent_bridge.config import get_config
from agent_bridge.errors import BridgeIOError, ParseFailedError

MESSAGE_SEPARATOR = "\n---\n"
NO_TEXT_CONTENT = "[No text content]"
RAW_TAIL_LINES = 20
RAW_FALLBACK_HEADER = "Could not extract structured messages. Showing last 20 raw lines:"


@dataclass
class ParsedTranscript:
    """What a provider parser extracts from one session file."""

    assistant_messages: list[str] = field(default_factory=list)
    fallback_message: str | None = None
    raw_lines: list[str] = field(default_factory=list)
    session_id: str | None = None
    cwd: str | None = None
    skipped_lines: int = 0


def _check_size(path: Path, max_size: int | None) -> None:
    if max_size is None:
        max_size = get_config().limits.max_file_size
    try:
        size = path.stat().st_size
    except OSError as exc:
        raise BridgeIOError(f"Failed to read {path}: {exc}") from exc
    if size > max_size:
        raise ParseFailedError(
            f"Skipped {path} (exceeds {max_size // (1024 * 1024)}MB size limit)"
        )


def read_text_file(path: Path, max_size: int | None = None) -> str:
    """Read a whole file as text, refusing files above the size ceiling.

    Raises:
        ParseFailedError: If the file is larger than ``max_size`` bytes.
        BridgeIOError: If the file cannot be read.
    """
    _check_size(path, max_size)
    try:
        return path.read_bytes().decode("utf-8", errors="replace")
    except OSError as exc:
        raise BridgeIOError(f"Failed to read {path}: {exc}") from exc


def read_jsonl_lines(path: Path, max_size: int | None = None) -> list[str]:
    """Read a JSONL file into stripped, non-empty lines."""
    text = read_text_file(path, max_size)
    return [line.strip() for line in text.splitlines() if line.strip()]


def read_first_line(path: Path) -> str | None:
    """Return the first non-empty line of a file without reading the rest."""
    limit = get_config().limits.max_file_size
    try:
        with path.open("r", encoding="utf-8", errors="replace") as f:
            for line in f:
                limit -= len(line)
                if line.strip():
                    return line.strip()
                if limit <= 0:
                    break
    except OSError:
        return None
    return None


def extract_text(value: Any) -> str:
    """Extract text from a string or a list of string / ``{"text": ...}`` parts.

    Parts of any other shape contribute nothing.
    """
    if isinstance(value, str):
        return value
    if not isinstance(value, list):
        return ""

    pieces: list[str] = []
    for part in value:
        if isinstance(part, str):
            pieces.append(part)
        elif isinstance(part, dict) and isinstance(part.get("text"), str):
            pieces.append(part["text"])
    return "".join(pieces)


def extract_typed_text(value: Any) -> str:
    """Like ``extract_text`` but only ``{"type": "text"}`` parts count."""
    if isinstance(value, str):
        return value
    if not isinstance(value, list):
        return ""

    return "".join(
        part.get("text") or ""
        for part in value
        if isinstance(part, dict) and part.get("type") == "text" and isinstance(part.get("text", ""), str)
    )


def is_assistant_role(role: Any) -> bool:
    """Case-insensitive check for the assistant role."""
    return isinstance(role, str) and role.lower() == "assistant"


def select_content(parsed: ParsedTranscript, last_n: int = 1) -> tuple[str, int]:
    """Apply the message selection policy.

    Args:
        parsed: Parser output.
        last_n: Number of trailing assistant messages to return.

    Returns:
        Tuple of (unredacted content, number of messages included).
    """
    messages = parsed.assistant_messages
    if messages:
        if last_n > 1:
            selected = messages[-last_n:]
            return MESSAGE_SEPARATOR.join(m or NO_TEXT_CONTENT for m in selected), len(selected)
        return messages[-1] or NO_TEXT_CONTENT, 1

    if parsed.fallback_message is not None:
        return parsed.fallback_message or NO_TEXT_CONTENT, 1

    tail = "\n".join(parsed.raw_lines[-RAW_TAIL_LINES:])
    return f"{RAW_FALLBACK_HEADER}\n{tail}", 0


def skipped_lines_warning(count: int, path: Path) -> str:
    """Warning text for unparseable lines."""
    return f"Warning: skipped {count} unparseable line(s) in {path}"


def file_timestamp(path: Path) -> str | None:
    """Return the file's mtime as an ISO-8601 UTC string (millisecond precision)."""
    try:
        mtime = path.stat().st_mtime
    except OSError:
        return None
    stamp = datetime.fromtimestamp(mtime, tz=timezone.utc)
    return stamp.isoformat(timespec="milliseconds").replace("+00:00", "Z")
