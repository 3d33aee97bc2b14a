"""Data models for agent-bridge.

This module defines the normalized representation of a resolved session and
the request/response types of the divergence reporter. Sessions from every
provider share the same shape regardless of their on-disk format.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator, model_validator


class AgentName(str, Enum):
    """Supported agents whose session logs can be read."""

    CODEX = "codex"
    GEMINI = "gemini"
    CLAUDE = "claude"
    CURSOR = "cursor"


ReportMode = Literal["verify", "steer", "analyze", "feedback"]
REPORT_MODES: tuple[str, ...] = ("verify", "steer", "analyze", "feedback")

Severity = Literal["P1", "P2", "P3"]


@dataclass
class FileEntry:
    """A scanned file and its modification time, used only while selecting."""

    path: Path
    mtime_ns: int


class Session(BaseModel):
    """One normalized, redacted transcript excerpt.

    Built once per resolution call and never mutated afterwards.
    """

    model_config = ConfigDict(frozen=True)

    agent: AgentName
    content: str
    source: str
    warnings: list[str] = Field(default_factory=list)
    session_id: str
    cwd: str | None = None
    timestamp: str | None = None
    message_count: int = 0
    messages_returned: int = 0


class SessionEntry(BaseModel):
    """Catalog row returned by list and search operations."""

    model_config = ConfigDict(frozen=True)

    session_id: str
    agent: AgentName
    cwd: str | None = None
    modified_at: str | None = None
    file_path: str


class SourceSpec(BaseModel):
    """Describes one session to resolve for a report."""

    agent: str
    session_id: str | None = None
    current_session: bool = False
    cwd: str | None = None
    chats_dir: str | None = None

    @model_validator(mode="after")
    def _require_target(self) -> SourceSpec:
        if self.session_id is None and not self.current_session:
            raise ValueError("Each source must provide session_id or set current_session=true")
        return self


class ReportRequest(BaseModel):
    """Input to the divergence reporter."""

    mode: ReportMode
    task: str
    success_criteria: list[str]
    sources: list[SourceSpec]
    constraints: list[str] = Field(default_factory=list)
    normalize: bool = False

    @field_validator("success_criteria", "sources")
    @classmethod
    def _non_empty(cls, value: list) -> list:
        if not value:
            raise ValueError("must contain at least one entry")
        return value


class Finding(BaseModel):
    """A single reporter finding."""

    model_config = ConfigDict(frozen=True)

    severity: Severity
    summary: str
    evidence: list[str] = Field(default_factory=list)
    confidence: float = Field(ge=0.0, le=1.0)


class Report(BaseModel):
    """Structured verdict produced by the divergence reporter."""

    mode: str
    task: str
    success_criteria: list[str]
    sources_used: list[str] = Field(default_factory=list)
    verdict: str
    findings: list[Finding] = Field(default_factory=list)
    recommended_next_actions: list[str] = Field(default_factory=list)
    open_questions: list[str] = Field(default_factory=list)
