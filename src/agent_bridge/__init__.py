"""
agent_bridge - Agent Bridge

Locate, parse and redact session transcripts written by AI coding agents
(Codex, Claude, Gemini, Cursor) and compare their outputs.
"""

__version__ = "0.1.0"

from agent_bridge.errors import BridgeError
from agent_bridge.models import (
    AgentName,
    Finding,
    Report,
    ReportRequest,
    Session,
    SessionEntry,
    SourceSpec,
)
from agent_bridge.security import redact
from agent_bridge.resolver import list_sessions, resolve_session, search_sessions
from agent_bridge.report import build_report

__all__ = [
    "__version__",
    # Models
    "AgentName",
    "Session",
    "SessionEntry",
    "SourceSpec",
    "ReportRequest",
    "Finding",
    "Report",
    # Errors
    "BridgeError",
    # Operations
    "resolve_session",
    "list_sessions",
    "search_sessions",
    "redact",
    "build_report",
]
