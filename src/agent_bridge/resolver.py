"""Public session resolution entry points.

These functions pick the adapter for an agent name and delegate to it. They
are what the CLI and the divergence reporter call.
"""

from __future__ import annotations

import logging

from agent_bridge.adapters import registry
from agent_bridge.adapters.base import SessionAdapter
from agent_bridge.config import get_config
from agent_bridge.errors import NotFoundError
from agent_bridge.models import Session, SessionEntry

logger = logging.getLogger(__name__)


def enabled_adapter(agent: str) -> SessionAdapter:
    """Look up the adapter for ``agent``, refusing sources disabled in config.

    Raises:
        UnsupportedAgentError: If ``agent`` is not a known provider.
        NotFoundError: If the source is disabled with ``enabled = false``.
    """
    adapter = registry.get_adapter(agent)
    if not get_config().is_source_enabled(adapter.name):
        raise NotFoundError(f"{adapter.display_name} sessions are disabled in the configuration.")
    return adapter


def resolve_session(
    agent: str,
    session_id: str | None = None,
    cwd: str | None = None,
    explicit_dir: str | None = None,
    last_n: int = 1,
) -> Session:
    """Resolve, parse and redact one session for ``agent``.

    Args:
        agent: Provider name (codex, claude, gemini, cursor).
        session_id: Substring of the wanted session's file path.
        cwd: Working directory used for scoping; defaults to the process cwd.
        explicit_dir: Directory to scan instead of the provider's base directory.
        last_n: Number of trailing assistant messages to include (at least 1).

    Returns:
        The normalized Session.

    Raises:
        UnsupportedAgentError: If ``agent`` is not a known provider.
        NotFoundError: If the source is disabled or no session could be selected.
        ParseFailedError: If the selected file cannot be parsed.
    """
    adapter = enabled_adapter(agent)
    logger.debug("Resolving %s session (id=%s, cwd=%s)", adapter.name, session_id, cwd)
    return adapter.read_session(
        session_id=session_id,
        cwd=cwd,
        explicit_dir=explicit_dir,
        last_n=max(1, last_n),
    )


def list_sessions(agent: str, cwd: str | None = None, limit: int = 10) -> list[SessionEntry]:
    """List the most recent sessions for ``agent``, scoped to ``cwd`` when given."""
    return enabled_adapter(agent).list_sessions(cwd=cwd, limit=limit)


def search_sessions(
    agent: str, query: str, cwd: str | None = None, limit: int = 10
) -> list[SessionEntry]:
    """List sessions for ``agent`` whose content contains ``query`` (case-insensitive)."""
    return enabled_adapter(agent).search_sessions(query, cwd=cwd, limit=limit)
