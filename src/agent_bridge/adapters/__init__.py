"""Session adapters for different AI coding agents."""

from agent_bridge.adapters.base import Resolution, SessionAdapter
from agent_bridge.adapters.claude import ClaudeCodeAdapter
from agent_bridge.adapters.codex import CodexAdapter
from agent_bridge.adapters.cursor import CursorAdapter
from agent_bridge.adapters.gemini import GeminiCliAdapter
from agent_bridge.adapters.registry import AdapterRegistry, registry

# Register all adapters
registry.register(CodexAdapter())
registry.register(GeminiCliAdapter())
registry.register(ClaudeCodeAdapter())
registry.register(CursorAdapter())

__all__ = [
    "AdapterRegistry",
    "ClaudeCodeAdapter",
    "CodexAdapter",
    "CursorAdapter",
    "GeminiCliAdapter",
    "Resolution",
    "SessionAdapter",
    "registry",
]
