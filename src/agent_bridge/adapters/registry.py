"""Adapter registry for managing session adapters."""

from __future__ import annotations

from typing import TYPE_CHECKING

from agent_bridge.errors import UnsupportedAgentError

if TYPE_CHECKING:
    from agent_bridge.adapters.base import SessionAdapter


class AdapterRegistry:
    """Registry for managing session adapters."""

    def __init__(self) -> None:
        self._adapters: dict[str, SessionAdapter] = {}

    def register(self, adapter: SessionAdapter) -> None:
        """Register an adapter with the registry."""
        self._adapters[adapter.name] = adapter

    def get_adapter(self, name: str) -> SessionAdapter:
        """Get an adapter by name (case-insensitive).

        Args:
            name: The adapter identifier.

        Returns:
            The registered adapter.

        Raises:
            UnsupportedAgentError: If no adapter with the given name is registered.
        """
        key = name.strip().lower()
        if key not in self._adapters:
            available = ", ".join(self._adapters.keys()) or "none"
            raise UnsupportedAgentError(
                f"Unsupported agent: {name}. Supported agents: {available}"
            )
        return self._adapters[key]

    def names(self) -> list[str]:
        """Registered adapter identifiers in registration order."""
        return list(self._adapters.keys())


# Global registry instance
registry = AdapterRegistry()
