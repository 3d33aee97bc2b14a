"""Error taxonomy for agent-bridge.

Every error that crosses the public API is a ``BridgeError`` subclass carrying a
stable ``error_code`` so structured-output callers can branch on it.
"""

from __future__ import annotations


class BridgeError(Exception):
    """Base class for all agent-bridge errors."""

    error_code = "BRIDGE_ERROR"

    def to_dict(self) -> dict[str, str]:
        """Return the structured ``{error_code, message}`` form of this error."""
        return {"error_code": self.error_code, "message": str(self)}


class NotFoundError(BridgeError):
    """No candidate directory or session file exists."""

    error_code = "NOT_FOUND"


class ParseFailedError(BridgeError):
    """A whole file could not be parsed in its expected shape."""

    error_code = "PARSE_FAILED"


class InvalidHandoffError(BridgeError):
    """A report request (handoff packet) is malformed."""

    error_code = "INVALID_HANDOFF"


class UnsupportedAgentError(BridgeError):
    """The requested agent is not one of the supported providers."""

    error_code = "UNSUPPORTED_AGENT"


class UnsupportedModeError(BridgeError):
    """The requested report mode is not supported."""

    error_code = "UNSUPPORTED_MODE"


class BridgeIOError(BridgeError):
    """Any other I/O failure."""

    error_code = "IO_ERROR"


class EmptySessionError(BridgeError):
    """The file parses but holds no extractable turns."""

    error_code = "EMPTY_SESSION"


def error_payload(exc: BaseException) -> dict[str, str]:
    """Map any exception to a ``{error_code, message}`` dict.

    Args:
        exc: The exception to describe.

    Returns:
        Structured error payload suitable for JSON output.
    """
    if isinstance(exc, BridgeError):
        return exc.to_dict()
    if isinstance(exc, OSError):
        return {"error_code": BridgeIOError.error_code, "message": str(exc)}
    return {"error_code": BridgeError.error_code, "message": str(exc)}
