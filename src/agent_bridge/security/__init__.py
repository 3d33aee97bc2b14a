"""Secret redaction for session content."""

from agent_bridge.security.redactor import SCANNER_ORDER, SecretRedactor, redact

__all__ = ["SCANNER_ORDER", "SecretRedactor", "redact"]
