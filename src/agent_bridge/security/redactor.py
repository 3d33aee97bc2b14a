"""Secret redaction for extracted session text.

The redactor is an ordered pipeline of small left-to-right scanners, one per
credential shape. Each scanner replaces the secret body with a placeholder and
keeps a recognizable prefix visible (``sk-[REDACTED]``, ``Bearer [REDACTED]``).

Scanner order is fixed:

1. ``private_key_block``  PEM blocks whose type ends in ``PRIVATE KEY``
2. ``connection_string``  database/broker URLs
3. ``bearer_token``       ``Bearer <token>``
4. ``jwt``                ``eyJ...`` three-segment tokens
5. ``provider_key``       literal vendor key prefixes
6. ``cloud_access_key``   AWS access key ids
7. ``secret_assignment``  ``key=value`` / ``key: value`` for secret keywords

Multi-line PEM blocks go first so no later scanner edits the inside of a key.
Bearer tokens run before JWT and provider keys so a bearer header collapses to
one placeholder. Assignments run last: they rewrite whole values and must see
the placeholders left by earlier scanners in order to skip them. Every scanner
leaves ``[REDACTED...]`` text untouched, which makes ``redact`` idempotent.
"""

from __future__ import annotations

import string
from collections.abc import Callable
from typing import Any

PLACEHOLDER = "[REDACTED]"
PLACEHOLDER_PREFIX = "[REDACTED"
PEM_PLACEHOLDER = "[REDACTED_PEM_KEY]"
JWT_PLACEHOLDER = "[REDACTED_JWT]"

BEARER_MIN_LENGTH = 10
JWT_MIN_SEGMENT = 10
AWS_KEY_BODY_LENGTH = 16

_ALNUM = frozenset(string.ascii_letters + string.digits)
_WORD = _ALNUM | {"_"}
_TOKEN = _ALNUM | {".", "_", "-"}
_BASE64URL = _ALNUM | {"_", "-"}
_UPPER_DIGIT = frozenset(string.ascii_uppercase + string.digits)
_INLINE_SPACE = frozenset(" \t")
_QUOTES = frozenset("\"'")
_URL_STOP = frozenset("\"'`")
_ASCII_LOWER = str.maketrans(string.ascii_uppercase, string.ascii_lowercase)

CONNECTION_SCHEMES = frozenset(
    {
        "postgres",
        "postgresql",
        "mysql",
        "mongodb",
        "mongodb+srv",
        "redis",
        "rediss",
        "amqp",
        "amqps",
    }
)

# (prefix, allowed body characters, minimum body length)
PROVIDER_KEY_PREFIXES: tuple[tuple[str, frozenset[str], int], ...] = (
    ("github_pat_", _WORD, 20),
    ("sk-", _BASE64URL, 20),
    ("ghp_", _WORD, 20),
    ("gho_", _WORD, 20),
    ("ghu_", _WORD, 20),
    ("ghs_", _WORD, 20),
    ("ghr_", _WORD, 20),
    ("AIza", _BASE64URL, 20),
    ("xoxb-", _ALNUM | {"-"}, 10),
    ("xoxp-", _ALNUM | {"-"}, 10),
    ("xoxa-", _ALNUM | {"-"}, 10),
    ("xoxs-", _ALNUM | {"-"}, 10),
)

CLOUD_KEY_PREFIXES: tuple[str, ...] = ("AKIA", "ASIA")

# Longer keywords first so "secret_key" wins over "secret".
SECRET_KEYWORDS: tuple[str, ...] = (
    "private_key",
    "secret_key",
    "access_key",
    "password",
    "api_key",
    "api-key",
    "apikey",
    "passwd",
    "secret",
    "token",
)


def _at_word_start(text: str, index: int) -> bool:
    return index == 0 or text[index - 1] not in _WORD


def _run_length(text: str, start: int, allowed: frozenset[str]) -> int:
    end = start
    while end < len(text) and text[end] in allowed:
        end += 1
    return end - start


def redact_private_key_blocks(text: str) -> str:
    """Replace PEM ``PRIVATE KEY`` blocks; public blocks pass through."""
    begin_marker = "-----BEGIN "
    end_marker = "-----END "
    out: list[str] = []
    pos = 0
    search = 0
    # Next END marker and whether it closes a private key block; each END
    # marker is located and inspected once.
    end = -1
    end_closes = False
    block_end = -1

    while True:
        start = text.find(begin_marker, search)
        if start == -1:
            break
        label_start = start + len(begin_marker)
        label_end = text.find("-----", label_start)
        if label_end == -1:
            break
        label = text[label_start:label_end]
        search = label_start

        if "\n" in label or not label.endswith("PRIVATE KEY"):
            continue

        if end < label_end + 5:
            end = text.find(end_marker, label_end + 5)
            if end == -1:
                break
            end_label_start = end + len(end_marker)
            end_label_end = text.find("-----", end_label_start)
            if end_label_end == -1:
                break
            end_label = text[end_label_start:end_label_end]
            end_closes = "\n" not in end_label and end_label.endswith("PRIVATE KEY")
            block_end = end_label_end + 5
        if not end_closes:
            continue

        out.append(text[pos:start])
        out.append(PEM_PLACEHOLDER)
        pos = block_end
        search = block_end

    out.append(text[pos:])
    return "".join(out)


def redact_connection_strings(text: str) -> str:
    """Hide everything after ``scheme://`` up to whitespace or a quote."""
    out: list[str] = []
    pos = 0
    search = 0

    while True:
        sep = text.find("://", search)
        if sep == -1:
            break
        search = sep + 3

        scheme_start = sep
        while scheme_start > 0 and (
            text[scheme_start - 1] in _ALNUM or text[scheme_start - 1] == "+"
        ):
            scheme_start -= 1
        scheme = text[scheme_start:sep].translate(_ASCII_LOWER)
        if scheme not in CONNECTION_SCHEMES or scheme_start < pos:
            continue
        if not _at_word_start(text, scheme_start):
            continue

        body_start = sep + 3
        body_end = body_start
        while (
            body_end < len(text)
            and not text[body_end].isspace()
            and text[body_end] not in _URL_STOP
        ):
            body_end += 1
        body = text[body_start:body_end]
        if not body or body.startswith(PLACEHOLDER_PREFIX):
            continue

        out.append(text[pos:body_start])
        out.append(PLACEHOLDER)
        pos = body_end
        search = body_end

    out.append(text[pos:])
    return "".join(out)


def redact_bearer_tokens(text: str) -> str:
    """Replace ``Bearer <token>`` when the token is long enough."""
    lowered = text.translate(_ASCII_LOWER)
    out: list[str] = []
    pos = 0
    search = 0

    while True:
        start = lowered.find("bearer", search)
        if start == -1:
            break
        search = start + 6
        if not _at_word_start(text, start):
            continue

        spaces = _run_length(text, start + 6, _INLINE_SPACE)
        if spaces == 0:
            continue
        body_start = start + 6 + spaces
        body_length = _run_length(text, body_start, _TOKEN)
        if body_length < BEARER_MIN_LENGTH:
            continue

        out.append(text[pos:start])
        out.append("Bearer " + PLACEHOLDER)
        pos = body_start + body_length
        search = pos

    out.append(text[pos:])
    return "".join(out)


def redact_jwts(text: str) -> str:
    """Replace three-segment base64url tokens starting with a JWT header."""
    out: list[str] = []
    pos = 0
    search = 0

    while True:
        start = text.find("eyJ", search)
        if start == -1:
            break
        search = start + 3
        if not _at_word_start(text, start):
            continue

        cursor = start + 3
        first = _run_length(text, cursor, _BASE64URL)
        cursor += first
        # A later header inside this run would end at the same cursor and fail the same way
        search = cursor
        if first < JWT_MIN_SEGMENT:
            continue

        valid = True
        for _ in range(2):
            if cursor >= len(text) or text[cursor] != ".":
                valid = False
                break
            segment = _run_length(text, cursor + 1, _BASE64URL)
            if segment < JWT_MIN_SEGMENT:
                valid = False
                break
            cursor += 1 + segment
        if not valid:
            continue

        out.append(text[pos:start])
        out.append(JWT_PLACEHOLDER)
        pos = cursor
        search = cursor

    out.append(text[pos:])
    return "".join(out)


def redact_provider_keys(text: str) -> str:
    """Replace vendor API keys, keeping their literal prefix."""
    out: list[str] = []
    pos = 0
    i = 0

    while i < len(text):
        matched = False
        if _at_word_start(text, i):
            for prefix, allowed, min_length in PROVIDER_KEY_PREFIXES:
                if not text.startswith(prefix, i):
                    continue
                body_length = _run_length(text, i + len(prefix), allowed)
                if body_length >= min_length:
                    out.append(text[pos:i])
                    out.append(prefix + PLACEHOLDER)
                    i = i + len(prefix) + body_length
                    pos = i
                    matched = True
                break
        if not matched:
            i += 1

    out.append(text[pos:])
    return "".join(out)


def redact_cloud_access_keys(text: str) -> str:
    """Replace AWS access key ids (``AKIA``/``ASIA`` + 16 upper/digit chars)."""
    out: list[str] = []
    pos = 0
    i = 0

    while i < len(text):
        prefix = next((p for p in CLOUD_KEY_PREFIXES if text.startswith(p, i)), None)
        if prefix is not None and _at_word_start(text, i):
            body_start = i + len(prefix)
            body_end = body_start + AWS_KEY_BODY_LENGTH
            if (
                _run_length(text, body_start, _UPPER_DIGIT) >= AWS_KEY_BODY_LENGTH
                and (body_end == len(text) or text[body_end] not in _ALNUM)
            ):
                out.append(text[pos:i])
                out.append(prefix + PLACEHOLDER)
                i = body_end
                pos = i
                continue
        i += 1

    out.append(text[pos:])
    return "".join(out)


def _assignment_value_span(text: str, index: int, keyword: str) -> tuple[int, int] | None:
    """Return the value span of ``keyword <sep> value`` starting at ``index``."""
    cursor = index + len(keyword)
    if cursor < len(text) and text[cursor] in _QUOTES:
        cursor += 1
    cursor += _run_length(text, cursor, _INLINE_SPACE)
    if cursor >= len(text) or text[cursor] not in ":=":
        return None
    cursor += 1
    cursor += _run_length(text, cursor, _INLINE_SPACE)
    if cursor >= len(text):
        return None

    quote = text[cursor] if text[cursor] in _QUOTES else None
    if quote:
        cursor += 1
    value_start = cursor
    while cursor < len(text):
        ch = text[cursor]
        if quote:
            if ch == quote or ch == "\n":
                break
        elif ch.isspace() or ch in ",;":
            break
        cursor += 1
    return value_start, cursor


def redact_secret_assignments(text: str) -> str:
    """Replace the value of ``keyword=value`` / ``keyword: value`` pairs."""
    lowered = text.translate(_ASCII_LOWER)
    out: list[str] = []
    pos = 0
    i = 0

    while i < len(text):
        advanced = False
        if i == 0 or text[i - 1] not in _ALNUM:
            for keyword in SECRET_KEYWORDS:
                if not lowered.startswith(keyword, i):
                    continue
                span = _assignment_value_span(text, i, keyword)
                if span is None:
                    continue
                value_start, value_end = span
                value = text[value_start:value_end]
                if value and not value.startswith(PLACEHOLDER_PREFIX):
                    out.append(text[pos:value_start])
                    out.append(PLACEHOLDER)
                    pos = value_end
                i = max(i + 1, value_end)
                advanced = True
                break
        if not advanced:
            i += 1

    out.append(text[pos:])
    return "".join(out)


Scanner = Callable[[str], str]

DEFAULT_SCANNERS: tuple[tuple[str, Scanner], ...] = (
    ("private_key_block", redact_private_key_blocks),
    ("connection_string", redact_connection_strings),
    ("bearer_token", redact_bearer_tokens),
    ("jwt", redact_jwts),
    ("provider_key", redact_provider_keys),
    ("cloud_access_key", redact_cloud_access_keys),
    ("secret_assignment", redact_secret_assignments),
)

SCANNER_ORDER: tuple[str, ...] = tuple(name for name, _ in DEFAULT_SCANNERS)


class SecretRedactor:
    """Redacts well-known credential shapes from text."""

    def __init__(self) -> None:
        self.scanners: list[tuple[str, Scanner]] = list(DEFAULT_SCANNERS)

    def redact(self, text: str) -> str:
        """Redact secrets from text.

        Args:
            text: Input text.

        Returns:
            Text with every recognized secret replaced by a placeholder.
        """
        if not text:
            return text

        redacted = text
        for _name, scanner in self.scanners:
            redacted = scanner(redacted)
        return redacted

    def redact_object(self, obj: Any) -> Any:
        """Recursively redact strings in JSON-like objects (dicts, lists)."""
        if isinstance(obj, str):
            return self.redact(obj)
        elif isinstance(obj, dict):
            return {k: self.redact_object(v) for k, v in obj.items()}
        elif isinstance(obj, list):
            return [self.redact_object(i) for i in obj]
        return obj


_default_redactor = SecretRedactor()


def redact(text: str) -> str:
    """Redact secrets from ``text`` with the default scanner pipeline."""
    return _default_redactor.redact(text)
