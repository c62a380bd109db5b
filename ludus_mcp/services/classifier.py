"""Error classification for failed Ludus CLI runs."""

import json
import re
from typing import Any, Final

from ludus_mcp.models import ErrorKind, ExecutionOutcome

# Checked in order; permission problems win over not-found ones because the
# API often reports "not found" for resources a non-admin cannot see.
PERMISSION_PATTERNS: Final[list[str]] = [
    r"permission denied",
    r"forbidden",
    r"unauthori[sz]ed",
    r"\b401\b",
    r"\b403\b",
    r"\badmin(istrator)?\b.*\b(required|only|privileges?)\b",
    r"\bnot (an )?admin\b",
    r"not allowed",
    r"invalid api key",
]

NOT_FOUND_PATTERNS: Final[list[str]] = [
    r"not found",
    r"no such",
    r"does not exist",
    r"\b404\b",
    r"\bno range\b",
]

_PERMISSION_RE = re.compile("|".join(PERMISSION_PATTERNS), re.IGNORECASE)
_NOT_FOUND_RE = re.compile("|".join(NOT_FOUND_PATTERNS), re.IGNORECASE)


def error_text(stderr: str) -> str:
    """Reduce stderr to its error message.

    JSON bodies such as ``{"error": "..."}`` yield the message string;
    anything else is returned stripped.
    """
    text = stderr.strip()
    if not text.startswith("{"):
        return text
    try:
        body: Any = json.loads(text)
    except ValueError:
        return text
    if isinstance(body, dict):
        for key in ("error", "message", "detail"):
            value = body.get(key)
            if isinstance(value, str) and value.strip():
                return value.strip()
    return text


def classify(outcome: ExecutionOutcome) -> ErrorKind:
    """Map a failed outcome to an error kind.

    A synthetic kind set by the executor (timeout, spawn failure) wins.
    Otherwise the kind depends only on the error text: the stderr message,
    or stdout when stderr is empty. The exit code is not consulted; callers
    only classify non-zero exits. Unrecognized text falls back to
    ``EXECUTION_FAILURE``.
    """
    if outcome.error_kind is not None:
        return outcome.error_kind

    text = error_text(outcome.stderr) or outcome.stdout.strip()
    if _PERMISSION_RE.search(text):
        return ErrorKind.PERMISSION_DENIED
    if _NOT_FOUND_RE.search(text):
        return ErrorKind.NOT_FOUND
    return ErrorKind.EXECUTION_FAILURE
