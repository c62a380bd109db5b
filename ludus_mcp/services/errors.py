"""Exceptions raised inside the Ludus CLI wrapper."""

from ludus_mcp.models import ErrorKind


class LudusError(Exception):
    """Base error carrying the kind reported to callers."""

    kind: ErrorKind = ErrorKind.EXECUTION_FAILURE

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class InvalidArgumentError(LudusError, ValueError):
    """Parameters rejected before any process is spawned."""

    kind = ErrorKind.INVALID_ARGUMENT
