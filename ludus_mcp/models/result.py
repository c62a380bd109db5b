"""Uniform result returned by every wrapper operation."""

from dataclasses import dataclass
from enum import Enum
from typing import Any


class ErrorKind(str, Enum):
    """Failure categories attached to unsuccessful results."""

    TIMEOUT = "timeout"
    PERMISSION_DENIED = "permission_denied"
    NOT_FOUND = "not_found"
    INVALID_ARGUMENT = "invalid_argument"
    PARSE_FAILURE = "parse_failure"
    EXECUTION_FAILURE = "execution_failure"


@dataclass(frozen=True)
class Result:
    """Outcome of a Ludus CLI operation as seen by callers.

    ``raw_output`` always holds the untouched combined stdout/stderr of the
    process, whether or not it could be parsed.
    """

    success: bool
    message: str
    raw_output: str = ""
    data: Any = None
    error_kind: ErrorKind | None = None

    def __post_init__(self) -> None:
        if not self.success:
            if self.data is not None:
                raise ValueError("Failed results cannot carry data")
            if self.error_kind is None:
                raise ValueError("Failed results require an error kind")
        elif self.error_kind is not None:
            raise ValueError("Successful results cannot carry an error kind")

    @classmethod
    def failure(
        cls,
        kind: ErrorKind,
        message: str,
        raw_output: str = "",
    ) -> "Result":
        """Build a failed result."""
        return cls(
            success=False,
            message=message,
            raw_output=raw_output,
            error_kind=kind,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize for an MCP tool response."""
        payload: dict[str, Any] = {
            "success": self.success,
            "message": self.message,
            "rawOutput": self.raw_output,
        }
        if self.success:
            payload["data"] = self.data
        else:
            payload["errorKind"] = self.error_kind.value if self.error_kind else None
        return payload
