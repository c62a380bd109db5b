"""Data models for Ludus MCP."""

from ludus_mcp.models.command import Command, ExecutionOutcome
from ludus_mcp.models.result import ErrorKind, Result

__all__ = [
    "Command",
    "ErrorKind",
    "ExecutionOutcome",
    "Result",
]
