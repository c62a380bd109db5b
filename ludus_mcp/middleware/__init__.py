"""Ludus MCP middleware components."""

from ludus_mcp.middleware.base import LudusMiddleware
from ludus_mcp.middleware.errors import ErrorHandlingMiddleware
from ludus_mcp.middleware.logging import LoggingMiddleware

__all__ = [
    "ErrorHandlingMiddleware",
    "LoggingMiddleware",
    "LudusMiddleware",
]
