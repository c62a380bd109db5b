"""Utilities for Ludus MCP."""

from ludus_mcp.utils.console import ColorfulFormatter, JSONFormatter
from ludus_mcp.utils.parser import parse_help_output
from ludus_mcp.utils.ping import check_endpoint_online

__all__ = [
    "check_endpoint_online",
    "ColorfulFormatter",
    "JSONFormatter",
    "parse_help_output",
]
