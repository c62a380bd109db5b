"""MCP tools for Ludus MCP."""

from ludus_mcp.tools.ludus import TOOL_NAMES, register_tools

__all__ = ["TOOL_NAMES", "register_tools"]
