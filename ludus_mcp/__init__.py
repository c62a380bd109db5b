"""Ludus MCP: MCP tools for driving the Ludus cyber-range CLI."""

__version__ = "0.1.0"
