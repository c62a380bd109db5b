"""MCP prompts for Ludus MCP."""

from ludus_mcp.prompts.ludus import PROMPT_NAMES, register_prompts

__all__ = ["PROMPT_NAMES", "register_prompts"]
