"""Services for Ludus MCP."""

from ludus_mcp.services.arguments import (
    OPERATIONS,
    OperationSpec,
    OptionKind,
    OptionSpec,
    TimeoutProfile,
    build,
    build_help,
)
from ludus_mcp.services.classifier import classify
from ludus_mcp.services.errors import InvalidArgumentError, LudusError
from ludus_mcp.services.executor import ProcessExecutor
from ludus_mcp.services.normalizer import normalize
from ludus_mcp.services.range_configs import RangeConfigStore, ValidationReport
from ludus_mcp.services.wrapper import LudusCliWrapper

__all__ = [
    "InvalidArgumentError",
    "LudusCliWrapper",
    "LudusError",
    "OPERATIONS",
    "OperationSpec",
    "OptionKind",
    "OptionSpec",
    "ProcessExecutor",
    "RangeConfigStore",
    "TimeoutProfile",
    "ValidationReport",
    "build",
    "build_help",
    "classify",
    "normalize",
]
