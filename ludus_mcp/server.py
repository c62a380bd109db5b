"""Ludus MCP FastMCP server.

This is a thin wrapper that wires together the MCP server, its tools and
its prompts.
All CLI handling is delegated to the services/ and tools/ modules.
"""

import logging
import os
import shutil
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastmcp import FastMCP
from starlette.requests import Request
from starlette.responses import PlainTextResponse

from ludus_mcp.dependencies import Dependencies
from ludus_mcp.middleware import ErrorHandlingMiddleware, LoggingMiddleware
from ludus_mcp.prompts import PROMPT_NAMES, register_prompts
from ludus_mcp.tools import TOOL_NAMES, register_tools
from ludus_mcp.utils.console import ColorfulFormatter, JSONFormatter
from ludus_mcp.utils.ping import check_endpoint_online


def _configure_logging() -> None:
    """Configure logging for the ludus_mcp package.

    Called at module load time so loggers are configured however the server
    is started. Logs go to stderr; stdout carries the stdio transport.
    """
    log_level = os.getenv("LUDUS_MCP_LOG_LEVEL", "INFO").upper()
    log_format = os.getenv("LUDUS_MCP_LOG_FORMAT", "").lower()
    use_colors = os.getenv("LUDUS_MCP_LOG_COLORS", "true").lower() != "false"

    if not sys.stderr.isatty():
        use_colors = False

    ludus_logger = logging.getLogger("ludus_mcp")
    ludus_logger.setLevel(getattr(logging, log_level, logging.INFO))

    if not ludus_logger.handlers:
        handler = logging.StreamHandler(sys.stderr)
        if log_format == "json":
            handler.setFormatter(JSONFormatter())
        else:
            handler.setFormatter(ColorfulFormatter(use_colors=use_colors))
        ludus_logger.addHandler(handler)
        ludus_logger.propagate = False

    for noisy_logger in [
        "uvicorn",
        "uvicorn.access",
        "uvicorn.error",
        "httpx",
        "httpcore",
        "fastmcp",
        "starlette",
        "anyio",
    ]:
        logging.getLogger(noisy_logger).setLevel(logging.WARNING)


_configure_logging()

logger = logging.getLogger(__name__)


def make_lifespan(
    deps: Dependencies, error_middleware: ErrorHandlingMiddleware | None = None
) -> Any:
    """Build the server lifespan bound to a dependency container.

    When ``error_middleware`` is given, its per-tool error counts are logged
    at shutdown.
    """

    @asynccontextmanager
    async def app_lifespan(server: FastMCP) -> AsyncIterator[dict[str, Any]]:
        """Log startup diagnostics. Problems are reported, never fatal."""
        logger.info("Ludus MCP server starting up")
        config = deps.config

        resolved = shutil.which(config.binary)
        if resolved:
            logger.info("Using Ludus CLI at %s", resolved)
        else:
            logger.warning(
                "Ludus CLI '%s' not found on PATH; every tool call will fail "
                "until it is installed (or set LUDUS_MCP_BINARY)",
                config.binary,
            )

        if not config.api_key:
            logger.warning("LUDUS_API_KEY not set; the CLI will use its own config")

        online = False
        if config.ludus_url:
            online = await check_endpoint_online(config.ludus_url)
            if online:
                logger.info("Ludus API reachable at %s", config.ludus_url)
            else:
                logger.warning(
                    "Ludus API not reachable at %s (check VPN/tunnel)",
                    config.ludus_url,
                )

        logger.info(
            "Ludus MCP server ready with %d tool(s) and %d prompt(s)",
            len(TOOL_NAMES),
            len(PROMPT_NAMES),
        )
        try:
            yield {"binary": resolved, "api_online": online}
        finally:
            if error_middleware is not None and error_middleware.total_errors:
                logger.warning(
                    "%d unhandled error(s) this session: %s",
                    error_middleware.total_errors,
                    error_middleware.summary(),
                )
            logger.info("Ludus MCP server shutdown complete")

    return app_lifespan


def _env_flag(name: str) -> bool:
    return os.getenv(name, "").lower() == "true"


def configure_middleware(
    server: FastMCP, error_middleware: ErrorHandlingMiddleware | None = None
) -> ErrorHandlingMiddleware:
    """Configure middleware stack for the server.

    Returns the error handling middleware, so its counts can be reported.

    Environment variables:
        LUDUS_MCP_LOG_PAYLOADS: "true" to log result payloads
        LUDUS_MCP_SLOW_THRESHOLD_MS: Slow call warning threshold (default: 5000)
        LUDUS_MCP_INCLUDE_TRACEBACK: "true" to include tracebacks in error logs
    """
    log_payloads = _env_flag("LUDUS_MCP_LOG_PAYLOADS")
    slow_threshold = float(os.getenv("LUDUS_MCP_SLOW_THRESHOLD_MS", "5000"))
    if error_middleware is None:
        error_middleware = ErrorHandlingMiddleware(
            include_traceback=_env_flag("LUDUS_MCP_INCLUDE_TRACEBACK")
        )

    # First added = innermost
    server.add_middleware(error_middleware)
    server.add_middleware(
        LoggingMiddleware(
            include_payloads=log_payloads,
            slow_threshold_ms=slow_threshold,
        )
    )
    return error_middleware


def create_server(deps: Dependencies | None = None) -> FastMCP:
    """Create and configure the MCP server.

    Args:
        deps: Dependency container; built from the environment if omitted.

    Returns:
        Configured FastMCP server instance
    """
    deps = deps or Dependencies.create()

    error_middleware = ErrorHandlingMiddleware(
        include_traceback=_env_flag("LUDUS_MCP_INCLUDE_TRACEBACK")
    )
    server = FastMCP("ludus_mcp", lifespan=make_lifespan(deps, error_middleware))
    configure_middleware(server, error_middleware)
    register_tools(server, deps.wrapper, deps.range_configs)
    register_prompts(server)

    @server.custom_route("/health", methods=["GET"])
    async def health_check(request: Request) -> PlainTextResponse:
        """Health check endpoint."""
        client_host = request.client.host if request.client else "unknown"
        logger.debug("Health check from %s", client_host)
        return PlainTextResponse("OK")

    return server
