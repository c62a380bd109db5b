"""Entry point for the ludus_mcp server."""

import logging

from ludus_mcp.dependencies import Dependencies
from ludus_mcp.server import create_server  # Importing also configures logging

logger = logging.getLogger(__name__)


def run_server() -> None:
    """Run the MCP server with the configured transport."""
    deps = Dependencies.create()
    config = deps.config
    mcp = create_server(deps)

    if config.transport == "stdio":
        logger.info("Starting Ludus MCP server (transport=stdio)")
        mcp.run(transport="stdio")
    else:
        logger.info(
            "Starting Ludus MCP server (transport=http, host=%s, port=%d)",
            config.http_host,
            config.http_port,
        )
        mcp.run(
            transport="http",
            host=config.http_host,
            port=config.http_port,
        )


if __name__ == "__main__":
    run_server()
