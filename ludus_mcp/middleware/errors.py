"""Middleware that logs and tallies exceptions escaping tool handlers."""

import logging
from collections import Counter
from typing import Any

from fastmcp.server.middleware import MiddlewareContext

from ludus_mcp.middleware.base import LudusMiddleware


def error_source(context: MiddlewareContext) -> str:
    """Name a failed request by its tool, or by its MCP method otherwise."""
    if context.method == "tools/call":
        name = getattr(context.message, "name", None)
        if isinstance(name, str) and name:
            return name
    return context.method or "unknown"


class ErrorHandlingMiddleware(LudusMiddleware):
    """Logs and counts exceptions that escape tool handlers.

    Handlers already turn CLI failures into ``success: false`` payloads, so
    anything reaching this middleware is a bug or a protocol-level error.
    The exception is re-raised for FastMCP to report. Counts are kept per
    tool so the server can summarize them at shutdown.
    """

    def __init__(
        self,
        logger: logging.Logger | None = None,
        include_traceback: bool = False,
    ) -> None:
        super().__init__(logger=logger)
        self.include_traceback = include_traceback
        self.error_counts: Counter[str] = Counter()

    @property
    def total_errors(self) -> int:
        return sum(self.error_counts.values())

    def summary(self) -> str:
        """Counts as ``source=count`` pairs, most frequent first."""
        return ", ".join(
            f"{source}={count}" for source, count in self.error_counts.most_common()
        )

    async def on_message(
        self,
        context: MiddlewareContext,
        call_next: Any,
    ) -> Any:
        try:
            return await call_next(context)
        except Exception as e:
            source = error_source(context)
            self.error_counts[source] += 1
            self.logger.error(
                "Unhandled error in %s: %s: %s",
                source,
                type(e).__name__,
                e,
                exc_info=self.include_traceback,
            )
            raise
