"""Log formatters for the Ludus MCP server.

Both formatters render the structured context passed as
``extra={"context": {...}}``.
"""

import json
import logging
import re
from datetime import datetime, timezone
from typing import Any

# ANSI color codes
COLORS = {
    "reset": "\033[0m",
    "bold": "\033[1m",
    "dim": "\033[2m",
    "white": "\033[37m",
    "cyan": "\033[36m",
    "green": "\033[32m",
    "yellow": "\033[33m",
    "bright_black": "\033[90m",
    "bright_red": "\033[91m",
    "bright_green": "\033[92m",
    "bright_yellow": "\033[93m",
    "bright_blue": "\033[94m",
    "bright_magenta": "\033[95m",
    "bright_cyan": "\033[96m",
    "bg_red": "\033[41m",
}

LEVEL_COLORS = {
    "DEBUG": COLORS["bright_black"],
    "INFO": COLORS["bright_green"],
    "WARNING": COLORS["bright_yellow"],
    "ERROR": COLORS["bright_red"],
    "CRITICAL": COLORS["bg_red"] + COLORS["white"] + COLORS["bold"],
}

# Longest matching prefix wins
COMPONENT_COLORS = {
    "ludus_mcp.server": COLORS["bright_cyan"],
    "ludus_mcp.services.executor": COLORS["bright_magenta"],
    "ludus_mcp.services": COLORS["bright_blue"],
    "ludus_mcp.tools": COLORS["cyan"],
    "ludus_mcp.middleware": COLORS["yellow"],
    "ludus_mcp.config": COLORS["green"],
}

_DURATION = re.compile(r"(\d+\.?\d*ms)")
_EXIT_CODE = re.compile(r"(exit -?\d+)")


def _record_context(record: logging.LogRecord) -> dict[str, Any]:
    context = getattr(record, "context", None)
    if isinstance(context, dict):
        return {k: v for k, v in context.items() if v is not None}
    return {}


class ColorfulFormatter(logging.Formatter):
    """Single-line formatter with optional ANSI colors."""

    def __init__(self, use_colors: bool = True) -> None:
        """Initialize the formatter.

        Args:
            use_colors: Whether to use ANSI colors.
        """
        super().__init__()
        self.use_colors = use_colors

    def _colorize(self, text: str, color: str) -> str:
        if not self.use_colors:
            return text
        return f"{color}{text}{COLORS['reset']}"

    def _component(self, name: str) -> str:
        color = COLORS["white"]
        for prefix in sorted(COMPONENT_COLORS, key=len, reverse=True):
            if name.startswith(prefix):
                color = COMPONENT_COLORS[prefix]
                break
        short = name.removeprefix("ludus_mcp.")
        return self._colorize(f"{short:<20}", color)

    def _highlight(self, message: str) -> str:
        if not self.use_colors:
            return message
        message = _DURATION.sub(
            f"{COLORS['bright_yellow']}\\1{COLORS['reset']}", message
        )
        return _EXIT_CODE.sub(f"{COLORS['bright_magenta']}\\1{COLORS['reset']}", message)

    def format(self, record: logging.LogRecord) -> str:
        """Format as ``time | level | component | message {context}``."""
        dt = datetime.fromtimestamp(record.created)
        timestamp = self._colorize(
            f"{dt:%H:%M:%S}.{int(record.msecs):03d} {dt:%m/%d}", COLORS["dim"]
        )
        level = self._colorize(
            f"{record.levelname:<8}",
            LEVEL_COLORS.get(record.levelname, COLORS["white"]),
        )
        sep = self._colorize("|", COLORS["dim"])
        line = (
            f"{timestamp} {sep} {level} {sep} {self._component(record.name)} "
            f"{sep} {self._highlight(record.getMessage())}"
        )

        context = _record_context(record)
        if context:
            rendered = " ".join(f"{k}={v!r}" for k, v in context.items())
            line += " " + self._colorize(f"{{{rendered}}}", COLORS["dim"])

        if record.exc_info:
            line += "\n" + self.formatException(record.exc_info)
        return line


class JSONFormatter(logging.Formatter):
    """One JSON object per line, for log shippers."""

    def format(self, record: logging.LogRecord) -> str:
        entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(
                record.created, tz=timezone.utc
            ).isoformat(),
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
        }
        context = _record_context(record)
        if context:
            entry["context"] = context
        if record.exc_info:
            entry["exception"] = self.formatException(record.exc_info)
        return json.dumps(entry, default=str)
