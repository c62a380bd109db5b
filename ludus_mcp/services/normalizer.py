"""Conversion of raw process output into uniform results."""

import json
import logging
from typing import Any

from ludus_mcp.models import ErrorKind, ExecutionOutcome, Result
from ludus_mcp.services.classifier import classify, error_text

logger = logging.getLogger(__name__)

SUCCESS_MESSAGE = "Command completed successfully"

_UNPARSED = object()


def parse_structured(text: str) -> Any:
    """Parse JSON output, returning ``_UNPARSED`` when it is not JSON."""
    if not text.strip():
        return _UNPARSED
    try:
        return json.loads(text)
    except ValueError:
        return _UNPARSED


def failure_message(outcome: ExecutionOutcome) -> str:
    """Pick the most useful text to describe a failed run."""
    message = error_text(outcome.stderr)
    if message:
        return message
    if outcome.stdout.strip():
        return outcome.stdout.strip()
    return f"ludus exited with code {outcome.exit_code}"


def normalize(outcome: ExecutionOutcome, require_data: bool = False) -> Result:
    """Classify an execution outcome into a ``Result``.

    A zero exit code is a success even when the output is plain text; the
    text is then returned verbatim as the message. ``require_data`` makes
    unparseable output a ``PARSE_FAILURE`` instead.
    """
    raw_output = outcome.combined_output

    if outcome.exit_code != 0 or outcome.error_kind is not None:
        return Result.failure(
            classify(outcome),
            failure_message(outcome),
            raw_output=raw_output,
        )

    # The Ludus CLI logs to stderr even on success
    text = outcome.stdout if outcome.stdout.strip() else outcome.stderr
    data = parse_structured(text)

    if data is _UNPARSED:
        if require_data:
            logger.debug("Expected JSON output, got %d chars of text", len(text))
            return Result.failure(
                ErrorKind.PARSE_FAILURE,
                "Expected structured (JSON) output from ludus",
                raw_output=raw_output,
            )
        return Result(success=True, message=text, raw_output=raw_output)

    return Result(
        success=True,
        message=SUCCESS_MESSAGE,
        raw_output=raw_output,
        data=data,
    )
