"""Tests for output normalization."""

import json

import pytest

from ludus_mcp.models import ErrorKind, ExecutionOutcome
from ludus_mcp.services.normalizer import (
    SUCCESS_MESSAGE,
    failure_message,
    normalize,
    parse_structured,
)


def outcome(
    exit_code: int = 0,
    stdout: str = "",
    stderr: str = "",
    error_kind: ErrorKind | None = None,
) -> ExecutionOutcome:
    return ExecutionOutcome(
        exit_code=exit_code,
        stdout=stdout,
        stderr=stderr,
        duration_ms=5,
        error_kind=error_kind,
    )


@pytest.mark.parametrize(
    "data",
    [
        [{"userID": "alice", "rangeState": "SUCCESS", "VMs": []}],
        {"result": "Range deploy started"},
        {"nested": {"list": [1, 2.5, None, True, "x"]}},
        [],
    ],
)
def test_json_stdout_is_parsed(data: object) -> None:
    """Structured data equals the decoded stdout."""
    text = json.dumps(data)

    result = normalize(outcome(stdout=text))

    assert result.success
    assert result.data == data
    assert result.message == SUCCESS_MESSAGE
    assert result.raw_output == text
    assert result.error_kind is None


def test_plain_text_success_is_not_a_failure() -> None:
    """Exit 0 with text output is a success carrying the text verbatim."""
    text = "  Range deploy started\n"

    result = normalize(outcome(stdout=text))

    assert result.success
    assert result.data is None
    assert result.message == text
    assert result.raw_output == text


def test_text_on_stderr_only() -> None:
    """The CLI logs to stderr on success; that text becomes the message."""
    result = normalize(outcome(stderr="[INFO]  Range deploy started\n"))

    assert result.success
    assert result.message == "[INFO]  Range deploy started\n"


def test_json_stdout_with_stderr_logs() -> None:
    result = normalize(outcome(stdout='{"ok": true}', stderr="[WARN] slow\n"))

    assert result.success
    assert result.data == {"ok": True}
    assert result.raw_output == '{"ok": true}[WARN] slow\n'


def test_empty_output_success() -> None:
    result = normalize(outcome())

    assert result.success
    assert result.message == ""
    assert result.raw_output == ""


def test_require_data_turns_text_into_parse_failure() -> None:
    result = normalize(outcome(stdout="not json"), require_data=True)

    assert not result.success
    assert result.error_kind is ErrorKind.PARSE_FAILURE
    assert result.data is None
    assert result.raw_output == "not json"


def test_require_data_accepts_json() -> None:
    result = normalize(outcome(stdout="[1, 2]"), require_data=True)

    assert result.success
    assert result.data == [1, 2]


def test_failure_uses_stderr_message() -> None:
    result = normalize(outcome(exit_code=1, stderr="  range not found \n"))

    assert not result.success
    assert result.message == "range not found"
    assert result.error_kind is ErrorKind.NOT_FOUND
    assert result.raw_output == "  range not found \n"


def test_failure_json_stderr_message() -> None:
    """A JSON error body yields its message string."""
    stderr = '{"error": "You are not an admin"}'

    result = normalize(outcome(exit_code=1, stderr=stderr))

    assert result.message == "You are not an admin"
    assert result.error_kind is ErrorKind.PERMISSION_DENIED
    assert result.raw_output == stderr


def test_failure_falls_back_to_stdout_then_exit_code() -> None:
    assert normalize(outcome(exit_code=2, stdout="bad flag\n")).message == "bad flag"
    assert (
        normalize(outcome(exit_code=2)).message == "ludus exited with code 2"
    )


def test_failure_never_parses_stdout() -> None:
    result = normalize(outcome(exit_code=1, stdout='{"a": 1}'))

    assert not result.success
    assert result.data is None
    assert result.error_kind is ErrorKind.EXECUTION_FAILURE


def test_synthetic_outcome_keeps_its_kind() -> None:
    result = normalize(
        outcome(exit_code=124, stderr="Command timed out", error_kind=ErrorKind.TIMEOUT)
    )

    assert result.error_kind is ErrorKind.TIMEOUT
    assert result.message == "Command timed out"


def test_parse_structured_rejects_text() -> None:
    assert parse_structured('{"a": 1}') == {"a": 1}
    assert parse_structured("null") is None
    assert parse_structured("   ") is not None
    assert parse_structured("{broken") is not None
    assert parse_structured("{broken") != {}


def test_failure_message_helper() -> None:
    assert failure_message(outcome(exit_code=1, stderr='{"detail": "gone"}')) == "gone"
