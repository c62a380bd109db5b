"""Tests for CLI help output parsing."""

from ludus_mcp.utils.parser import parse_help_output

RANGE_HELP = """\
Perform actions on your range

Usage:
  ludus range [command]

Aliases:
  range, r

Available Commands:
  config      Get or set a range configuration
  deploy      Deploy a range

Flags:
  -h, --help   help for range

Global Flags:
      --json     format output as json
      --url string   Server Host URL

Use "ludus range [command] --help" for more information about a command.
"""


def test_sections_split() -> None:
    sections = parse_help_output(RANGE_HELP)

    assert sections["description"] == "Perform actions on your range"
    assert sections["usage"] == "ludus range [command]"
    assert sections["aliases"] == "range, r"
    assert sections["available_commands"].splitlines() == [
        "config      Get or set a range configuration",
        "  deploy      Deploy a range",
    ]
    assert sections["flags"] == "-h, --help   help for range"
    assert "--url string" in sections["global_flags"]


def test_trailing_text_stays_in_last_section() -> None:
    sections = parse_help_output(RANGE_HELP)

    assert sections["global_flags"].endswith("for more information about a command.")


def test_inline_header_text() -> None:
    sections = parse_help_output("Usage: ludus range deploy [flags]\n")

    assert sections == {"usage": "ludus range deploy [flags]"}


def test_examples_section() -> None:
    sections = parse_help_output("Examples:\n  ludus range deploy -t dns\n")

    assert sections["examples"] == "ludus range deploy -t dns"


def test_plain_text_is_description() -> None:
    assert parse_help_output("just some text\n\nmore") == {
        "description": "just some text\nmore"
    }


def test_empty_output() -> None:
    assert parse_help_output("") == {}
    assert parse_help_output("\n  \n") == {}
