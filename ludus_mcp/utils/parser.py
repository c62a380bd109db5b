"""Ludus CLI help output parsing."""

import re

SECTION_HEADER = re.compile(
    r"^(Usage|Available Commands|Flags|Examples|Global Flags|Aliases):\s*(.*)$"
)


def parse_help_output(output: str) -> dict[str, str]:
    """Split cobra-style help text into named sections.

    Text before the first recognised header goes under ``description``.
    Header names are lower-cased with spaces replaced by underscores, so
    "Global Flags:" becomes ``global_flags``. Text following a header on the
    same line (as in ``Usage: ludus range [flags]``) belongs to that section.

    Returns:
        Mapping of section name to its text, without blank-only sections.
    """
    sections: dict[str, str] = {}
    current = "description"
    content: list[str] = []

    def flush() -> None:
        text = "\n".join(content).strip()
        if text:
            sections[current] = text

    for line in output.splitlines():
        match = SECTION_HEADER.match(line.strip())
        if match:
            flush()
            current = match.group(1).lower().replace(" ", "_")
            content = [match.group(2)] if match.group(2) else []
        elif line.strip():
            content.append(line)

    flush()
    return sections
