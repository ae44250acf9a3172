"""Line-oriented matching of free-form command output."""

from __future__ import annotations

import re
from collections.abc import Mapping


_LINE_SEPARATOR = re.compile(r"[\n\r]+")
_VARIABLE = re.compile(r"\$\{(\w+)\}")


def parse_lines(output: str) -> list[str]:
    """Parses a multi-line 'output' string into single lines.

    e.g. Parses "Hello\\nWorld\\n" to ["Hello", "World"]
    """
    return [line for line in _LINE_SEPARATOR.split(output) if line]


def find_capture(output: str, pattern: re.Pattern[str]) -> str | None:
    """Returns the first capture group in the first line where the pattern is found
    with a non-blank group, or None.
    """
    for line in parse_lines(output):
        match = pattern.search(line)
        if match:
            value = match.group(1)
            if value and value.strip():
                return value
    return None


def find_required_capture(
    capture_name: str, output: str, pattern: re.Pattern[str], log_context: str = ""
) -> str:
    """Like find_capture, but never returns a blank string."""
    value = find_capture(output, pattern)
    if value is None:
        raise OutputParseError(
            f"{log_context}Could not find result value '{capture_name}' in initial output"
        )
    return value


def matches_any_line(output: str, pattern: re.Pattern[str]) -> bool:
    return any(pattern.search(line) for line in parse_lines(output))


def substitute_variables(template: str, variables: Mapping[str, str]) -> str:
    """Substitutes '${name}' tokens for the known variables only.

    Unknown tokens are left verbatim.
    """

    def _replace(match: re.Match[str]) -> str:
        name = match.group(1)
        if name in variables:
            return variables[name]
        return match.group(0)

    return _VARIABLE.sub(_replace, template)


class OutputParseError(Exception):
    """Raised when command output is blank or lacks a required value."""
