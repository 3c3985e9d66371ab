"""Page markdown parsing into typed lines.

A page is made of ``# `` title lines, ``> `` description lines, ``- ``
example descriptions, example command lines (wrapped in backticks or
indented by four spaces or a tab) and blank separators. Every other
non-blank line is a syntax error; all of them are collected before raising.
"""

from __future__ import annotations

from pathlib import Path

from .errors import PageSyntaxError, SyntaxIssue, TldrError
from .models import LineKind, ParsedLine, ParsedPage

TITLE_PREFIX = "# "
DESCRIPTION_PREFIX = "> "
BULLET_PREFIX = "- "
EXAMPLE_DELIMITER = "`"
INDENTED_EXAMPLE_PREFIXES = ("    ", "\t")

_BARE_MARKERS = {
    "#": LineKind.TITLE,
    ">": LineKind.DESCRIPTION,
    "-": LineKind.BULLET,
}

_UNKNOWN_LINE_REASON = "every non-empty line must begin with either '# ', '> ', '- ' or '`'"
_UNTERMINATED_EXAMPLE_REASON = "every line with an example must end with a backtick '`'"


def parse_page(text: str, *, source: str = "<page>", platform: str | None = None) -> ParsedPage:
    lines: list[ParsedLine] = []
    issues: list[SyntaxIssue] = []

    for line_number, raw_line in enumerate(text.splitlines(), start=1):
        line = raw_line.rstrip()
        if line_number == 1:
            line = line.lstrip("\ufeff")

        if _is_indented_example(line):
            lines.append(ParsedLine(LineKind.EXAMPLE, line.strip(), line_number))
            continue

        if not line.strip():
            lines.append(ParsedLine(LineKind.BLANK, "", line_number))
        elif line in _BARE_MARKERS:
            lines.append(ParsedLine(_BARE_MARKERS[line], "", line_number))
        elif line.startswith(TITLE_PREFIX):
            lines.append(ParsedLine(LineKind.TITLE, line[len(TITLE_PREFIX):], line_number))
        elif line.startswith(DESCRIPTION_PREFIX):
            lines.append(
                ParsedLine(LineKind.DESCRIPTION, line[len(DESCRIPTION_PREFIX):], line_number)
            )
        elif line.startswith(BULLET_PREFIX):
            lines.append(ParsedLine(LineKind.BULLET, line[len(BULLET_PREFIX):], line_number))
        elif line.startswith(EXAMPLE_DELIMITER):
            if len(line) < 2 or not line.endswith(EXAMPLE_DELIMITER):
                issues.append(SyntaxIssue(line_number, line, _UNTERMINATED_EXAMPLE_REASON))
                continue
            lines.append(ParsedLine(LineKind.EXAMPLE, line[1:-1], line_number))
        else:
            issues.append(SyntaxIssue(line_number, line, _UNKNOWN_LINE_REASON))

    if issues:
        raise PageSyntaxError(source, issues)

    return ParsedPage(source=source, lines=tuple(lines), platform=platform)


def read_page_text(path: Path) -> str:
    try:
        with path.open("r", encoding="utf-8") as page_file:
            return page_file.read()
    except OSError as exc:
        raise TldrError(f"'{path}': {exc.strerror or exc}") from exc
    except UnicodeDecodeError as exc:
        raise TldrError(f"'{path}': not valid UTF-8 ({exc.reason})") from exc


def read_page(path: Path) -> ParsedPage:
    """Parse the page file at path; its directory name is the platform."""
    return parse_page(read_page_text(path), source=str(path), platform=path.parent.name or None)


def _is_indented_example(line: str) -> bool:
    return line.startswith(INDENTED_EXAMPLE_PREFIXES) and bool(line.strip())
