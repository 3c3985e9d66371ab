from __future__ import annotations

from pathlib import Path

import pytest

from conftest import GIT_PAGE
from tldrpy.errors import EXIT_PAGE_SYNTAX, PageSyntaxError, TldrError
from tldrpy.models import LineKind
from tldrpy.parser import parse_page, read_page


def test_parse_page_classifies_every_line() -> None:
    page = parse_page(GIT_PAGE)

    kinds = [line.kind for line in page.lines]
    assert kinds == [
        LineKind.TITLE,
        LineKind.BLANK,
        LineKind.DESCRIPTION,
        LineKind.DESCRIPTION,
        LineKind.BLANK,
        LineKind.BULLET,
        LineKind.BLANK,
        LineKind.EXAMPLE,
        LineKind.BLANK,
        LineKind.BULLET,
        LineKind.BLANK,
        LineKind.EXAMPLE,
    ]
    assert page.lines[0].text == "git"
    assert page.lines[7].text == "git --version"
    assert page.lines[11].text == "git clone {{https://example.com/repo.git}}"


def test_indented_example_lines_are_accepted() -> None:
    page = parse_page("# ls\n\n- List files:\n\n    ls -la\n\tls -1\n")

    examples = [line.text for line in page.lines if line.kind is LineKind.EXAMPLE]
    assert examples == ["ls -la", "ls -1"]


def test_invalid_line_reports_its_line_number() -> None:
    text = "# tool\n\nthis line is invalid\n"

    with pytest.raises(PageSyntaxError) as exc_info:
        parse_page(text, source="tool.md")

    error = exc_info.value
    assert error.exit_code == EXIT_PAGE_SYNTAX
    assert [issue.line_number for issue in error.issues] == [3]
    assert "line 3" in str(error)
    assert "tool.md" in str(error)


def test_all_issues_are_collected_before_raising() -> None:
    text = "# tool\nplain text\n\n`unterminated example\n- fine\nmore text\n"

    with pytest.raises(PageSyntaxError) as exc_info:
        parse_page(text)

    issues = exc_info.value.issues
    assert [issue.line_number for issue in issues] == [2, 4, 6]
    assert "backtick" in issues[1].reason


def test_bare_markers_and_bom_are_tolerated() -> None:
    page = parse_page("\ufeff# tool\n>\n-\n")

    assert [line.kind for line in page.lines] == [
        LineKind.TITLE,
        LineKind.DESCRIPTION,
        LineKind.BULLET,
    ]
    assert page.lines[0].text == "tool"


def test_read_page_uses_parent_directory_as_platform(tmp_path: Path) -> None:
    path = tmp_path / "linux" / "ip.md"
    path.parent.mkdir()
    path.write_text("# ip\n", encoding="utf-8")

    page = read_page(path)

    assert page.platform == "linux"
    assert page.source == str(path)


def test_read_page_reports_missing_files(tmp_path: Path) -> None:
    with pytest.raises(TldrError):
        read_page(tmp_path / "missing.md")
