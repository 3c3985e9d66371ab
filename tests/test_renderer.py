from __future__ import annotations

import pytest

from conftest import GIT_PAGE, TAR_PAGE
from tldrpy.config import Config, OptionStyle
from tldrpy.models import ParsedPage, Segment
from tldrpy.parser import parse_page
from tldrpy.renderer import Renderer, segments_to_text
from tldrpy.styles import ElementKind, resolve_styles
from tldrpy.text_width import display_width


def _renderer(width: int = 80, **output: object) -> Renderer:
    return Renderer(Config().with_output(**output), width=width)


def _lines(segments: list[Segment]) -> list[str]:
    return segments_to_text(segments).split("\n")


def test_render_page_layout() -> None:
    text = segments_to_text(_renderer().render(parse_page(GIT_PAGE)))

    assert text == (
        "\n"
        "  git\n"
        "\n"
        "  Distributed version control system.\n"
        "  More information: https://git-scm.com.\n"
        "\n"
        "  Check the Git version:\n"
        "\n"
        "    git --version\n"
        "\n"
        "  Clone a repository:\n"
        "\n"
        "    git clone https://example.com/repo.git\n"
        "\n"
    )


def test_title_and_urls_are_styled() -> None:
    styles = resolve_styles(Config().style)

    segments = _renderer().render(parse_page(GIT_PAGE))

    assert Segment("git", styles[ElementKind.TITLE]) in segments
    assert Segment("https://git-scm.com", styles[ElementKind.URL]) in segments


@pytest.mark.parametrize(
    ("option_style", "expected"),
    [
        (OptionStyle.SHORT, "-s"),
        (OptionStyle.LONG, "--long"),
        (OptionStyle.BOTH, "[-s|--long]"),
    ],
)
def test_option_style_chooses_the_alternative(option_style: OptionStyle, expected: str) -> None:
    renderer = _renderer(option_style=option_style)
    styles = resolve_styles(Config().style)

    spans = renderer.example_spans("cmd {{[-s|--long]}} {{file}}")

    assert segments_to_text(spans) == f"cmd {expected} file"
    option_segment = spans[1]
    if option_style is OptionStyle.BOTH:
        assert option_segment.style == styles[ElementKind.PLACEHOLDER]
    else:
        assert option_segment.style == styles[ElementKind.EXAMPLE]
    assert spans[-1] == Segment("file", styles[ElementKind.PLACEHOLDER])


def test_tar_page_renders_long_options_by_default() -> None:
    lines = _lines(_renderer().render(parse_page(TAR_PAGE)))

    assert "    tar --extract --verbose --file path/to/file.tar" in lines


def test_escaped_braces_are_literal() -> None:
    spans = _renderer().example_spans("echo \\{\\{name\\}\\} {{value}}")

    assert segments_to_text(spans) == "echo {{name}} value"
    assert len(spans) == 2


def test_placeholder_may_end_with_a_brace() -> None:
    styles = resolve_styles(Config().style)

    spans = _renderer().example_spans("printf {{a}}}")

    assert spans[-1] == Segment("a}", styles[ElementKind.PLACEHOLDER])


def test_inline_code_in_descriptions() -> None:
    styles = resolve_styles(Config().style)
    page = parse_page("# x\n\n- Use `--help` for help:\n\n`x --help`\n")

    segments = _renderer().render(page)

    assert Segment("--help", styles[ElementKind.INLINE_CODE]) in segments


def test_compact_drops_only_separator_lines() -> None:
    page = parse_page(GIT_PAGE)
    normal = _lines(_renderer().render(page))

    compact = _lines(_renderer(compact=True).render(page))

    assert "" not in compact[:-1]
    assert compact == [line for line in normal if line] + [""]


def test_wrapping_never_exceeds_the_width() -> None:
    page = parse_page(
        "# wide\n\n"
        "> 漢字の説明文はとても長いのでこの行は必ず折り返されます 漢字 漢字 漢字 漢字 漢字.\n\n"
        "- Describe a rather long example that will need wrapping across lines:\n\n"
        "`wide --option {{a_really_long_placeholder}} {{another_placeholder}} {{x}}`\n"
    )

    lines = _lines(_renderer(width=30).render(page))

    assert all(display_width(line) <= 30 for line in lines if " " in line.strip())
    assert any(line.startswith("    ") and "{{" not in line for line in lines)


def test_wrapped_continuation_uses_the_hanging_indent() -> None:
    page = parse_page("# x\n\n- one two three four five six seven\n\n`x`\n")

    lines = _lines(_renderer(width=16, show_hyphens=True).render(page))

    assert lines[3] == "  - one two"
    assert lines[4] == "    three four"
    assert lines[5] == "    five six"
    assert lines[6] == "    seven"


def test_single_overlong_word_stays_whole() -> None:
    page = parse_page("# x\n\n> supercalifragilisticexpialidocious word\n")

    lines = _lines(_renderer(width=10).render(page))

    assert "  supercalifragilisticexpialidocious" in lines
    assert "  word" in lines


def test_platform_title_and_hidden_title() -> None:
    page = ParsedPage(source="ip.md", lines=parse_page("# ip\n").lines, platform="linux")

    with_platform = segments_to_text(_renderer(platform_title=True).render(page))
    without_title = segments_to_text(_renderer(show_title=False).render(page))

    assert "  linux/ip\n" in with_platform
    assert "ip" not in without_title


def test_render_raw_returns_source_verbatim() -> None:
    segments = _renderer().render_raw(GIT_PAGE)

    assert segments_to_text(segments) == GIT_PAGE
    assert all(segment.style is None for segment in segments)


def test_width_from_config_line_length() -> None:
    renderer = Renderer(Config().with_output(line_length=42))

    assert renderer.width == 42


def test_wrapping_keeps_runs_of_spaces() -> None:
    page = parse_page(
        "# printf\n\n- Print aligned columns:\n\n"
        '`printf "%s  %s\\n" {{first_column_value}} {{second_column_value}}`\n'
    )

    text = segments_to_text(_renderer(width=30).render(page))

    assert '"%s  %s\\n"' in text
    assert "first_column_value" in text
