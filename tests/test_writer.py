from __future__ import annotations

import io

from tldrpy.models import Segment
from tldrpy.styles import (
    HexColorValue,
    IndexedColorValue,
    NamedColorValue,
    RgbColorValue,
    StyleDescriptor,
)
from tldrpy.writer import ColorPolicy, to_rich_style, use_color, write_segments

BOLD_RED = StyleDescriptor(foreground=NamedColorValue("red"), bold=True)


class _TtyStream(io.StringIO):
    def isatty(self) -> bool:
        return True


def test_color_policy_always_and_never() -> None:
    stream = io.StringIO()

    assert use_color(ColorPolicy.ALWAYS, stream, {}) is True
    assert use_color(ColorPolicy.NEVER, _TtyStream(), {}) is False


def test_auto_colors_only_terminals_without_no_color() -> None:
    assert use_color(ColorPolicy.AUTO, _TtyStream(), {}) is True
    assert use_color(ColorPolicy.AUTO, io.StringIO(), {}) is False
    assert use_color(ColorPolicy.AUTO, _TtyStream(), {"NO_COLOR": "1"}) is False


def test_write_segments_without_color_emits_plain_text() -> None:
    stream = io.StringIO()

    write_segments([Segment("  "), Segment("git", BOLD_RED), Segment("\n")], stream, color=False)

    assert stream.getvalue() == "  git\n"


def test_write_segments_with_color_wraps_styled_runs() -> None:
    stream = io.StringIO()

    write_segments([Segment("git", BOLD_RED), Segment("\n")], stream, color=True)

    output = stream.getvalue()
    assert output.startswith("\x1b[")
    assert "git" in output
    assert output.endswith("\x1b[0m\n")


def test_to_rich_style_maps_every_color_form() -> None:
    assert to_rich_style(StyleDescriptor(foreground=IndexedColorValue(208))).color.number == 208
    rgb = to_rich_style(StyleDescriptor(foreground=RgbColorValue(1, 2, 3))).color
    assert rgb.triplet == (1, 2, 3)
    hex_color = to_rich_style(StyleDescriptor(background=HexColorValue("#ff0000"))).bgcolor
    assert hex_color.triplet == (255, 0, 0)
    assert to_rich_style(StyleDescriptor(italic=True)).italic is True
    assert to_rich_style(StyleDescriptor()).bold is None
