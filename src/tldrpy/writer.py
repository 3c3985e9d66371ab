"""Terminal boundary: turns styled segments into bytes on a stream."""

from __future__ import annotations

import os
from collections.abc import Iterable, Mapping
from enum import StrEnum
from typing import TextIO

from rich.color import Color, ColorParseError, ColorSystem
from rich.style import Style

from .models import Segment
from .styles import (
    ColorValue,
    HexColorValue,
    IndexedColorValue,
    NamedColorValue,
    RgbColorValue,
    StyleDescriptor,
)


class ColorPolicy(StrEnum):
    ALWAYS = "always"
    NEVER = "never"
    AUTO = "auto"


def use_color(
    policy: ColorPolicy,
    stream: TextIO,
    environ: Mapping[str, str] | None = None,
) -> bool:
    """Decide whether escape sequences go to stream.

    ``auto`` colors only a terminal, and never when ``NO_COLOR`` is set.
    """
    if policy is ColorPolicy.ALWAYS:
        return True
    if policy is ColorPolicy.NEVER:
        return False
    env = os.environ if environ is None else environ
    if env.get("NO_COLOR"):
        return False
    isatty = getattr(stream, "isatty", None)
    return bool(isatty and isatty())


def to_rich_color(value: ColorValue | None) -> Color | None:
    if value is None:
        return None
    try:
        if isinstance(value, NamedColorValue):
            return Color.parse(value.name)
        if isinstance(value, IndexedColorValue):
            return Color.from_ansi(value.index)
        if isinstance(value, RgbColorValue):
            return Color.from_rgb(value.red, value.green, value.blue)
        if isinstance(value, HexColorValue):
            return Color.parse(value.hex)
    except ColorParseError:
        return None
    return None


def to_rich_style(descriptor: StyleDescriptor) -> Style:
    return Style(
        color=to_rich_color(descriptor.foreground),
        bgcolor=to_rich_color(descriptor.background),
        bold=descriptor.bold or None,
        dim=descriptor.dim or None,
        italic=descriptor.italic or None,
        underline=descriptor.underline or None,
        strike=descriptor.strikethrough or None,
    )


def write_segments(segments: Iterable[Segment], stream: TextIO, *, color: bool) -> None:
    """Write segments to stream, styled only when color is enabled."""
    cache: dict[StyleDescriptor, Style] = {}
    chunks: list[str] = []
    for segment in segments:
        if not color or segment.style is None or segment.is_newline:
            chunks.append(segment.text)
            continue
        style = cache.get(segment.style)
        if style is None:
            style = to_rich_style(segment.style)
            cache[segment.style] = style
        chunks.append(style.render(segment.text, color_system=ColorSystem.TRUECOLOR))
    stream.write("".join(chunks))
    stream.flush()
