"""Style resolution from configured style specs to abstract descriptors.

Nothing here knows about terminals. The writer decides whether and how a
descriptor becomes escape sequences.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from enum import StrEnum

from .config import (
    Color256,
    ColorSpec,
    HexColor,
    NamedColor,
    RgbColor,
    StyleConfig,
    StyleSpec,
)

_HEX_RE = re.compile(r"^#[0-9a-f]{6}$")


class ElementKind(StrEnum):
    TITLE = "title"
    DESCRIPTION = "description"
    BULLET = "bullet"
    EXAMPLE = "example"
    URL = "url"
    INLINE_CODE = "inline_code"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class NamedColorValue:
    name: str


@dataclass(frozen=True)
class IndexedColorValue:
    index: int


@dataclass(frozen=True)
class RgbColorValue:
    red: int
    green: int
    blue: int


@dataclass(frozen=True)
class HexColorValue:
    hex: str


ColorValue = NamedColorValue | IndexedColorValue | RgbColorValue | HexColorValue


@dataclass(frozen=True)
class StyleDescriptor:
    """Abstract text style; a ``None`` color means the terminal default."""

    foreground: ColorValue | None = None
    background: ColorValue | None = None
    bold: bool = False
    underline: bool = False
    italic: bool = False
    dim: bool = False
    strikethrough: bool = False


PLAIN = StyleDescriptor()


def resolve_color(spec: ColorSpec) -> ColorValue | None:
    """Map a color spec to a color value; anything unusable means default."""
    if isinstance(spec, NamedColor):
        if spec is NamedColor.DEFAULT:
            return None
        return NamedColorValue(spec.value)
    if isinstance(spec, Color256):
        if 0 <= spec.color256 <= 255:
            return IndexedColorValue(spec.color256)
        return None
    if isinstance(spec, RgbColor):
        if all(0 <= part <= 255 for part in spec.rgb):
            return RgbColorValue(*spec.rgb)
        return None
    if isinstance(spec, HexColor):
        normalized = spec.hex.lower()
        if not normalized.startswith("#"):
            normalized = f"#{normalized}"
        if _HEX_RE.match(normalized):
            return HexColorValue(normalized)
        return None
    return None


def resolve_style(spec: StyleSpec) -> StyleDescriptor:
    return StyleDescriptor(
        foreground=resolve_color(spec.color),
        background=resolve_color(spec.background),
        bold=spec.bold,
        underline=spec.underline,
        italic=spec.italic,
        dim=spec.dim,
        strikethrough=spec.strikethrough,
    )


def resolve_styles(style_config: StyleConfig) -> dict[ElementKind, StyleDescriptor]:
    return {
        kind: resolve_style(getattr(style_config, kind.value))
        for kind in ElementKind
    }
