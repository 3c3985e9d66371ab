"""Configuration model, loading and defaults.

The configuration is read once per process into a frozen pydantic model and
passed explicitly to every component that needs it. Command-line overrides
produce a new value through ``model_copy`` instead of mutating the loaded one.
"""

from __future__ import annotations

import json
import os
import re
from collections.abc import Mapping
from datetime import timedelta
from enum import StrEnum
from pathlib import Path
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError, field_validator

from .constants import (
    CONFIG_ENV_VAR,
    DEFAULT_CACHE_DIR,
    DEFAULT_CONFIG_PATH,
    DEFAULT_MAX_AGE_HOURS,
    DEFAULT_MAX_WORKERS,
    DEFAULT_MIRROR,
)
from .errors import ConfigError

_HEX_COLOR_RE = re.compile(r"^#?([0-9A-Fa-f]{6})$")

ColorComponent = Annotated[int, Field(ge=0, le=255)]


class NamedColor(StrEnum):
    DEFAULT = "default"
    BLACK = "black"
    RED = "red"
    GREEN = "green"
    YELLOW = "yellow"
    BLUE = "blue"
    MAGENTA = "magenta"
    CYAN = "cyan"
    WHITE = "white"
    BRIGHT_BLACK = "bright_black"
    BRIGHT_RED = "bright_red"
    BRIGHT_GREEN = "bright_green"
    BRIGHT_YELLOW = "bright_yellow"
    BRIGHT_BLUE = "bright_blue"
    BRIGHT_MAGENTA = "bright_magenta"
    BRIGHT_CYAN = "bright_cyan"
    BRIGHT_WHITE = "bright_white"


class _FrozenModel(BaseModel):
    model_config = ConfigDict(frozen=True, extra="forbid")


class Color256(_FrozenModel):
    color256: ColorComponent


class RgbColor(_FrozenModel):
    rgb: tuple[ColorComponent, ColorComponent, ColorComponent]


class HexColor(_FrozenModel):
    hex: str

    @field_validator("hex")
    @classmethod
    def _normalize_hex(cls, value: str) -> str:
        match = _HEX_COLOR_RE.match(value.strip())
        if match is None:
            raise ValueError("expected 6 hexadecimal digits, optionally prefixed with '#'")
        return f"#{match.group(1).lower()}"


ColorSpec = NamedColor | Color256 | RgbColor | HexColor


class StyleSpec(_FrozenModel):
    color: ColorSpec = NamedColor.DEFAULT
    background: ColorSpec = NamedColor.DEFAULT
    bold: bool = False
    underline: bool = False
    italic: bool = False
    dim: bool = False
    strikethrough: bool = False


class OptionStyle(StrEnum):
    SHORT = "short"
    LONG = "long"
    BOTH = "both"


class CacheConfig(_FrozenModel):
    dir: Path = Field(default=Path(DEFAULT_CACHE_DIR), validate_default=True)
    mirror: str = DEFAULT_MIRROR
    auto_update: bool = True
    defer_auto_update: bool = False
    max_age: Annotated[int, Field(ge=0)] = DEFAULT_MAX_AGE_HOURS
    languages: tuple[str, ...] = ()
    max_workers: Annotated[int, Field(ge=1)] = DEFAULT_MAX_WORKERS

    @field_validator("dir")
    @classmethod
    def _expand_home(cls, value: Path) -> Path:
        return value.expanduser()

    @field_validator("mirror")
    @classmethod
    def _strip_trailing_slash(cls, value: str) -> str:
        stripped = value.strip().rstrip("/")
        if not stripped:
            raise ValueError("mirror must not be empty")
        return stripped


class OutputConfig(_FrozenModel):
    show_title: bool = True
    platform_title: bool = False
    show_hyphens: bool = False
    example_prefix: str = "- "
    line_length: Annotated[int, Field(ge=0)] = 0
    compact: bool = False
    option_style: OptionStyle = OptionStyle.LONG
    raw_markdown: bool = False


class IndentConfig(_FrozenModel):
    title: Annotated[int, Field(ge=0)] = 2
    description: Annotated[int, Field(ge=0)] = 2
    bullet: Annotated[int, Field(ge=0)] = 2
    example: Annotated[int, Field(ge=0)] = 4


class StyleConfig(_FrozenModel):
    title: StyleSpec = StyleSpec(color=NamedColor.MAGENTA, bold=True)
    description: StyleSpec = StyleSpec(color=NamedColor.MAGENTA)
    bullet: StyleSpec = StyleSpec(color=NamedColor.GREEN)
    example: StyleSpec = StyleSpec(color=NamedColor.CYAN)
    url: StyleSpec = StyleSpec(color=NamedColor.RED, italic=True)
    inline_code: StyleSpec = StyleSpec(color=NamedColor.YELLOW, italic=True)
    placeholder: StyleSpec = StyleSpec(color=NamedColor.RED, italic=True)


class Config(_FrozenModel):
    cache: CacheConfig = CacheConfig()
    output: OutputConfig = OutputConfig()
    indent: IndentConfig = IndentConfig()
    style: StyleConfig = StyleConfig()

    @property
    def cache_max_age(self) -> timedelta:
        return timedelta(hours=self.cache.max_age)

    def with_output(self, **changes: object) -> Config:
        """Return a copy with some output options replaced."""
        return self.model_copy(update={"output": self.output.model_copy(update=changes)})


def resolve_config_path(
    cli_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Path:
    if cli_path is not None:
        return cli_path.expanduser()
    env = os.environ if environ is None else environ
    env_path = env.get(CONFIG_ENV_VAR, "").strip()
    if env_path:
        return Path(env_path).expanduser()
    return Path(DEFAULT_CONFIG_PATH).expanduser()


def load_config(path: Path) -> Config:
    """Load the config file at path; a missing file yields the defaults."""
    if not path.exists():
        return Config()
    if not path.is_file():
        raise ConfigError(f"Config path is not a file: {path}")

    try:
        raw_text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read config: {path}") from exc

    try:
        payload = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise ConfigError(f"Invalid config JSON: {path} ({exc})") from exc

    if not isinstance(payload, dict):
        raise ConfigError(f"Config JSON must be an object: {path}")

    return parse_config(payload, source=str(path))


def parse_config(payload: Mapping[str, object], *, source: str = "<config>") -> Config:
    try:
        return Config.model_validate(payload)
    except ValidationError as exc:
        raise ConfigError(f"Invalid config in {source}:\n{exc}") from exc


def render_default_config() -> str:
    """Return the default configuration as pretty JSON."""
    payload = Config().model_dump(mode="json")
    home = str(Path.home())
    cache_dir = payload["cache"]["dir"]
    if cache_dir.startswith(home):
        payload["cache"]["dir"] = "~" + cache_dir[len(home):]
    return json.dumps(payload, indent=2, ensure_ascii=False)
