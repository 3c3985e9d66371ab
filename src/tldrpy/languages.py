"""Language and platform resolution for page lookup."""

from __future__ import annotations

import logging
import os
import sys
from collections.abc import Iterable, Mapping, Sequence

from .constants import COMMON_PLATFORM, ENGLISH
from .models import LanguageSelection, PageCandidate

logger = logging.getLogger(__name__)

KNOWN_PLATFORMS = (
    "android",
    "common",
    "freebsd",
    "linux",
    "netbsd",
    "openbsd",
    "osx",
    "sunos",
    "windows",
)

_PLATFORM_ALIASES = {
    "macos": "osx",
    "darwin": "osx",
    "win": "windows",
    "win32": "windows",
}

_SYS_PLATFORM_PREFIXES = (
    ("linux", "linux"),
    ("darwin", "osx"),
    ("win32", "windows"),
    ("cygwin", "windows"),
    ("android", "android"),
    ("freebsd", "freebsd"),
    ("netbsd", "netbsd"),
    ("openbsd", "openbsd"),
    ("sunos", "sunos"),
)


def dedup(items: Iterable[str]) -> list[str]:
    """De-duplicate while keeping the first occurrence of each item."""
    seen: set[str] = set()
    result: list[str] = []
    for item in items:
        if item in seen:
            continue
        seen.add(item)
        result.append(item)
    return result


def parse_env_languages(environ: Mapping[str, str] | None = None) -> list[str]:
    """Read the preferred languages from LANGUAGE and LANG.

    LANGUAGE is a colon-separated preference list and is only honoured when
    LANG is set. Encoding and modifier suffixes are dropped; ``ll_CC`` tags
    contribute both ``ll_CC`` and ``ll``.
    """
    env = os.environ if environ is None else environ
    lang = env.get("LANG")
    if not lang:
        logger.debug("LANG is not set, cannot get languages from env vars")
        return []

    raw_tags = [tag for tag in env.get("LANGUAGE", "").split(":") if tag]
    raw_tags.append(lang)

    languages: list[str] = []
    for raw_tag in raw_tags:
        tag = raw_tag.split(".", 1)[0].split("@", 1)[0]
        if len(tag) >= 5 and tag[2] == "_":
            languages.append(tag[:5])
            languages.append(tag[:2])
        elif len(tag) == 2:
            languages.append(tag)
        else:
            logger.debug("invalid language found in LANG or LANGUAGE: %r", raw_tag)

    return dedup(languages)


def resolve_languages(
    *,
    override: Sequence[str] | None = None,
    configured: Sequence[str] = (),
    environ: Mapping[str, str] | None = None,
) -> LanguageSelection:
    """Pick the language list by priority: override, config, environment.

    English is appended as the last fallback unless the languages came from
    an explicit override.
    """
    cleaned_override = [lang.strip() for lang in override or () if lang.strip()]
    if cleaned_override:
        return LanguageSelection(languages=tuple(dedup(cleaned_override)), explicit=True)

    cleaned_configured = [lang.strip() for lang in configured if lang.strip()]
    if cleaned_configured:
        languages = cleaned_configured
    else:
        languages = parse_env_languages(environ)

    return LanguageSelection(
        languages=tuple(dedup([*languages, ENGLISH])),
        explicit=False,
    )


def normalize_platform(platform: str) -> str:
    lowered = platform.strip().lower()
    return _PLATFORM_ALIASES.get(lowered, lowered)


def detect_platform(sys_platform: str | None = None) -> str:
    """Map the host OS to a page platform, ``common`` when unknown."""
    current = sys.platform if sys_platform is None else sys_platform
    for prefix, platform in _SYS_PLATFORM_PREFIXES:
        if current.startswith(prefix):
            return platform
    return COMMON_PLATFORM


def resolve_platform(override: str | None = None, sys_platform: str | None = None) -> str:
    if override:
        return normalize_platform(override)
    return detect_platform(sys_platform)


def build_candidates(languages: Sequence[str], platform: str) -> list[PageCandidate]:
    """Order lookups language by language, specific platform before common."""
    candidates: list[PageCandidate] = []
    for language in dedup(languages):
        if platform != COMMON_PLATFORM:
            candidates.append(PageCandidate(language=language, platform=platform))
        candidates.append(PageCandidate(language=language, platform=COMMON_PLATFORM))
    return candidates
