from __future__ import annotations

import pytest

from tldrpy.languages import (
    build_candidates,
    detect_platform,
    parse_env_languages,
    resolve_languages,
    resolve_platform,
)
from tldrpy.models import PageCandidate


def test_env_languages_require_lang() -> None:
    assert parse_env_languages({"LANGUAGE": "fr:de"}) == []


def test_env_languages_expand_region_tags_and_strip_encoding() -> None:
    environ = {"LANGUAGE": "pt_BR:de", "LANG": "fr_FR.UTF-8"}

    assert parse_env_languages(environ) == ["pt_BR", "pt", "de", "fr_FR", "fr"]


def test_env_languages_skip_invalid_tags() -> None:
    assert parse_env_languages({"LANG": "C.UTF-8"}) == []


def test_resolve_languages_appends_english_fallback() -> None:
    selection = resolve_languages(configured=["fr", "de", "fr"], environ={})

    assert selection.languages == ("fr", "de", "en")
    assert selection.explicit is False


def test_resolve_languages_uses_environment_when_unconfigured() -> None:
    selection = resolve_languages(environ={"LANG": "it_IT.UTF-8"})

    assert selection.languages == ("it_IT", "it", "en")


def test_explicit_override_has_no_english_fallback() -> None:
    selection = resolve_languages(override=["fr"], configured=["de"], environ={"LANG": "es"})

    assert selection.languages == ("fr",)
    assert selection.explicit is True


def test_build_candidates_orders_languages_then_platforms() -> None:
    candidates = build_candidates(["fr", "en"], "linux")

    assert candidates == [
        PageCandidate("fr", "linux"),
        PageCandidate("fr", "common"),
        PageCandidate("en", "linux"),
        PageCandidate("en", "common"),
    ]


def test_build_candidates_for_common_has_no_duplicates() -> None:
    assert build_candidates(["en"], "common") == [PageCandidate("en", "common")]


@pytest.mark.parametrize(
    ("sys_platform", "expected"),
    [
        ("linux", "linux"),
        ("darwin", "osx"),
        ("win32", "windows"),
        ("freebsd14", "freebsd"),
        ("plan9", "common"),
    ],
)
def test_detect_platform(sys_platform: str, expected: str) -> None:
    assert detect_platform(sys_platform) == expected


def test_resolve_platform_normalizes_aliases() -> None:
    assert resolve_platform("macOS", "linux") == "osx"
    assert resolve_platform(None, "linux") == "linux"
