from __future__ import annotations

import pytest

from tldrpy.errors import ManifestParseError
from tldrpy.manifest import ChecksumManifest, archive_language, archive_name, parse_sumfile

EN_SHA = "a" * 64
FR_SHA = "b" * 64
DE_SHA = "c" * 64


def _manifest() -> ChecksumManifest:
    return ChecksumManifest(
        digests={
            "tldr-pages.en.zip": EN_SHA,
            "tldr-pages.fr.zip": FR_SHA,
            "tldr-pages.de.zip": DE_SHA,
        }
    )


def test_parse_sumfile_keeps_language_archives_only() -> None:
    text = "\n".join(
        [
            f"{EN_SHA.upper()}  tldr-pages.en.zip",
            f"{FR_SHA}  tldr-pages.fr.zip",
            f"{'d' * 64}  tldr.zip",
            f"{'e' * 64}  tldr-pages.zip",
            f"{'f' * 64}  index.json",
            "",
        ]
    )

    manifest = parse_sumfile(text)

    assert manifest.digests == {"tldr-pages.en.zip": EN_SHA, "tldr-pages.fr.zip": FR_SHA}
    assert manifest.languages() == ["en", "fr"]
    assert manifest.digest_for("fr") == FR_SHA
    assert manifest.digest_for("ko") is None


@pytest.mark.parametrize(
    "text",
    [
        "just-one-field",
        f"{'z' * 64}  tldr-pages.en.zip",
        f"{'a' * 10}  tldr-pages.en.zip",
        f"{EN_SHA}  weird.zip",
    ],
)
def test_parse_sumfile_rejects_malformed_lines(text: str) -> None:
    with pytest.raises(ManifestParseError):
        parse_sumfile(text)


def test_archive_names() -> None:
    assert archive_name("pt_BR") == "tldr-pages.pt_BR.zip"
    assert archive_language("tldr-pages.pt_BR.zip") == "pt_BR"
    assert archive_language("tldr.zip") is None
    assert archive_language("tldr-pages.zip") is None


def test_diff_marks_exactly_the_changed_languages() -> None:
    local = {
        "tldr-pages.en.zip": EN_SHA,
        "tldr-pages.fr.zip": "0" * 64,
        "tldr-pages.de.zip": DE_SHA,
    }

    diff = _manifest().diff(local, ["fr", "de"])

    assert diff.changed == ("fr",)
    assert diff.unchanged == ("de", "en")
    assert diff.unavailable == ()


def test_diff_always_includes_english() -> None:
    diff = _manifest().diff({}, ["fr"])

    assert diff.changed == ("fr", "en")


def test_diff_reports_languages_missing_from_the_manifest() -> None:
    diff = _manifest().diff({"tldr-pages.en.zip": EN_SHA}, ["ko"])

    assert diff.unavailable == ("ko",)
    assert diff.unchanged == ("en",)
    assert diff.changed == ()


def test_diff_refetches_languages_missing_on_disk() -> None:
    local = {"tldr-pages.en.zip": EN_SHA, "tldr-pages.fr.zip": FR_SHA}

    diff = _manifest().diff(local, ["fr"], installed=["en"])

    assert diff.changed == ("fr",)
    assert diff.unchanged == ("en",)
