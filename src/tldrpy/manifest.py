"""Checksum manifest parsing and diffing."""

from __future__ import annotations

import re
from collections.abc import Collection, Iterable, Mapping
from dataclasses import dataclass, field
from pathlib import PurePosixPath

from .constants import ARCHIVE_PREFIX, ARCHIVE_SUFFIX, BUNDLE_ARCHIVE_NAMES, ENGLISH
from .errors import ManifestParseError
from .languages import dedup

_SHA256_RE = re.compile(r"^[0-9a-fA-F]{64}$")


def archive_name(language: str) -> str:
    return f"{ARCHIVE_PREFIX}{language}{ARCHIVE_SUFFIX}"


def archive_language(name: str) -> str | None:
    """Return the language of a per-language archive name, else None."""
    if name in BUNDLE_ARCHIVE_NAMES:
        return None
    if not (name.startswith(ARCHIVE_PREFIX) and name.endswith(ARCHIVE_SUFFIX)):
        return None
    language = name[len(ARCHIVE_PREFIX) : -len(ARCHIVE_SUFFIX)]
    if not language or "." in language:
        return None
    return language


@dataclass(frozen=True)
class ManifestDiff:
    changed: tuple[str, ...]
    unchanged: tuple[str, ...]
    unavailable: tuple[str, ...]


@dataclass(frozen=True)
class ChecksumManifest:
    """Archive file name to claimed SHA256 hex digest."""

    digests: Mapping[str, str] = field(default_factory=dict)

    def __len__(self) -> int:
        return len(self.digests)

    def digest_for(self, language: str) -> str | None:
        return self.digests.get(archive_name(language))

    def languages(self) -> list[str]:
        languages = [archive_language(name) for name in self.digests]
        return sorted(language for language in languages if language is not None)

    def diff(
        self,
        local: Mapping[str, str],
        languages: Iterable[str],
        installed: Collection[str] | None = None,
    ) -> ManifestDiff:
        """Split the requested languages by whether their archive must be fetched.

        A language is changed when the remote digest differs from the local
        one or the local one is absent. When ``installed`` is given, a
        language whose pages are not on disk counts as changed too. English is
        always part of the request.
        """
        changed: list[str] = []
        unchanged: list[str] = []
        unavailable: list[str] = []

        for language in dedup([*languages, ENGLISH]):
            name = archive_name(language)
            remote_digest = self.digests.get(name)
            if remote_digest is None:
                unavailable.append(language)
                continue
            local_digest = local.get(name)
            missing_on_disk = installed is not None and language not in installed
            if local_digest is None or local_digest.lower() != remote_digest.lower():
                changed.append(language)
            elif missing_on_disk:
                changed.append(language)
            else:
                unchanged.append(language)

        return ManifestDiff(
            changed=tuple(changed),
            unchanged=tuple(unchanged),
            unavailable=tuple(unavailable),
        )


def parse_sumfile(text: str) -> ChecksumManifest:
    """Parse ``<sha256> <path>`` lines into a manifest of per-language archives.

    Non-zip entries and the full bundles are skipped. Blank lines are ignored.
    """
    digests: dict[str, str] = {}
    for line_number, line in enumerate(text.splitlines(), start=1):
        if not line.strip():
            continue
        parts = line.split()
        if len(parts) < 2:
            raise ManifestParseError(
                f"failed to parse the checksum file (line {line_number}): {line!r}"
            )
        digest, raw_path = parts[0], parts[1]
        name = PurePosixPath(raw_path.lstrip("*")).name
        if not name.endswith(ARCHIVE_SUFFIX) or name in BUNDLE_ARCHIVE_NAMES:
            continue
        if archive_language(name) is None:
            raise ManifestParseError(
                f"failed to parse the checksum file (line {line_number}): {line!r}"
            )
        if not _SHA256_RE.match(digest):
            raise ManifestParseError(
                f"invalid SHA256 digest in the checksum file (line {line_number}): {digest!r}"
            )
        digests[name] = digest.lower()

    return ChecksumManifest(digests=digests)
