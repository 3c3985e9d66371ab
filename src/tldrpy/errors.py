"""Typed exceptions for tldrpy.

Each error carries the process exit status the CLI reports for it.
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

EXIT_OK = 0
EXIT_FAILURE = 1
EXIT_INVALID_ARGUMENTS = 2
EXIT_CONFIG = 3
EXIT_UPDATE = 4
EXIT_PAGE_SYNTAX = 5


class TldrError(Exception):
    """Base exception for tldrpy failures."""

    exit_code = EXIT_FAILURE


class ConfigError(TldrError):
    """Raised when the configuration file cannot be read or validated."""

    exit_code = EXIT_CONFIG


class UpdateError(TldrError):
    """Base class for cache update failures."""

    exit_code = EXIT_UPDATE


class NetworkError(UpdateError):
    def __init__(self, language: str | None, message: str) -> None:
        self.language = language
        super().__init__(message)


class ManifestParseError(UpdateError):
    """Raised when the remote checksum file is malformed."""


class ChecksumMismatchError(UpdateError):
    def __init__(self, language: str, expected: str, actual: str) -> None:
        self.language = language
        self.expected = expected
        self.actual = actual
        super().__init__(
            f"SHA256 sum mismatch for '{language}'!\n"
            f"expected : {expected}\n"
            f"got      : {actual}"
        )


class ExtractError(UpdateError):
    def __init__(self, language: str | None, message: str) -> None:
        self.language = language
        super().__init__(message)


class SyncFailedError(UpdateError):
    """Raised when a sync finished with at least one failed language."""


class CacheError(TldrError):
    """Raised for cache directory failures outside of a sync."""


@dataclass(frozen=True)
class SyntaxIssue:
    line_number: int
    line: str
    reason: str


class PageSyntaxError(TldrError):
    exit_code = EXIT_PAGE_SYNTAX

    def __init__(self, source: str, issues: Sequence[SyntaxIssue]) -> None:
        self.source = source
        self.issues = list(issues)
        details = "\n".join(
            f"  line {issue.line_number}: {issue.reason}\n      {issue.line}"
            for issue in self.issues
        )
        super().__init__(f"'{source}' is not a valid tldr page:\n{details}")


class PageNotFoundError(TldrError):
    def __init__(
        self,
        command: str,
        candidates: Sequence[tuple[str, str]],
        hint: str | None = None,
    ) -> None:
        self.command = command
        self.candidates = list(candidates)
        self.hint = hint
        tried = ", ".join(f"{language}/{platform}" for language, platform in candidates)
        message = f"page '{command}' not found (searched: {tried or 'nothing'})."
        if hint:
            message = f"{message} {hint}"
        super().__init__(message)


class OfflineEmptyCacheError(TldrError):
    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir
        super().__init__(
            f"cache is empty ({cache_dir}). Run tldr without --offline to download pages."
        )


class PlatformNotFoundError(TldrError):
    def __init__(self, platform: str, available: Sequence[str]) -> None:
        self.platform = platform
        self.available = list(available)
        super().__init__(
            f"platform '{platform}' does not exist. "
            f"Possible values: {', '.join(self.available)}."
        )
