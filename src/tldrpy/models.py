"""Dataclasses shared across tldrpy layers."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import StrEnum
from pathlib import Path

from .errors import SyncFailedError
from .styles import StyleDescriptor


@dataclass(frozen=True)
class PageCandidate:
    language: str
    platform: str

    def as_pair(self) -> tuple[str, str]:
        return (self.language, self.platform)


@dataclass(frozen=True)
class LanguageSelection:
    languages: tuple[str, ...]
    explicit: bool


@dataclass(frozen=True)
class PageLocation:
    path: Path
    language: str
    platform: str
    command: str


@dataclass(frozen=True)
class SyncPolicy:
    max_age: timedelta
    force: bool = False
    offline: bool = False
    max_workers: int = 1


class SyncStatus(StrEnum):
    UPDATED = "updated"
    UNCHANGED = "unchanged"
    SKIPPED = "skipped"
    FAILED = "failed"


@dataclass(frozen=True)
class LanguageOutcome:
    language: str
    status: SyncStatus
    archive_name: str | None = None
    page_count: int = 0
    new_page_count: int = 0
    error: Exception | None = None

    @property
    def message(self) -> str:
        return "" if self.error is None else str(self.error)


@dataclass(frozen=True)
class SyncReport:
    outcomes: tuple[LanguageOutcome, ...] = ()
    performed: bool = False
    skip_reason: str | None = None
    download_count: int = 0

    @property
    def updated(self) -> list[LanguageOutcome]:
        return [o for o in self.outcomes if o.status is SyncStatus.UPDATED]

    @property
    def failures(self) -> list[LanguageOutcome]:
        return [o for o in self.outcomes if o.status is SyncStatus.FAILED]

    @property
    def ok(self) -> bool:
        return not self.failures

    @property
    def total_pages(self) -> int:
        return sum(o.page_count for o in self.updated)

    @property
    def total_new_pages(self) -> int:
        return sum(o.new_page_count for o in self.updated)

    def raise_for_failures(self) -> None:
        failures = self.failures
        if not failures:
            return
        if len(failures) == 1 and failures[0].error is not None:
            raise failures[0].error
        details = "\n".join(f"  {o.language}: {o.message}" for o in failures)
        raise SyncFailedError(f"cache update failed for {len(failures)} language(s):\n{details}")


@dataclass(frozen=True)
class CacheState:
    """Persisted manifest: archive digests and per-language sync times."""

    archives: dict[str, str] = field(default_factory=dict)
    synced_utc: dict[str, datetime] = field(default_factory=dict)
    checked_utc: datetime | None = None

    def last_synced(self) -> datetime | None:
        """Most recent language sync or clean manifest check."""
        moments = list(self.synced_utc.values())
        if self.checked_utc is not None:
            moments.append(self.checked_utc)
        return max(moments, default=None)


@dataclass(frozen=True)
class LanguageInventory:
    language: str
    page_count: int


class LineKind(StrEnum):
    TITLE = "title"
    DESCRIPTION = "description"
    BULLET = "bullet"
    EXAMPLE = "example"
    BLANK = "blank"


@dataclass(frozen=True)
class ParsedLine:
    kind: LineKind
    text: str
    line_number: int


@dataclass(frozen=True)
class ParsedPage:
    source: str
    lines: tuple[ParsedLine, ...]
    platform: str | None = None


@dataclass(frozen=True)
class Segment:
    """A run of output text; ``style`` is ``None`` for unstyled text."""

    text: str
    style: StyleDescriptor | None = None

    @property
    def is_newline(self) -> bool:
        return self.text == "\n"
