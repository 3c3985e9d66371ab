"""On-disk page cache: lookup, staleness and per-language installation."""

from __future__ import annotations

from collections.abc import Iterable, Sequence
from datetime import datetime, timedelta
from pathlib import Path

from .constants import (
    COMMON_PLATFORM,
    ENGLISH,
    GENERATIONS_DIRNAME,
    LOCK_SUFFIX,
    MANIFEST_FILENAME,
    PAGE_SUFFIX,
    PAGES_DIR_PREFIX,
)
from .errors import CacheError, PageNotFoundError, PlatformNotFoundError
from .fs_gateway import (
    count_pages,
    create_staging_directory,
    exclusive_file_lock,
    generations_dir,
    remove_directory_tree,
    remove_path,
    swap_in_language_tree,
)
from .logging_utils import log_event
from .metadata_gateway import (
    read_cache_state,
    record_language_synced,
    record_manifest_checked,
    remove_cache_state,
)
from .models import CacheState, LanguageInventory, PageCandidate, PageLocation
from .timestamps import utc_now
from .zip_gateway import extract_pages_archive, verify_zip_integrity


def lang_dirname(language: str) -> str:
    return f"{PAGES_DIR_PREFIX}{language}"


def page_filename(command: str) -> str:
    return f"{command}{PAGE_SUFFIX}"


class CacheStore:
    """Owns ``<cache>/pages.<lang>/<platform>/<command>.md`` and the manifest file."""

    def __init__(self, cache_dir: Path) -> None:
        self.cache_dir = cache_dir.expanduser()

    @property
    def state_path(self) -> Path:
        return self.cache_dir / MANIFEST_FILENAME

    def language_dir(self, language: str) -> Path:
        return self.cache_dir / lang_dirname(language)

    def english_dir_exists(self) -> bool:
        return self.language_dir(ENGLISH).is_dir()

    def read_state(self) -> CacheState:
        return read_cache_state(self.state_path)

    def installed_languages(self) -> list[str]:
        if not self.cache_dir.is_dir():
            return []
        languages = [
            entry.name[len(PAGES_DIR_PREFIX):]
            for entry in self.cache_dir.iterdir()
            if entry.name.startswith(PAGES_DIR_PREFIX) and entry.is_dir()
        ]
        return sorted(languages)

    def last_synced(self) -> datetime | None:
        return self.read_state().last_synced()

    def age(self, now: datetime | None = None) -> timedelta | None:
        """Time since the most recent successful sync, None when never synced."""
        last = self.last_synced()
        if last is None:
            return None
        current = utc_now() if now is None else now
        return max(current - last, timedelta(0))

    def is_stale(self, max_age: timedelta, now: datetime | None = None) -> bool:
        age = self.age(now)
        return age is None or age >= max_age

    def install_language(
        self,
        *,
        language: str,
        archive: str,
        digest: str,
        data: bytes,
    ) -> tuple[int, int]:
        """Verify, extract and atomically swap in one language's pages.

        The manifest entry is written only after the swap succeeded. Returns
        ``(page_count, new_page_count)``.
        """
        dirname = lang_dirname(language)
        with exclusive_file_lock(generations_dir(self.cache_dir) / f"{dirname}{LOCK_SUFFIX}"):
            previous_count = count_pages(self.language_dir(language))
            verify_zip_integrity(data, language)
            self.cache_dir.mkdir(parents=True, exist_ok=True)
            staging_dir_abs = create_staging_directory(self.cache_dir, dirname, language=language)
            try:
                extract_pages_archive(
                    data=data,
                    target_dir_abs=staging_dir_abs,
                    language=language,
                )
                page_count = count_pages(staging_dir_abs)
                target_abs = swap_in_language_tree(
                    cache_dir_abs=self.cache_dir,
                    lang_dirname=dirname,
                    staging_dir_abs=staging_dir_abs,
                    language=language,
                )
            except BaseException:
                if staging_dir_abs.exists():
                    remove_directory_tree(staging_dir_abs)
                raise

            record_language_synced(
                self.state_path,
                language=language,
                archive=archive,
                digest=digest,
                synced_at=utc_now(),
            )

        new_page_count = max(page_count - previous_count, 0)
        log_event(
            "archive_installed",
            language=language,
            archive=archive,
            page_count=page_count,
            new_page_count=new_page_count,
            target=target_abs,
        )
        return page_count, new_page_count

    def mark_checked(self, now: datetime | None = None) -> None:
        """Restart the staleness clock after a sync that found nothing to fix."""
        self.cache_dir.mkdir(parents=True, exist_ok=True)
        record_manifest_checked(self.state_path, checked_at=utc_now() if now is None else now)

    def lookup(self, command: str, candidates: Sequence[PageCandidate]) -> PageLocation:
        """Return the first existing page among candidates, in order."""
        filename = page_filename(command)
        for candidate in candidates:
            path = self.language_dir(candidate.language) / candidate.platform / filename
            if path.is_file():
                return PageLocation(
                    path=path,
                    language=candidate.language,
                    platform=candidate.platform,
                    command=command,
                )
        raise PageNotFoundError(command, [candidate.as_pair() for candidate in candidates])

    def find_on_other_platforms(
        self,
        command: str,
        languages: Sequence[str],
        exclude: Iterable[str],
    ) -> list[PageLocation]:
        """Pages for command on platforms outside ``exclude``, one per platform."""
        excluded = set(exclude)
        filename = page_filename(command)
        found: list[PageLocation] = []
        for platform in self.platforms():
            if platform in excluded:
                continue
            for language in languages:
                path = self.language_dir(language) / platform / filename
                if path.is_file():
                    found.append(
                        PageLocation(
                            path=path,
                            language=language,
                            platform=platform,
                            command=command,
                        )
                    )
                    break
        return found

    def platforms(self) -> list[str]:
        """Platform directories present in the English pages."""
        english_dir = self.language_dir(ENGLISH)
        try:
            platforms = sorted(entry.name for entry in english_dir.iterdir() if entry.is_dir())
        except OSError as exc:
            raise CacheError(
                f"'{lang_dirname(ENGLISH)}' is missing. Please run 'tldr --update'."
            ) from exc
        if not platforms:
            raise CacheError(
                f"'{lang_dirname(ENGLISH)}' contains no platform directories. "
                "Please run 'tldr --update'."
            )
        return platforms

    def check_platform(self, platform: str) -> None:
        platforms = self.platforms()
        if platform not in platforms:
            raise PlatformNotFoundError(platform, platforms)

    def list_pages(self, platform: str | None = None, language: str = ENGLISH) -> list[str]:
        """Sorted, de-duplicated page names; one platform plus common, or all."""
        if platform is None:
            platforms = self.platforms()
        elif platform == COMMON_PLATFORM:
            platforms = [COMMON_PLATFORM]
        else:
            platforms = [platform, COMMON_PLATFORM]

        names: set[str] = set()
        for name in platforms:
            platform_dir = self.language_dir(language) / name
            if not platform_dir.is_dir():
                # Some translations lack some platform directories.
                continue
            names.update(
                page.name[: -len(PAGE_SUFFIX)]
                for page in platform_dir.iterdir()
                if page.name.endswith(PAGE_SUFFIX)
            )
        return sorted(names)

    def inventory(self) -> list[LanguageInventory]:
        return [
            LanguageInventory(language=language, page_count=count_pages(self.language_dir(language)))
            for language in self.installed_languages()
        ]

    def clean(self) -> int:
        """Remove every language tree and the manifest; returns removed entries."""
        if not self.cache_dir.is_dir():
            log_event("cache_clean", cache_dir=self.cache_dir, removed=0)
            return 0

        removed = 1 if remove_cache_state(self.state_path) else 0
        for entry in sorted(self.cache_dir.iterdir()):
            if entry.name.lstrip(".").startswith(PAGES_DIR_PREFIX):
                remove_path(entry)
                removed += 1
        # Lock files live in the arena, so it goes last.
        if generations_dir(self.cache_dir).exists():
            remove_directory_tree(self.cache_dir / GENERATIONS_DIRNAME)

        log_event("cache_clean", cache_dir=self.cache_dir, removed=removed)
        return removed
