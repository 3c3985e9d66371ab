"""Page request flow: cache readiness, auto-update, lookup and rendering."""

from __future__ import annotations

import logging
from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

from .cache_store import CacheStore
from .config import Config
from .constants import COMMON_PLATFORM
from .errors import (
    CacheError,
    OfflineEmptyCacheError,
    PageNotFoundError,
    PageSyntaxError,
    TldrError,
)
from .fetcher import ArchiveFetcher
from .languages import build_candidates, resolve_languages, resolve_platform
from .logging_utils import log_event
from .models import LanguageSelection, PageLocation, Segment, SyncPolicy, SyncReport
from .parser import parse_page, read_page_text
from .presenters import (
    render_cache_info_lines,
    render_fallback_warning,
    render_info,
    render_not_found_hint,
    render_other_platform_lines,
    render_sync_report_lines,
    render_warning,
)
from .renderer import Renderer
from .sync_service import SyncEngine

FetcherFactory = Callable[[str], ArchiveFetcher]


def normalize_page_name(words: Sequence[str]) -> str:
    """Join command words with ``-`` and lower-case them: ``git checkout``."""
    return "-".join(word.strip() for word in words if word.strip()).lower()


def _discard(_line: str) -> None:
    return None


class PageService:
    """Serves pages from the cache, keeping it up to date on the way.

    Status lines go through ``notify`` so the caller decides where they end
    up; page output is returned as segments.
    """

    def __init__(
        self,
        config: Config,
        *,
        fetcher_factory: FetcherFactory | None = None,
        notify: Callable[[str], None] = _discard,
        environ: Mapping[str, str] | None = None,
        sys_platform: str | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.config = config
        self.store = CacheStore(config.cache.dir)
        self._fetcher_factory = fetcher_factory or ArchiveFetcher
        self._notify = notify
        self._environ = environ
        self._sys_platform = sys_platform
        self._renderer = renderer

    @property
    def renderer(self) -> Renderer:
        if self._renderer is None:
            self._renderer = Renderer(self.config)
        return self._renderer

    def select_languages(self, override: Sequence[str] | None = None) -> LanguageSelection:
        return resolve_languages(
            override=override,
            configured=self.config.cache.languages,
            environ=self._environ,
        )

    def sync(
        self,
        languages: Sequence[str],
        *,
        force: bool,
        offline: bool = False,
    ) -> SyncReport:
        policy = SyncPolicy(
            max_age=self.config.cache_max_age,
            force=force,
            offline=offline,
            max_workers=self.config.cache.max_workers,
        )
        with self._fetcher_factory(self.config.cache.mirror) as fetcher:
            report = SyncEngine(self.store, fetcher).sync(languages, policy)
        for line in render_sync_report_lines(report):
            self._notify(line)
        return report

    def update(self, languages_override: Sequence[str] | None = None) -> SyncReport:
        """Forced sync; any failed language makes this raise."""
        selection = self.select_languages(languages_override)
        report = self.sync(selection.languages, force=True)
        report.raise_for_failures()
        return report

    def ensure_cache(self, *, offline: bool = False) -> None:
        """Download the pages when the cache has no English pages yet."""
        if self.store.english_dir_exists():
            return
        if offline:
            raise OfflineEmptyCacheError(self.store.cache_dir)

        self._notify(render_info("cache is empty, downloading..."))
        report = self.sync(self.select_languages().languages, force=True)
        if not self.store.english_dir_exists():
            report.raise_for_failures()
            raise CacheError(f"no English pages were installed in '{self.store.cache_dir}'.")

    def auto_update(self, languages: Sequence[str], *, offline: bool = False) -> SyncReport | None:
        """Refresh a stale cache; failures are reported, never raised."""
        if not self.config.cache.auto_update:
            return None
        if not self.store.is_stale(self.config.cache_max_age):
            return None
        if offline:
            self._notify(render_warning("cache is stale. Run tldr without --offline to update."))
            return None

        self._notify(render_info("cache is stale, updating..."))
        return self.sync(languages, force=False)

    def locate(
        self,
        command: str,
        selection: LanguageSelection,
        platform: str,
    ) -> PageLocation:
        """Find the page for command, falling back to other platforms."""
        candidates = build_candidates(selection.languages, platform)
        excluded = {platform, COMMON_PLATFORM}
        try:
            location = self.store.lookup(command, candidates)
        except PageNotFoundError as exc:
            others = self.store.find_on_other_platforms(command, selection.languages, excluded)
            if not others:
                log_event(
                    "page_lookup",
                    command=command,
                    platform=platform,
                    languages=list(selection.languages),
                    found=None,
                )
                raise PageNotFoundError(
                    command,
                    exc.candidates,
                    hint=render_not_found_hint(explicit_languages=selection.explicit),
                ) from exc
            location = others[0]
            self._notify(render_fallback_warning(command, location.platform, platform))
            hints = others[1:]
        else:
            hints = self.store.find_on_other_platforms(command, selection.languages, excluded)

        for line in render_other_platform_lines(hints, command):
            self._notify(line)
        log_event(
            "page_lookup",
            command=command,
            platform=platform,
            languages=list(selection.languages),
            found=str(location.path),
        )
        return location

    def show_page(
        self,
        words: Sequence[str],
        emit: Callable[[list[Segment]], None],
        *,
        platform: str | None = None,
        languages: Sequence[str] | None = None,
        offline: bool = False,
    ) -> PageLocation:
        """Look up, render and emit a page, updating the cache when stale.

        With ``defer_auto_update`` the page is emitted from the current cache
        and the update runs afterwards.
        """
        command = normalize_page_name(words)
        if not command:
            raise TldrError("page not specified")

        self.ensure_cache(offline=offline)
        resolved_platform = resolve_platform(platform, self._sys_platform)
        if platform:
            self.store.check_platform(resolved_platform)

        selection = self.select_languages(languages)
        sync_languages = self.select_languages().languages
        deferred = self.config.cache.defer_auto_update and not offline
        if not deferred:
            self.auto_update(sync_languages, offline=offline)

        location = self.locate(command, selection, resolved_platform)
        emit(self.render_file(location.path, platform=location.platform))

        if deferred:
            self.auto_update(sync_languages)
        return location

    def render_file(self, path: Path, *, platform: str | None = None) -> list[Segment]:
        text = read_page_text(path)
        if self.config.output.raw_markdown:
            return self.renderer.render_raw(text)
        try:
            page = parse_page(text, source=str(path), platform=platform)
        except PageSyntaxError as exc:
            log_event(
                "page_render_error",
                level=logging.WARNING,
                source=path,
                issue_count=len(exc.issues),
            )
            raise
        return self.renderer.render(page)

    def list_pages(
        self,
        *,
        platform: str | None = None,
        list_all: bool = False,
        offline: bool = False,
    ) -> list[str]:
        self.ensure_cache(offline=offline)
        if list_all:
            return self.store.list_pages()
        resolved = resolve_platform(platform, self._sys_platform)
        if platform:
            self.store.check_platform(resolved)
        return self.store.list_pages(resolved)

    def list_platforms(self, *, offline: bool = False) -> list[str]:
        self.ensure_cache(offline=offline)
        return self.store.platforms()

    def list_languages(self, *, offline: bool = False) -> list[str]:
        self.ensure_cache(offline=offline)
        return self.store.installed_languages()

    def info_lines(self) -> list[str]:
        return render_cache_info_lines(
            cache_dir=self.store.cache_dir,
            age=self.store.age(),
            auto_update=self.config.cache.auto_update,
            max_age=self.config.cache_max_age,
            inventory=self.store.inventory(),
        )

    def clean(self) -> int:
        if not self.store.cache_dir.is_dir():
            self._notify(render_info("cache does not exist, not cleaning."))
            return 0
        self._notify(render_info("cleaning the cache directory..."))
        return self.store.clean()
