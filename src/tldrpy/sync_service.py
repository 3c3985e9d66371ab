"""Checksum-diff cache synchronization."""

from __future__ import annotations

import logging
import threading
import time
from collections.abc import Sequence
from concurrent.futures import ThreadPoolExecutor
from datetime import datetime

from .cache_store import CacheStore
from .constants import ENGLISH
from .errors import TldrError, UpdateError
from .fetcher import ArchiveFetcher
from .languages import dedup
from .logging_utils import elapsed_ms, log_event
from .manifest import archive_name
from .models import LanguageOutcome, SyncPolicy, SyncReport, SyncStatus


class SyncCancelledError(UpdateError):
    """Raised inside a worker when the sync was interrupted before its swap."""


class SyncEngine:
    """Brings the requested languages in line with the remote manifest.

    Only archives whose remote digest differs from the persisted one are
    downloaded. Each language is verified, extracted and swapped on its own,
    so one failing language never affects the others.
    """

    def __init__(self, store: CacheStore, fetcher: ArchiveFetcher) -> None:
        self.store = store
        self.fetcher = fetcher
        self._cancelled = threading.Event()

    def sync(
        self,
        languages: Sequence[str],
        policy: SyncPolicy,
        now: datetime | None = None,
    ) -> SyncReport:
        requested = dedup([*languages, ENGLISH])

        if policy.offline:
            log_event("sync_skip", reason="offline")
            return SyncReport(skip_reason="offline")

        if not policy.force:
            age = self.store.age(now)
            if age is not None and age < policy.max_age:
                log_event(
                    "sync_skip",
                    reason="fresh",
                    cache_age_sec=int(age.total_seconds()),
                    max_age_sec=int(policy.max_age.total_seconds()),
                )
                return SyncReport(skip_reason="fresh")

        started = time.monotonic()
        log_event(
            "sync_start",
            languages=requested,
            force=policy.force,
            offline=policy.offline,
            cache_dir=self.store.cache_dir,
        )

        try:
            manifest = self.fetcher.fetch_manifest()
        except UpdateError as exc:
            outcomes = tuple(
                LanguageOutcome(language=language, status=SyncStatus.FAILED, error=exc)
                for language in requested
            )
            report = SyncReport(outcomes=outcomes, performed=True)
            self._log_finish(report, started)
            return report

        state = self.store.read_state()
        diff = manifest.diff(
            state.archives,
            requested,
            installed=self.store.installed_languages(),
        )

        outcomes_by_language: dict[str, LanguageOutcome] = {}
        for language in diff.unchanged:
            outcomes_by_language[language] = LanguageOutcome(
                language=language,
                status=SyncStatus.UNCHANGED,
                archive_name=archive_name(language),
            )
        for language in diff.unavailable:
            outcomes_by_language[language] = LanguageOutcome(
                language=language,
                status=SyncStatus.SKIPPED,
            )

        changed = list(diff.changed)
        self._cancelled.clear()
        if changed:
            workers = max(1, min(policy.max_workers, len(changed)))
            if workers == 1:
                for language in changed:
                    outcomes_by_language[language] = self._sync_language(
                        language, manifest.digest_for(language) or ""
                    )
            else:
                executor = ThreadPoolExecutor(max_workers=workers, thread_name_prefix="tldr-sync")
                try:
                    futures = {
                        language: executor.submit(
                            self._sync_language,
                            language,
                            manifest.digest_for(language) or "",
                        )
                        for language in changed
                    }
                    for language, future in futures.items():
                        outcomes_by_language[language] = future.result()
                except BaseException:
                    self._cancelled.set()
                    executor.shutdown(wait=True, cancel_futures=True)
                    raise
                executor.shutdown(wait=True)

        report = SyncReport(
            outcomes=tuple(outcomes_by_language[language] for language in requested),
            performed=True,
            download_count=len(changed),
        )
        if report.ok:
            self.store.mark_checked(now)
        self._log_finish(report, started)
        return report

    def _sync_language(self, language: str, digest: str) -> LanguageOutcome:
        name = archive_name(language)
        try:
            self._raise_if_cancelled(language)
            data = self.fetcher.fetch_verified_archive(language, digest)
            self._raise_if_cancelled(language)
            page_count, new_page_count = self.store.install_language(
                language=language,
                archive=name,
                digest=digest,
                data=data,
            )
        except TldrError as exc:
            log_event(
                "archive_rejected",
                level=logging.WARNING,
                language=language,
                archive=name,
                expected=getattr(exc, "expected", None),
                actual=getattr(exc, "actual", None),
                error_type=type(exc).__name__,
                error=str(exc),
            )
            return LanguageOutcome(
                language=language,
                status=SyncStatus.FAILED,
                archive_name=name,
                error=exc,
            )

        return LanguageOutcome(
            language=language,
            status=SyncStatus.UPDATED,
            archive_name=name,
            page_count=page_count,
            new_page_count=new_page_count,
        )

    def _raise_if_cancelled(self, language: str) -> None:
        if self._cancelled.is_set():
            raise SyncCancelledError(f"update of '{language}' was cancelled")

    @staticmethod
    def _log_finish(report: SyncReport, started: float) -> None:
        counts = {status: 0 for status in SyncStatus}
        for outcome in report.outcomes:
            counts[outcome.status] += 1
        log_event(
            "sync_finish",
            level=logging.INFO if report.ok else logging.WARNING,
            updated=counts[SyncStatus.UPDATED],
            unchanged=counts[SyncStatus.UNCHANGED],
            skipped=counts[SyncStatus.SKIPPED],
            failed=counts[SyncStatus.FAILED],
            downloads=report.download_count,
            elapsed_ms=elapsed_ms(started, time.monotonic()),
        )
