"""User-facing text rendering."""

from __future__ import annotations

from collections.abc import Sequence
from datetime import timedelta
from pathlib import Path

from .constants import (
    COMMON_PLATFORM,
    ERROR_PREFIX,
    INFO_PREFIX,
    ISSUES_URL,
    PULLS_URL,
    WARNING_PREFIX,
)
from .models import LanguageInventory, PageLocation, SyncReport, SyncStatus
from .timestamps import format_duration

_LANGUAGE_COLUMN_WIDTH = 5


def render_info(message: str) -> str:
    return f"{INFO_PREFIX} {message}"


def render_warning(message: str) -> str:
    return f"{WARNING_PREFIX} {message}"


def render_error(message: str) -> str:
    return f"{ERROR_PREFIX} {message}"


def render_sync_report_lines(report: SyncReport) -> list[str]:
    if not report.performed:
        return []

    lines: list[str] = []
    for outcome in report.outcomes:
        if outcome.status is SyncStatus.UPDATED:
            lines.append(
                render_info(
                    f"'{outcome.archive_name}': {outcome.page_count} pages, "
                    f"{outcome.new_page_count} new"
                )
            )
        elif outcome.status is SyncStatus.FAILED:
            lines.append(render_warning(f"'{outcome.language}' was not updated: {outcome.message}"))

    if report.ok:
        if report.download_count:
            lines.append(
                render_info(
                    f"cache update successful (total: {report.total_pages} pages, "
                    f"{report.total_new_pages} new)."
                )
            )
        else:
            lines.append(render_info("cache is up to date."))
    return lines


def render_other_platform_lines(
    locations: Sequence[PageLocation],
    command: str,
) -> list[str]:
    if not locations:
        return []

    width = max(len(location.platform) for location in locations)
    lines = [render_warning(f"{len(locations)} page(s) found for other platforms:")]
    for index, location in enumerate(locations, start=1):
        lines.append(
            f"{index}. {location.platform:<{width}} "
            f"(tldr --platform {location.platform} {command})"
        )
    return lines


def render_fallback_warning(command: str, shown_platform: str, platform: str) -> str:
    if platform == COMMON_PLATFORM:
        return render_warning(
            f"showing page from platform '{shown_platform}', "
            f"because '{command}' does not exist in 'common'"
        )
    return render_warning(
        f"showing page from platform '{shown_platform}', "
        f"because '{command}' does not exist in '{platform}' and 'common'"
    )


def render_not_found_hint(*, explicit_languages: bool) -> str:
    if explicit_languages:
        return "Try running tldr without --language."
    return (
        "Please run 'tldr --update'.\n\n"
        "If you want to request creation of that page, you can file an issue here:\n"
        f"{ISSUES_URL}\n"
        "or document it yourself and create a pull request here:\n"
        f"{PULLS_URL}"
    )


def render_cache_info_lines(
    *,
    cache_dir: Path,
    age: timedelta | None,
    auto_update: bool,
    max_age: timedelta,
    inventory: Sequence[LanguageInventory],
) -> list[str]:
    if age is None:
        lines = [f"Cache: {cache_dir} (never updated)"]
    else:
        lines = [f"Cache: {cache_dir} (last update: {format_duration(age)} ago)"]

    if not auto_update:
        lines.append("Automatic updates are disabled")
    elif age is None:
        lines.append("Automatic update on next use")
    else:
        lines.append(f"Automatic update in {format_duration(max_age - age)}")

    lines.append("Installed languages:")
    total = 0
    for entry in inventory:
        lines.append(f"{entry.language:<{_LANGUAGE_COLUMN_WIDTH}} : {entry.page_count}")
        total += entry.page_count
    lines.append(f"total : {total} pages")
    return lines
