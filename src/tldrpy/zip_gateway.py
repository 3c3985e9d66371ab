"""Zip verify/extract helpers for page archives."""

from __future__ import annotations

import io
import zipfile
from pathlib import Path, PurePosixPath

from .errors import ExtractError


def verify_zip_integrity(data: bytes, language: str) -> None:
    try:
        with zipfile.ZipFile(io.BytesIO(data), mode="r") as zf:
            corrupt_member = zf.testzip()
            if corrupt_member is not None:
                raise ExtractError(
                    language,
                    f"zip integrity check failed for member: {corrupt_member}",
                )
    except zipfile.BadZipFile as exc:
        raise ExtractError(language, f"invalid zip archive for '{language}'") from exc


def extract_pages_archive(*, data: bytes, target_dir_abs: Path, language: str) -> int:
    """Extract ``<platform>/<page>`` members into target_dir_abs.

    Directory entries and files outside a platform directory are skipped.
    Returns the number of extracted pages.
    """
    try:
        with zipfile.ZipFile(io.BytesIO(data), mode="r") as zf:
            members = zf.infolist()
            _validate_members_safe_for_extract(members, language)
            page_members = [member for member in members if _is_page_member(member)]
            zf.extractall(target_dir_abs, members=page_members)
    except zipfile.BadZipFile as exc:
        raise ExtractError(language, f"invalid zip archive for '{language}'") from exc
    except OSError as exc:
        raise ExtractError(
            language, f"failed to extract the '{language}' archive: {exc}"
        ) from exc

    return len(page_members)


def _is_page_member(member: zipfile.ZipInfo) -> bool:
    if member.is_dir():
        return False
    return "/" in member.filename.replace("\\", "/").strip("/")


def _validate_members_safe_for_extract(members: list[zipfile.ZipInfo], language: str) -> None:
    for member in members:
        entry_name = member.filename
        if entry_name.startswith("/") or entry_name.startswith("\\"):
            raise ExtractError(language, f"Unsafe zip entry path: {entry_name}")

        normalised = entry_name.replace("\\", "/")
        entry_parts = PurePosixPath(normalised).parts
        if ".." in entry_parts or (entry_parts and entry_parts[0].endswith(":")):
            raise ExtractError(language, f"Unsafe zip entry path: {entry_name}")
