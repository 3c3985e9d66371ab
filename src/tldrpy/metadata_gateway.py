"""Persisted cache manifest: JSON serialization and parsing."""

from __future__ import annotations

import json
import os
import tempfile
from contextlib import AbstractContextManager
from datetime import datetime
from pathlib import Path
from typing import Any

from .constants import GENERATIONS_DIRNAME, LOCK_SUFFIX
from .errors import CacheError
from .fs_gateway import exclusive_file_lock
from .models import CacheState
from .timestamps import format_utc, parse_utc


def _state_lock(state_path: Path) -> AbstractContextManager[None]:
    """Serialize manifest read-modify-write cycles across processes."""
    return exclusive_file_lock(
        state_path.parent / GENERATIONS_DIRNAME / f"{state_path.name}{LOCK_SUFFIX}"
    )


def read_cache_state(state_path: Path) -> CacheState:
    """Read the persisted manifest; a missing file is an empty state."""
    if not state_path.exists():
        return CacheState()

    try:
        raw_text = state_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CacheError(f"Failed to read cache manifest: {state_path}") from exc

    try:
        payload = json.loads(raw_text)
    except json.JSONDecodeError as exc:
        raise CacheError(f"Invalid cache manifest JSON: {state_path}") from exc

    if not isinstance(payload, dict):
        raise CacheError(f"Cache manifest JSON must be an object: {state_path}")

    archives = _get_str_mapping(payload, "archives", state_path)
    synced_raw = _get_str_mapping(payload, "synced_utc", state_path)
    checked_raw = payload.get("checked_utc")
    if checked_raw is not None and not isinstance(checked_raw, str):
        raise CacheError(f"Cache manifest key 'checked_utc' must be a string: {state_path}")
    try:
        synced_utc = {language: parse_utc(value) for language, value in synced_raw.items()}
        checked_utc = parse_utc(checked_raw) if checked_raw else None
    except ValueError as exc:
        raise CacheError(f"Invalid timestamp in cache manifest: {state_path}") from exc

    return CacheState(archives=archives, synced_utc=synced_utc, checked_utc=checked_utc)


def write_cache_state(state_path: Path, state: CacheState) -> None:
    payload: dict[str, Any] = {
        "archives": dict(sorted(state.archives.items())),
        "synced_utc": {
            language: format_utc(value)
            for language, value in sorted(state.synced_utc.items())
        },
    }
    if state.checked_utc is not None:
        payload["checked_utc"] = format_utc(state.checked_utc)
    try:
        _atomic_write_json(state_path, payload)
    except OSError as exc:
        raise CacheError(f"Failed to write cache manifest: {state_path}") from exc


def record_language_synced(
    state_path: Path,
    *,
    language: str,
    archive: str,
    digest: str,
    synced_at: datetime,
) -> CacheState:
    """Commit one language's digest and sync time without touching the others."""
    with _state_lock(state_path):
        current = read_cache_state(state_path)
        updated = CacheState(
            archives={**current.archives, archive: digest},
            synced_utc={**current.synced_utc, language: synced_at},
            checked_utc=current.checked_utc,
        )
        write_cache_state(state_path, updated)
        return updated


def record_manifest_checked(state_path: Path, *, checked_at: datetime) -> CacheState:
    """Note that every requested language matched the remote manifest."""
    with _state_lock(state_path):
        current = read_cache_state(state_path)
        updated = CacheState(
            archives=current.archives,
            synced_utc=current.synced_utc,
            checked_utc=checked_at,
        )
        write_cache_state(state_path, updated)
        return updated


def remove_cache_state(state_path: Path) -> bool:
    with _state_lock(state_path):
        try:
            state_path.unlink()
        except FileNotFoundError:
            return False
        except OSError as exc:
            raise CacheError(f"Failed to remove cache manifest: {state_path}") from exc
        return True


def _atomic_write_json(path: Path, payload: Any) -> None:
    """Write JSON via a temp file and atomically replace the destination."""
    path.parent.mkdir(parents=True, exist_ok=True)

    temp_path: Path | None = None
    try:
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=path.parent,
            prefix=f".{path.name}.",
            suffix=".tmp",
            delete=False,
        ) as temp_file:
            temp_path = Path(temp_file.name)
            json.dump(payload, temp_file, indent=2, ensure_ascii=False)
            temp_file.write("\n")
            temp_file.flush()
            os.fsync(temp_file.fileno())

        os.replace(temp_path, path)
    except Exception:
        if temp_path is not None:
            temp_path.unlink(missing_ok=True)
        raise


def _get_str_mapping(payload: dict[str, Any], key: str, state_path: Path) -> dict[str, str]:
    value = payload.get(key, {})
    if not isinstance(value, dict):
        raise CacheError(f"Cache manifest key '{key}' must be an object: {state_path}")
    if not all(isinstance(k, str) and isinstance(v, str) for k, v in value.items()):
        raise CacheError(
            f"Cache manifest key '{key}' must map strings to strings: {state_path}"
        )
    return dict(value)
