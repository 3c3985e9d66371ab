"""Filesystem helpers for the page cache: staging, swapping and removal.

Each language lives in its own generation directory under ``.generations``.
On POSIX the visible ``pages.<lang>`` entry is a symlink that is swapped with
a single ``os.replace``, so a reader resolves either the old or the new tree.
The generation that was current before a swap is kept until the next swap,
so a reader that resolved the old link can still finish reading from it.
Writers of one language serialize on a lock file, across processes too.
"""

from __future__ import annotations

import os
import shutil
import stat
import sys
import tempfile
import uuid
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from pathlib import Path

if sys.platform == "win32":
    import msvcrt
else:
    import fcntl

from .constants import GENERATIONS_DIRNAME, PAGE_SUFFIX, STAGING_PREFIX
from .errors import CacheError, ExtractError


def _force_remove_readonly(
    func: Callable[..., object],
    path: str,
    _exc_info: object,
) -> None:
    """onerror handler for shutil.rmtree: clear read-only bit and retry on Windows."""
    if os.name == "nt":
        os.chmod(path, stat.S_IWRITE)
        func(path)
    else:
        raise


def remove_directory_tree(directory_abs: Path) -> None:
    if directory_abs.is_symlink():
        directory_abs.unlink()
        return
    try:
        shutil.rmtree(directory_abs, onerror=_force_remove_readonly)
    except FileNotFoundError:
        return
    except OSError as exc:
        raise CacheError(f"Failed to remove directory: {directory_abs}") from exc


def remove_path(path_abs: Path) -> None:
    if path_abs.is_symlink() or path_abs.is_file():
        path_abs.unlink(missing_ok=True)
    elif path_abs.is_dir():
        remove_directory_tree(path_abs)


def generations_dir(cache_dir_abs: Path) -> Path:
    return cache_dir_abs / GENERATIONS_DIRNAME


@contextmanager
def exclusive_file_lock(lock_path: Path) -> Iterator[None]:
    """Hold an exclusive OS-level lock on ``lock_path`` for the duration of the block.

    The lock belongs to the open file, so it also excludes other threads that
    open the same path.
    """
    try:
        lock_path.parent.mkdir(parents=True, exist_ok=True)
        fd = os.open(lock_path, os.O_CREAT | os.O_RDWR, 0o600)
    except OSError as exc:
        raise CacheError(f"Failed to open lock file: {lock_path}") from exc
    try:
        try:
            _lock_fd(fd)
        except OSError as exc:
            raise CacheError(f"Failed to lock: {lock_path}") from exc
        try:
            yield
        finally:
            _unlock_fd(fd)
    finally:
        os.close(fd)


def _lock_fd(fd: int) -> None:
    if sys.platform == "win32":
        # LK_LOCK gives up with OSError after about ten seconds.
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_LOCK, 1)
        return
    fcntl.flock(fd, fcntl.LOCK_EX)


def _unlock_fd(fd: int) -> None:
    if sys.platform == "win32":
        os.lseek(fd, 0, os.SEEK_SET)
        msvcrt.locking(fd, msvcrt.LK_UNLCK, 1)
        return
    fcntl.flock(fd, fcntl.LOCK_UN)


def create_staging_directory(cache_dir_abs: Path, lang_dirname: str, *, language: str) -> Path:
    parent = generations_dir(cache_dir_abs)
    try:
        parent.mkdir(parents=True, exist_ok=True)
        return Path(tempfile.mkdtemp(prefix=f"{STAGING_PREFIX}{lang_dirname}-", dir=parent))
    except OSError as exc:
        raise ExtractError(language, f"Failed to create staging directory in {parent}") from exc


def count_pages(root_dir_abs: Path) -> int:
    """Count page files in ``<root>/<platform>/``; a missing root has none."""
    if not root_dir_abs.is_dir():
        return 0
    count = 0
    try:
        for platform_dir in root_dir_abs.iterdir():
            if not platform_dir.is_dir():
                continue
            count += sum(
                1
                for page in platform_dir.iterdir()
                if page.is_file() and page.name.endswith(PAGE_SUFFIX)
            )
    except OSError as exc:
        raise CacheError(f"Failed to read directory: {root_dir_abs}") from exc
    return count


def swap_in_language_tree(
    *,
    cache_dir_abs: Path,
    lang_dirname: str,
    staging_dir_abs: Path,
    language: str,
) -> Path:
    """Promote a fully extracted staging tree to ``<cache>/<lang_dirname>``."""
    target_abs = cache_dir_abs / lang_dirname
    if os.name == "nt":
        _rename_swap(target_abs, staging_dir_abs, language)
        return target_abs

    generation_abs = generations_dir(cache_dir_abs) / f"{lang_dirname}-{uuid.uuid4().hex[:12]}"
    try:
        os.replace(staging_dir_abs, generation_abs)
    except OSError as exc:
        raise ExtractError(
            language, f"Failed to promote staging directory: {staging_dir_abs}"
        ) from exc

    previous_abs = _current_generation(target_abs)
    if target_abs.exists() and not target_abs.is_symlink():
        # A plain directory from an older layout: move it into the arena first.
        legacy_abs = generations_dir(cache_dir_abs) / f"{lang_dirname}-legacy-{uuid.uuid4().hex[:8]}"
        os.replace(target_abs, legacy_abs)
        previous_abs = legacy_abs

    link_tmp_abs = cache_dir_abs / f".{lang_dirname}.{uuid.uuid4().hex[:8]}.link"
    try:
        link_tmp_abs.symlink_to(
            Path(GENERATIONS_DIRNAME) / generation_abs.name,
            target_is_directory=True,
        )
        os.replace(link_tmp_abs, target_abs)
    except OSError as exc:
        link_tmp_abs.unlink(missing_ok=True)
        remove_directory_tree(generation_abs)
        raise ExtractError(language, f"Failed to swap in new pages: {target_abs}") from exc

    _discard_old_generations(
        cache_dir_abs=cache_dir_abs,
        lang_dirname=lang_dirname,
        keep={generation_abs.name, previous_abs.name if previous_abs else ""},
    )
    return target_abs


def _current_generation(target_abs: Path) -> Path | None:
    if not target_abs.is_symlink():
        return None
    return target_abs.parent / os.readlink(target_abs)


def _discard_old_generations(*, cache_dir_abs: Path, lang_dirname: str, keep: set[str]) -> None:
    arena = generations_dir(cache_dir_abs)
    for candidate in arena.iterdir():
        if candidate.name in keep or not candidate.name.startswith(f"{lang_dirname}-"):
            continue
        remove_directory_tree(candidate)


def _rename_swap(target_abs: Path, staging_dir_abs: Path, language: str) -> None:
    aside_abs = target_abs.with_name(f".{target_abs.name}.old-{uuid.uuid4().hex[:8]}")
    had_target = target_abs.exists()
    try:
        if had_target:
            os.replace(target_abs, aside_abs)
        os.replace(staging_dir_abs, target_abs)
    except OSError as exc:
        if had_target and aside_abs.exists() and not target_abs.exists():
            os.replace(aside_abs, target_abs)
        raise ExtractError(language, f"Failed to swap in new pages: {target_abs}") from exc
    if had_target:
        remove_directory_tree(aside_abs)
