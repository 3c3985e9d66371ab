"""Terminal display width of Unicode text."""

from __future__ import annotations

import shutil

from rich.cells import cell_len

from .constants import FALLBACK_TERMINAL_WIDTH


def display_width(text: str) -> int:
    """Columns ``text`` occupies; wide East Asian characters count twice."""
    return cell_len(text)


def terminal_width() -> int:
    return shutil.get_terminal_size(fallback=(FALLBACK_TERMINAL_WIDTH, 24)).columns or (
        FALLBACK_TERMINAL_WIDTH
    )
