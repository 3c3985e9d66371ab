from __future__ import annotations

import os
import shutil

import pytest

from tldrpy.constants import FALLBACK_TERMINAL_WIDTH
from tldrpy.text_width import display_width, terminal_width


@pytest.mark.parametrize(
    ("text", "width"),
    [
        ("tar", 3),
        ("", 0),
        ("日本語", 6),
        ("e\u0301", 1),
    ],
)
def test_display_width(text: str, width: int) -> None:
    assert display_width(text) == width


def test_terminal_width_reads_the_terminal(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "get_terminal_size", lambda fallback: os.terminal_size((132, 40)))

    assert terminal_width() == 132


def test_zero_column_terminal_uses_the_fallback(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setattr(shutil, "get_terminal_size", lambda fallback: os.terminal_size((0, 24)))

    assert terminal_width() == FALLBACK_TERMINAL_WIDTH
