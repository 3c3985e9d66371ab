"""Pytest configuration and fixtures for tldrpy tests."""

from __future__ import annotations

import hashlib
import io
import logging
import zipfile
from collections.abc import Iterator, Mapping
from pathlib import Path

import httpx
import pytest

from tldrpy.config import Config, parse_config
from tldrpy.fetcher import ArchiveFetcher

MIRROR = "https://mirror.test/tldr"

GIT_PAGE = """# git

> Distributed version control system.
> More information: <https://git-scm.com>.

- Check the Git version:

`git --version`

- Clone a repository:

`git clone {{https://example.com/repo.git}}`
"""

TAR_PAGE = """# tar

> Archiving utility.

- Extract an archive verbosely:

`tar {{[-x|--extract]}} {{[-v|--verbose]}} {{[-f|--file]}} {{path/to/file.tar}}`
"""


def build_zip(pages: Mapping[str, str]) -> bytes:
    buffer = io.BytesIO()
    with zipfile.ZipFile(buffer, mode="w", compression=zipfile.ZIP_DEFLATED) as zf:
        for name, text in pages.items():
            zf.writestr(name, text)
    return buffer.getvalue()


def sha256_of(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_sumfile(archives: Mapping[str, bytes]) -> str:
    lines = [f"{sha256_of(data)}  {name}" for name, data in archives.items()]
    # Full bundles are listed by the real mirror as well.
    lines.append(f"{'0' * 64}  tldr.zip")
    return "\n".join(lines) + "\n"


class FakeMirror:
    """In-memory mirror served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.archives: dict[str, bytes] = {}
        self.overrides: dict[str, bytes] = {}
        self.failing: set[str] = set()
        self.requests: list[str] = []

    def publish(self, language: str, pages: Mapping[str, str]) -> bytes:
        data = build_zip(pages)
        self.archives[f"tldr-pages.{language}.zip"] = data
        return data

    def serve_instead(self, language: str, data: bytes) -> None:
        """Serve data for language while the checksum file keeps the published digest."""
        self.overrides[f"tldr-pages.{language}.zip"] = data

    def archive_requests(self) -> list[str]:
        return [name for name in self.requests if name.endswith(".zip")]

    def handler(self, request: httpx.Request) -> httpx.Response:
        name = request.url.path.rsplit("/", 1)[-1]
        self.requests.append(name)
        if name in self.failing:
            return httpx.Response(503, request=request)
        if name == "tldr.sha256sums":
            return httpx.Response(200, text=build_sumfile(self.archives), request=request)
        if name in self.overrides:
            return httpx.Response(200, content=self.overrides[name], request=request)
        if name in self.archives:
            return httpx.Response(200, content=self.archives[name], request=request)
        return httpx.Response(404, request=request)

    def fetcher(self, mirror: str = MIRROR) -> ArchiveFetcher:
        client = httpx.Client(transport=httpx.MockTransport(self.handler))
        return ArchiveFetcher(mirror, client=client)


@pytest.fixture(autouse=True)
def _reset_logging_disable() -> Iterator[None]:
    yield
    logging.disable(logging.NOTSET)


@pytest.fixture
def mirror() -> FakeMirror:
    fake = FakeMirror()
    fake.publish("en", {"common/git.md": GIT_PAGE, "common/tar.md": TAR_PAGE})
    return fake


@pytest.fixture
def cache_dir(tmp_path: Path) -> Path:
    return tmp_path / "cache"


@pytest.fixture
def make_config(cache_dir: Path):
    def _make_config(**sections: dict[str, object]) -> Config:
        payload: dict[str, dict[str, object]] = {
            "cache": {"dir": str(cache_dir), "mirror": MIRROR, "max_workers": 1},
            "output": {"line_length": 80},
        }
        for section, values in sections.items():
            payload.setdefault(section, {}).update(values)
        return parse_config(payload)

    return _make_config
