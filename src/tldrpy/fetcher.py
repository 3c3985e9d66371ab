"""Remote manifest and archive downloads."""

from __future__ import annotations

import hashlib
import time

import httpx

from .constants import (
    CHECKSUMS_FILENAME,
    HTTP_CONNECT_TIMEOUT_SEC,
    HTTP_POOL_TIMEOUT_SEC,
    HTTP_READ_TIMEOUT_SEC,
    HTTP_WRITE_TIMEOUT_SEC,
    USER_AGENT,
)
from .errors import ChecksumMismatchError, NetworkError
from .logging_utils import elapsed_ms, log_event
from .manifest import ChecksumManifest, archive_name, parse_sumfile


def sha256_hexdigest(data: bytes) -> str:
    return hashlib.sha256(data).hexdigest()


def build_http_timeout() -> httpx.Timeout:
    return httpx.Timeout(
        connect=HTTP_CONNECT_TIMEOUT_SEC,
        read=HTTP_READ_TIMEOUT_SEC,
        write=HTTP_WRITE_TIMEOUT_SEC,
        pool=HTTP_POOL_TIMEOUT_SEC,
    )


class ArchiveFetcher:
    """Downloads the checksum file and per-language archives from a mirror.

    A client passed in by the caller stays owned by the caller; otherwise the
    fetcher creates one and closes it in ``close()``.
    """

    def __init__(self, mirror: str, *, client: httpx.Client | None = None) -> None:
        self.mirror = mirror.rstrip("/")
        self._owns_client = client is None
        self._client = client or httpx.Client(
            timeout=build_http_timeout(),
            follow_redirects=True,
            headers={"User-Agent": USER_AGENT},
        )

    def __enter__(self) -> ArchiveFetcher:
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def close(self) -> None:
        if self._owns_client:
            self._client.close()

    @property
    def checksums_url(self) -> str:
        return f"{self.mirror}/{CHECKSUMS_FILENAME}"

    def archive_url(self, language: str) -> str:
        return f"{self.mirror}/{archive_name(language)}"

    def fetch_manifest(self) -> ChecksumManifest:
        url = self.checksums_url
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            log_event(
                "manifest_fetch",
                url=url,
                error_type=type(exc).__name__,
                error=str(exc),
            )
            raise NetworkError(None, f"failed to download '{CHECKSUMS_FILENAME}': {exc}") from exc

        manifest = parse_sumfile(response.text)
        log_event("manifest_fetch", url=url, archive_count=len(manifest))
        return manifest

    def download_archive(self, language: str) -> bytes:
        url = self.archive_url(language)
        started = time.monotonic()
        try:
            response = self._client.get(url)
            response.raise_for_status()
        except (httpx.HTTPError, httpx.InvalidURL) as exc:
            raise NetworkError(
                language, f"failed to download '{archive_name(language)}': {exc}"
            ) from exc

        data = response.content
        log_event(
            "archive_download",
            language=language,
            url=url,
            bytes=len(data),
            elapsed_ms=elapsed_ms(started, time.monotonic()),
        )
        return data

    def fetch_verified_archive(self, language: str, expected_digest: str) -> bytes:
        """Download an archive and reject it unless its SHA256 matches."""
        data = self.download_archive(language)
        actual_digest = sha256_hexdigest(data)
        if actual_digest != expected_digest.lower():
            raise ChecksumMismatchError(language, expected_digest, actual_digest)
        return data
