"""Literal constants used by tldrpy."""

from . import __version__

APP_NAME = "tldrpy"
USER_AGENT = f"{APP_NAME}/{__version__}"

USER_DATA_DIR = f"~/.{APP_NAME}"
DEFAULT_CACHE_DIR = f"{USER_DATA_DIR}/cache"
DEFAULT_CONFIG_PATH = f"{USER_DATA_DIR}/config.json"
CONFIG_ENV_VAR = "TLDRPY_CONFIG"

DEFAULT_MIRROR = "https://github.com/tldr-pages/tldr/releases/latest/download"
CHECKSUMS_FILENAME = "tldr.sha256sums"
ARCHIVE_PREFIX = "tldr-pages."
ARCHIVE_SUFFIX = ".zip"
# Full bundles listed in the checksum file that are not per-language archives.
BUNDLE_ARCHIVE_NAMES = frozenset({"tldr.zip", "tldr-pages.zip"})

ENGLISH = "en"
COMMON_PLATFORM = "common"
PAGES_DIR_PREFIX = "pages."
PAGE_SUFFIX = ".md"
MANIFEST_FILENAME = "manifest.json"
GENERATIONS_DIRNAME = ".generations"
STAGING_PREFIX = ".staging-"
LOCK_SUFFIX = ".lock"

DEFAULT_MAX_AGE_HOURS = 24 * 7 * 2
DEFAULT_MAX_WORKERS = 4
FALLBACK_TERMINAL_WIDTH = 80

HTTP_CONNECT_TIMEOUT_SEC = 10.0
HTTP_READ_TIMEOUT_SEC = 60.0
HTTP_WRITE_TIMEOUT_SEC = 10.0
HTTP_POOL_TIMEOUT_SEC = 5.0

UTC_TIMESTAMP_FORMAT = "%Y-%m-%dT%H:%M:%S.%fZ"

INFO_PREFIX = "info:"
WARNING_PREFIX = "warning:"
ERROR_PREFIX = "error:"

ISSUES_URL = "https://github.com/tldr-pages/tldr/issues"
PULLS_URL = "https://github.com/tldr-pages/tldr/pulls"
