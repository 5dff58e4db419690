"""Default values shared by config, CLI, fetcher and image download."""

from __future__ import annotations

DEFAULT_MAX_LINKS = 100
DEFAULT_MAX_IMAGES = 100
DEFAULT_WORKERS = 4
DEFAULT_LOG_STATUS = False

DEFAULT_IMG_SAVE_DIR = "images/"
DEFAULT_LINKS_JSON = "links.json"
DEFAULT_LOG_FILE = "log.txt"

DEFAULT_TIMEOUT_SECONDS = 2.0
DEFAULT_POLL_INTERVAL_SECONDS = 0.5
DEFAULT_STATUS_INTERVAL_SECONDS = 0.5

DEFAULT_FRONTIER_ORDER = "lifo"
DEFAULT_NORMALIZE_LINKS = True
DEFAULT_SCRAPE_IMAGES = True
DEFAULT_SCRAPE_TITLES = True

DEFAULT_USER_AGENT = "sitegraph/0.1 (link graph crawler)"
DEFAULT_HTTP_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml;q=0.9,*/*;q=0.8",
}

DEFAULT_TITLE_TAGS: tuple[str, ...] = ("h1", "h2", "title")

IMAGE_DATABASE_FILENAME = "database.json"
IMAGE_DOWNLOAD_CHUNK_BYTES = 64 * 1024
IMAGE_EXTENSION_BY_CONTENT_TYPE: dict[str, str] = {
    "image/gif": "gif",
    "image/jpeg": "jpg",
    "image/png": "png",
    "image/svg+xml": "svg",
    "image/webp": "webp",
    "image/tiff": "tif",
}

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")
