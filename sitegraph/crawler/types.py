"""Records and enums shared by the crawler modules."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum


LinkId = int

JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


class ContentKind(str, Enum):
    """Coarse content categories used by the fetch/extract step."""

    HTML = "html"
    TEXT = "text"
    BINARY = "binary"
    UNKNOWN = "unknown"


class FrontierOrder(str, Enum):
    """Pop order of the frontier.

    `LIFO` visits the most recently discovered link next, `FIFO` gives a strict
    breadth-first walk. The order decides which pages fit in the budget.
    """

    LIFO = "lifo"
    FIFO = "fifo"


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for stats manifests."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


def infer_content_kind(content_type: str | None, url: str) -> ContentKind:
    """Infer coarse content kind from HTTP content type and URL."""

    normalized = (content_type or "").split(";", maxsplit=1)[0].strip().lower()
    lower_path = url.lower().split("?", maxsplit=1)[0]

    if normalized in {"text/html", "application/xhtml+xml"}:
        return ContentKind.HTML
    if normalized.startswith("text/"):
        return ContentKind.TEXT
    if normalized:
        return ContentKind.BINARY
    if lower_path.endswith((".html", ".htm", "/")):
        return ContentKind.HTML
    return ContentKind.UNKNOWN


@dataclass(frozen=True, slots=True)
class Image:
    """An image referenced by a page: absolute URL plus alt text."""

    link: str
    alt: str = ""

    def to_json(self) -> JSONDict:
        return {"link": self.link, "alt": self.alt}


@dataclass(frozen=True, slots=True)
class LinkPath:
    """A pending visit: the URL to fetch and the page that referred to it."""

    child: str
    parent: str | None = None


@dataclass(frozen=True, slots=True)
class Visit:
    """A popped frontier entry handed to one worker.

    `revisit` is set when the URL is already in the graph or being fetched by
    another worker: only the provenance edge is merged, the page is not fetched.
    """

    path: LinkPath
    revisit: bool = False


@dataclass(slots=True)
class Link:
    """One page record in the link graph."""

    id: LinkId
    url: str
    children: list[LinkId] = field(default_factory=list)
    parents: list[LinkId] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    titles: list[str] = field(default_factory=list)

    def copy(self) -> "Link":
        return Link(
            id=self.id,
            url=self.url,
            children=list(self.children),
            parents=list(self.parents),
            images=list(self.images),
            titles=list(self.titles),
        )

    def to_json(self) -> JSONDict:
        return {
            "id": self.id,
            "url": self.url,
            "children": list(self.children),
            "parents": list(self.parents),
            "images": [image.to_json() for image in self.images],
            "titles": list(self.titles),
        }


@dataclass(slots=True)
class PageExtraction:
    """Links, images and titles found on one page."""

    links: list[str] = field(default_factory=list)
    images: list[Image] = field(default_factory=list)
    titles: list[str] = field(default_factory=list)

    @classmethod
    def empty(cls) -> "PageExtraction":
        return cls()

    @property
    def is_empty(self) -> bool:
        return not (self.links or self.images or self.titles)


@dataclass(slots=True)
class FetchResult:
    """Result of attempting to download one URL."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def content_kind(self) -> ContentKind:
        return infer_content_kind(self.content_type, self.final_url or self.requested_url)

    def describe_failure(self) -> str:
        if self.error:
            return self.error
        if self.status_code is not None and not 200 <= self.status_code < 300:
            return f"HTTP status {self.status_code}"
        if self.body is None:
            return "Empty response body"
        return "Unknown fetch failure"


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    pages_fetched: int = 0
    pages_empty: int = 0
    pages_revisited: int = 0
    pages_merged: int = 0

    links_enqueued: int = 0
    links_skipped_visited: int = 0

    worker_failures: int = 0

    images_saved: int = 0
    images_failed: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def start(self) -> None:
        self.started_at = utc_now_iso()
        self.finished_at = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "pages_fetched": self.pages_fetched,
            "pages_empty": self.pages_empty,
            "pages_revisited": self.pages_revisited,
            "pages_merged": self.pages_merged,
            "links_enqueued": self.links_enqueued,
            "links_skipped_visited": self.links_skipped_visited,
            "worker_failures": self.worker_failures,
            "images_saved": self.images_saved,
            "images_failed": self.images_failed,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


__all__ = [
    "ContentKind",
    "CrawlStats",
    "FetchResult",
    "FrontierOrder",
    "Image",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "Link",
    "LinkId",
    "LinkPath",
    "PageExtraction",
    "Visit",
    "infer_content_kind",
    "utc_now_iso",
]
