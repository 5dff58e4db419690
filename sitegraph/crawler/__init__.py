"""Crawler package: link graph, frontier, workers and their collaborators."""

from .config import CrawlConfig, load_config, save_config
from .extractor import PageExtractor, PageFetchExtractor
from .fetcher import Fetcher
from .frontier import Frontier
from .images import (
    ImageDownloadReport,
    ImageDownloader,
    UnsupportedImageType,
    collect_images,
    extension_for_content_type,
)
from .link_graph import LinkGraph, LinkGraphError
from .parsers import HTMLParser, HTMLParserConfig
from .pipeline import CrawlResult, Crawler, WorkerFailure
from .state import CrawlerState
from .stats import StatsCollector
from .status import StatusReporter
from .storage import Storage
from .types import (
    ContentKind,
    CrawlStats,
    FetchResult,
    FrontierOrder,
    Image,
    Link,
    LinkId,
    LinkPath,
    PageExtraction,
    Visit,
    infer_content_kind,
    utc_now_iso,
)
from .url import extract_links_from_html, host_from_url, is_url_in_scope, normalize_url, resolve_url
from .worker import CrawlWorker, WorkerState

__all__ = [
    "ContentKind",
    "CrawlConfig",
    "CrawlResult",
    "CrawlStats",
    "CrawlWorker",
    "Crawler",
    "CrawlerState",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "FrontierOrder",
    "HTMLParser",
    "HTMLParserConfig",
    "Image",
    "ImageDownloadReport",
    "ImageDownloader",
    "Link",
    "LinkGraph",
    "LinkGraphError",
    "LinkId",
    "LinkPath",
    "PageExtraction",
    "PageExtractor",
    "PageFetchExtractor",
    "StatsCollector",
    "StatusReporter",
    "Storage",
    "UnsupportedImageType",
    "Visit",
    "WorkerFailure",
    "WorkerState",
    "collect_images",
    "extension_for_content_type",
    "extract_links_from_html",
    "host_from_url",
    "infer_content_kind",
    "is_url_in_scope",
    "load_config",
    "normalize_url",
    "resolve_url",
    "save_config",
    "utc_now_iso",
]
