"""Fetch-and-extract step used by crawl workers."""

from __future__ import annotations

import logging
from typing import Protocol

from .config import CrawlConfig
from .fetcher import Fetcher
from .parsers import HTMLParser, HTMLParserConfig
from .types import ContentKind, PageExtraction


LOGGER = logging.getLogger(__name__)


class PageFetchExtractor(Protocol):
    """Anything that turns a URL into its links, images and titles.

    Implementations never raise: a failed page yields an empty extraction.
    """

    def extract(self, url: str) -> PageExtraction: ...


class PageExtractor:
    """Default `PageFetchExtractor` built on `Fetcher` and `HTMLParser`."""

    def __init__(
        self,
        config: CrawlConfig,
        *,
        fetcher: Fetcher | None = None,
        parser: HTMLParser | None = None,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or Fetcher(config)
        self.parser = parser or HTMLParser(
            HTMLParserConfig(
                scrape_images=config.scrape_images,
                scrape_titles=config.scrape_titles,
                normalize_links=config.normalize_links,
            )
        )
        self._owns_fetcher = fetcher is None

    def extract(self, url: str) -> PageExtraction:
        fetch_result = self.fetcher.fetch(url)
        if not fetch_result.ok:
            LOGGER.warning("Could not find links on %s: %s", url, fetch_result.describe_failure())
            return PageExtraction.empty()

        content_kind = fetch_result.content_kind
        if content_kind not in {ContentKind.HTML, ContentKind.UNKNOWN}:
            LOGGER.debug(
                "Skipping non-HTML page %s (content type %r)",
                url,
                fetch_result.content_type,
            )
            return PageExtraction.empty()

        try:
            return self.parser.parse(
                url=fetch_result.requested_url,
                final_url=fetch_result.final_url,
                html=fetch_result.body or b"",
                allowed_domains=self.config.allowed_domains,
            )
        except Exception as exc:
            LOGGER.warning("Could not parse %s: %s: %s", url, exc.__class__.__name__, exc)
            return PageExtraction.empty()

    def close(self) -> None:
        if self._owns_fetcher:
            self.fetcher.close()


__all__ = [
    "PageExtractor",
    "PageFetchExtractor",
]
