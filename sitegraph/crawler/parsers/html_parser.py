"""HTML parser: anchors, images and titles of one page."""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Iterable

from bs4 import BeautifulSoup

from ..constants import DEFAULT_TITLE_TAGS
from ..types import Image, PageExtraction
from ..url import extract_links_from_html, resolve_url


LOGGER = logging.getLogger(__name__)


@dataclass(slots=True)
class HTMLParserConfig:
    """Config for HTML extraction."""

    include_nofollow_links: bool = True
    scrape_images: bool = True
    scrape_titles: bool = True
    title_tags: tuple[str, ...] = DEFAULT_TITLE_TAGS
    normalize_links: bool = True


class HTMLParser:
    """Turn an HTML document into a `PageExtraction`."""

    def __init__(self, config: HTMLParserConfig | None = None) -> None:
        self.config = config or HTMLParserConfig()

    def parse(
        self,
        *,
        url: str,
        html: str | bytes,
        final_url: str | None = None,
        allowed_domains: Iterable[str] | None = None,
    ) -> PageExtraction:
        base_url = final_url or url
        soup = BeautifulSoup(self._coerce_html_text(html), "lxml")

        links = extract_links_from_html(
            soup,
            base_url=base_url,
            allowed_domains=allowed_domains,
            include_nofollow=self.config.include_nofollow_links,
            normalize=self.config.normalize_links,
        )
        images = self._extract_images(soup, base_url) if self.config.scrape_images else []
        titles = self._extract_titles(soup) if self.config.scrape_titles else []

        return PageExtraction(links=links, images=images, titles=titles)

    def _extract_images(self, soup: BeautifulSoup, base_url: str) -> list[Image]:
        images: list[Image] = []
        for element in soup.find_all("img", src=True):
            # Image URLs are kept as written (only made absolute).
            absolute = resolve_url(base_url, element.get("src"), normalize=False)
            if absolute is None:
                LOGGER.debug("Skipping image with unusable src=%r on %s", element.get("src"), base_url)
                continue
            images.append(Image(link=absolute, alt=(element.get("alt") or "").strip()))
        return images

    def _extract_titles(self, soup: BeautifulSoup) -> list[str]:
        titles: list[str] = []
        for tag in self.config.title_tags:
            for element in soup.find_all(tag):
                text = element.get_text(" ", strip=True)
                if text:
                    titles.append(" ".join(text.split()))
        return titles

    @staticmethod
    def _coerce_html_text(html: str | bytes) -> str:
        if isinstance(html, bytes):
            return html.decode("utf-8", errors="replace")
        return html


__all__ = [
    "HTMLParser",
    "HTMLParserConfig",
]
