import unittest
from unittest import mock

import requests

from sitegraph.crawler import CrawlConfig, FetchResult, Fetcher, PageExtraction, PageExtractor
from sitegraph.crawler.types import ContentKind, infer_content_kind


URL = "https://example.com/"


def make_config(**overrides) -> CrawlConfig:
    return CrawlConfig(seed_url=URL, **overrides)


class FakeFetcher:
    def __init__(self, result: FetchResult) -> None:
        self.result = result
        self.closed = False

    def fetch(self, url: str) -> FetchResult:
        return self.result

    def close(self) -> None:
        self.closed = True


class RaisingParser:
    def parse(self, **kwargs) -> PageExtraction:
        raise ValueError("bad markup")


def html_result(body: bytes, *, content_type: str | None = "text/html; charset=utf-8", status: int = 200) -> FetchResult:
    return FetchResult(
        requested_url=URL,
        final_url=URL,
        status_code=status,
        content_type=content_type,
        body=body,
    )


class ContentKindTests(unittest.TestCase):
    def test_infer_content_kind(self) -> None:
        self.assertEqual(ContentKind.HTML, infer_content_kind("text/html; charset=utf-8", URL))
        self.assertEqual(ContentKind.TEXT, infer_content_kind("text/plain", URL))
        self.assertEqual(ContentKind.BINARY, infer_content_kind("image/png", URL))
        self.assertEqual(ContentKind.HTML, infer_content_kind(None, "https://example.com/a.html"))
        self.assertEqual(ContentKind.UNKNOWN, infer_content_kind(None, "https://example.com/a"))

    def test_fetch_result_failure_description(self) -> None:
        self.assertEqual("HTTP status 404", html_result(b"", status=404).describe_failure())
        self.assertFalse(html_result(b"", status=404).ok)
        self.assertTrue(html_result(b"").ok)


class PageExtractorTests(unittest.TestCase):
    def test_html_page_is_parsed(self) -> None:
        extractor = PageExtractor(
            make_config(),
            fetcher=FakeFetcher(html_result(b'<h1>Hi</h1><a href="/next">n</a>')),
        )

        extraction = extractor.extract(URL)

        self.assertEqual(["https://example.com/next"], extraction.links)
        self.assertEqual(["Hi"], extraction.titles)

    def test_http_error_gives_empty_extraction_and_warning(self) -> None:
        extractor = PageExtractor(make_config(), fetcher=FakeFetcher(html_result(b"", status=500)))

        with self.assertLogs("sitegraph.crawler.extractor", level="WARNING") as logs:
            extraction = extractor.extract(URL)

        self.assertTrue(extraction.is_empty)
        self.assertIn("HTTP status 500", logs.output[0])

    def test_transport_error_gives_empty_extraction(self) -> None:
        failed = FetchResult(
            requested_url=URL,
            final_url=None,
            status_code=None,
            content_type=None,
            body=None,
            error="ConnectTimeout: timed out",
        )
        extractor = PageExtractor(make_config(), fetcher=FakeFetcher(failed))

        with self.assertLogs("sitegraph.crawler.extractor", level="WARNING"):
            self.assertTrue(extractor.extract(URL).is_empty)

    def test_non_html_content_is_skipped(self) -> None:
        extractor = PageExtractor(
            make_config(),
            fetcher=FakeFetcher(html_result(b"\x89PNG", content_type="image/png")),
        )

        self.assertTrue(extractor.extract(URL).is_empty)

    def test_parser_error_gives_empty_extraction(self) -> None:
        extractor = PageExtractor(
            make_config(),
            fetcher=FakeFetcher(html_result(b"<a href='/x'>x</a>")),
            parser=RaisingParser(),
        )

        with self.assertLogs("sitegraph.crawler.extractor", level="WARNING"):
            self.assertTrue(extractor.extract(URL).is_empty)

    def test_allowed_domains_filter_links(self) -> None:
        body = b'<a href="/in">in</a><a href="https://other.org/out">out</a>'
        extractor = PageExtractor(
            make_config(allowed_domains=["example.com"]),
            fetcher=FakeFetcher(html_result(body)),
        )

        self.assertEqual(["https://example.com/in"], extractor.extract(URL).links)

    def test_close_leaves_injected_fetcher_open(self) -> None:
        fetcher = FakeFetcher(html_result(b""))
        PageExtractor(make_config(), fetcher=fetcher).close()

        self.assertFalse(fetcher.closed)


class FetcherTests(unittest.TestCase):
    def test_successful_get(self) -> None:
        response = mock.Mock(
            url="https://example.com/final",
            status_code=200,
            headers={"Content-Type": "text/html"},
            content=b"<html></html>",
        )
        with mock.patch.object(requests.Session, "get", return_value=response) as get:
            with Fetcher(make_config(timeout_seconds=3.0)) as fetcher:
                result = fetcher.fetch(URL)

        self.assertTrue(result.ok)
        self.assertEqual("https://example.com/final", result.final_url)
        self.assertEqual(b"<html></html>", result.body)
        _, kwargs = get.call_args
        self.assertEqual(3.0, kwargs["timeout"])
        self.assertTrue(kwargs["allow_redirects"])
        self.assertIn("User-Agent", kwargs["headers"])

    def test_request_exception_is_returned_as_error(self) -> None:
        with mock.patch.object(
            requests.Session,
            "get",
            side_effect=requests.ConnectionError("refused"),
        ):
            fetcher = Fetcher(make_config())
            result = fetcher.fetch(URL)
            fetcher.close()

        self.assertFalse(result.ok)
        self.assertTrue(result.error.startswith("ConnectionError"))

    def test_closed_fetcher_does_not_fetch(self) -> None:
        fetcher = Fetcher(make_config())
        fetcher.close()

        result = fetcher.fetch(URL)

        self.assertEqual("Fetcher is closed", result.error)


if __name__ == "__main__":
    unittest.main()
