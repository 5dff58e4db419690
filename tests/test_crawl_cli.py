import json
import logging
from pathlib import Path
from tempfile import TemporaryDirectory
import unittest
from unittest import mock

from sitegraph import crawl
from sitegraph.crawler import CrawlConfig, Crawler, FrontierOrder, Image, PageExtraction, save_config


SEED = "https://example.com/"


class FakeSiteExtractor:
    def __init__(self, site: dict[str, PageExtraction]) -> None:
        self.site = site

    def extract(self, url: str) -> PageExtraction:
        return self.site.get(url, PageExtraction.empty())


class ParseArgsTests(unittest.TestCase):
    def test_defaults(self) -> None:
        args = crawl.parse_args([])

        self.assertIsNone(args.starting_url)
        self.assertIsNone(args.max_links)
        self.assertIsNone(args.log_status)
        self.assertEqual([], args.allowed_domain)
        self.assertEqual(Path("log.txt"), args.log_file)
        self.assertFalse(args.skip_images)

    def test_short_flags(self) -> None:
        args = crawl.parse_args(["-s", SEED, "-n", "8", "-l", "-i", "pics/"])

        self.assertEqual(SEED, args.starting_url)
        self.assertEqual(8, args.n_worker_threads)
        self.assertTrue(args.log_status)
        self.assertEqual("pics/", args.img_save_dir)


class BuildConfigTests(unittest.TestCase):
    def test_flags_override_config_file(self) -> None:
        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            config_path = root / "crawl.yaml"
            save_config(
                CrawlConfig(
                    seed_url="https://from-file.example.com/",
                    max_links=50,
                    img_save_dir=str(root / "file-images"),
                ),
                config_path,
            )

            args = crawl.parse_args(
                [
                    "--config",
                    str(config_path),
                    "--max_links",
                    "5",
                    "--frontier_order",
                    "fifo",
                    "--allowed_domain",
                    "example.com",
                    "--links_json",
                    str(root / "graph.json"),
                ]
            )
            config = crawl.build_config(args)

            self.assertEqual("https://from-file.example.com/", config.seed_url)
            self.assertEqual(5, config.max_links)
            self.assertEqual(FrontierOrder.FIFO, config.frontier_order)
            self.assertEqual(["example.com"], config.allowed_domains)
            self.assertEqual(str(root / "file-images"), config.img_save_dir)
            self.assertTrue((root / "file-images").is_dir())

    def test_missing_seed_raises(self) -> None:
        with self.assertRaises(ValueError):
            crawl.build_config(crawl.parse_args([]))

    def test_image_dir_that_is_a_file_raises(self) -> None:
        with TemporaryDirectory() as tmpdir:
            blocker = Path(tmpdir) / "images"
            blocker.write_text("x", encoding="utf-8")
            args = crawl.parse_args(["-s", SEED, "-i", str(blocker)])

            with self.assertRaises(NotADirectoryError):
                crawl.build_config(args)


class MainTests(unittest.TestCase):
    def tearDown(self) -> None:
        root = logging.getLogger()
        for handler in list(root.handlers):
            root.removeHandler(handler)
            handler.close()

    def test_bad_config_exits_with_2(self) -> None:
        with TemporaryDirectory() as tmpdir:
            log_file = Path(tmpdir) / "log.txt"

            code = crawl.main(["-s", "not a url", "--log_file", str(log_file)])

            self.assertEqual(2, code)
            self.assertIn("Failed to build config", log_file.read_text(encoding="utf-8"))

    def test_end_to_end_writes_outputs(self) -> None:
        site = {
            SEED: PageExtraction(
                links=["https://example.com/about"],
                images=[Image("https://example.com/logo.png", "Logo")],
                titles=["Home"],
            ),
            "https://example.com/about": PageExtraction(links=[SEED], titles=["About"]),
        }

        def make_crawler(config):
            return Crawler(config, extractor=FakeSiteExtractor(site))

        with TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            argv = [
                "-s",
                SEED,
                "-n",
                "2",
                "-i",
                str(root / "images"),
                "--links_json",
                str(root / "links.json"),
                "--log_file",
                str(root / "log.txt"),
                "--skip_images",
            ]

            with mock.patch.object(crawl, "Crawler", side_effect=make_crawler):
                code = crawl.main(argv)

            self.assertEqual(0, code)

            graph = json.loads((root / "links.json").read_text(encoding="utf-8"))
            self.assertEqual({SEED: 0, "https://example.com/about": 1}, graph["link_ids"])
            self.assertEqual([1], graph["links"]["0"]["children"])
            self.assertEqual([0], graph["links"]["1"]["parents"])
            self.assertEqual([0], graph["links"]["1"]["children"])

            database = json.loads((root / "images" / "database.json").read_text(encoding="utf-8"))
            self.assertEqual(
                [{"link": "https://example.com/logo.png", "alt": "Logo"}],
                list(database.values()),
            )

            stats = json.loads((root / "links.stats.json").read_text(encoding="utf-8"))
            self.assertEqual(2, stats["pages_fetched"])
            self.assertEqual(0, stats["images_saved"])

            self.assertIn("[4/4]", (root / "log.txt").read_text(encoding="utf-8"))


if __name__ == "__main__":
    unittest.main()
