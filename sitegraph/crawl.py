"""CLI entrypoint: crawl a site, download its images, write the link graph."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

if __package__ in {None, ""}:
    repo_root = Path(__file__).resolve().parents[1]
    if str(repo_root) not in sys.path:
        sys.path.insert(0, str(repo_root))

from sitegraph.crawler import (
    CrawlConfig,
    CrawlResult,
    Crawler,
    FrontierOrder,
    ImageDownloader,
    Storage,
    collect_images,
    load_config,
)
from sitegraph.crawler.constants import DEFAULT_LOG_FILE
from sitegraph.crawler.images import ensure_directory


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a website from a starting URL and record its link graph.",
    )

    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config. Command-line flags override it.",
    )
    parser.add_argument("-s", "--starting_url", type=str, default=None, help="Seed URL.")
    parser.add_argument("--max_links", type=int, default=None, help="Maximum links to find.")
    parser.add_argument("--max_images", type=int, default=None, help="Maximum images to download.")
    parser.add_argument(
        "-n",
        "--n_worker_threads",
        type=int,
        default=None,
        help="Number of crawl worker threads.",
    )
    parser.add_argument(
        "-l",
        "--log_status",
        action="store_true",
        default=None,
        help="Show a progress bar while crawling.",
    )
    parser.add_argument(
        "-i",
        "--img_save_dir",
        type=str,
        default=None,
        help="Directory to save the scraped images and their database.json.",
    )
    parser.add_argument("--links_json", type=str, default=None, help="File to save the link graph to.")

    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument(
        "--frontier_order",
        type=str,
        choices=[order.value for order in FrontierOrder],
        default=None,
        help="lifo visits the newest link first (default), fifo is breadth-first.",
    )
    parser.add_argument(
        "--allowed_domain",
        action="append",
        default=[],
        help="Restrict crawling to this domain and its subdomains (repeatable).",
    )

    parser.add_argument(
        "--skip_images",
        action="store_true",
        help="Do not download images (the image database is still written).",
    )
    parser.add_argument(
        "--log_file",
        type=Path,
        default=Path(DEFAULT_LOG_FILE),
        help="Log file path.",
    )
    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def build_config(args: argparse.Namespace) -> CrawlConfig:
    payload: dict[str, Any] = {}
    if args.config is not None:
        payload = load_config(args.config).to_dict()

    if args.starting_url is not None:
        payload["seed_url"] = args.starting_url
    if not payload.get("seed_url"):
        raise ValueError("No starting URL provided. Use --config or --starting_url.")

    overrides = {
        "max_links": args.max_links,
        "max_images": args.max_images,
        "workers": args.n_worker_threads,
        "log_status": args.log_status,
        "img_save_dir": args.img_save_dir,
        "links_json": args.links_json,
        "timeout_seconds": args.timeout_seconds,
        "frontier_order": args.frontier_order,
    }
    for key, value in overrides.items():
        if value is not None:
            payload[key] = value

    if args.allowed_domain:
        payload["allowed_domains"] = list(args.allowed_domain)

    config = CrawlConfig.from_dict(payload)

    # Output paths are checked before any page is fetched.
    ensure_directory(config.img_save_dir)
    if Path(config.links_json).is_dir():
        raise ValueError(f"links_json points to a directory: {config.links_json}")

    return config


def setup_logging(log_path: Path, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    if log_path.parent != Path(""):
        log_path.parent.mkdir(parents=True, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    logging.getLogger("urllib3").setLevel(logging.WARNING)


def print_input_args(config: CrawlConfig) -> None:
    print("CRAWLER INPUT ARGUMENTS")
    print(f"  Starting URL: {config.seed_url}")
    print(f"  Maximum visited links: {config.max_links}")
    print(f"  Maximum number of images: {config.max_images}")
    print(f"  Number of workers: {config.workers}")
    print(f"  Should log progress? {config.log_status}")
    print(f"  Image directory: {config.img_save_dir}")
    print(f"  Output json path: {config.links_json}")
    print()


def run(config: CrawlConfig, *, skip_images: bool = False) -> tuple[CrawlResult, Storage]:
    crawler = Crawler(config)
    result = crawler.run()

    storage = Storage(config.links_json, config.img_save_dir)

    logging.info("[1/4] converting image links")
    images = collect_images(result.link_graph)

    if skip_images:
        logging.info("[2/4] skipping image download")
    else:
        logging.info("[2/4] downloading up to %d of %d images", config.max_images, len(images))
        with ImageDownloader(config) as downloader:
            report = downloader.download_all(images, config.img_save_dir, config.max_images)
        crawler.stats.record_images(len(report.saved), len(report.failures))

    logging.info("[3/4] creating image database")
    storage.save_image_database(images)

    logging.info("[4/4] serializing links to %s", config.links_json)
    storage.save_link_graph(result.link_graph)

    result.stats = crawler.stats.to_json()
    storage.save_crawl_stats(result.stats)

    return result, storage


def print_summary(result: CrawlResult, storage: Storage, *, print_stats_json: bool) -> None:
    stats = result.stats

    print("\n=== Crawl Complete ===")
    print(f"links: {storage.paths['links_json']}")
    print(f"images: {storage.paths['img_save_dir']}")
    print(f"image database: {storage.paths['image_database']}")
    print(f"stats: {storage.paths['crawl_stats']}")

    print("\n--- Core Stats ---")
    print(f"links_found: {len(result.link_graph)}")
    print(f"frontier_remaining: {result.frontier_remaining}")
    for key in [
        "pages_fetched",
        "pages_empty",
        "pages_revisited",
        "links_enqueued",
        "links_skipped_visited",
        "worker_failures",
        "images_saved",
        "images_failed",
        "duration_seconds",
    ]:
        if key in stats:
            print(f"{key}: {stats[key]}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(stats, indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    setup_logging(args.log_file, verbose=args.verbose)

    try:
        config = build_config(args)
    except (ValueError, OSError) as exc:
        logging.error("Failed to build config: %s", exc)
        return 2

    print_input_args(config)

    try:
        result, storage = run(config, skip_images=args.skip_images)
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1

    print_summary(result, storage, print_stats_json=args.print_stats_json)

    if not result.consistent:
        logging.error("Link graph consistency errors were reported; output may be incomplete")
        return 1
    print("Finished!")
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
