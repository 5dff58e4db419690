"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_FRONTIER_ORDER,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_IMG_SAVE_DIR,
    DEFAULT_LINKS_JSON,
    DEFAULT_LOG_STATUS,
    DEFAULT_MAX_IMAGES,
    DEFAULT_MAX_LINKS,
    DEFAULT_NORMALIZE_LINKS,
    DEFAULT_POLL_INTERVAL_SECONDS,
    DEFAULT_SCRAPE_IMAGES,
    DEFAULT_SCRAPE_TITLES,
    DEFAULT_STATUS_INTERVAL_SECONDS,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    DEFAULT_WORKERS,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .types import FrontierOrder, JSONDict
from .url import is_http_url, normalize_domain


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid int for '{key}': {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _to_order(value: Any) -> FrontierOrder:
    if isinstance(value, FrontierOrder):
        return value
    if isinstance(value, str):
        try:
            return FrontierOrder(value.strip().lower())
        except ValueError:
            pass
    raise ValueError(f"Invalid frontier_order value: {value!r} (use 'lifo' or 'fifo')")


@dataclass(slots=True)
class CrawlConfig:
    """Top-level configuration consumed once at startup."""

    seed_url: str

    max_links: int = DEFAULT_MAX_LINKS
    max_images: int = DEFAULT_MAX_IMAGES
    workers: int = DEFAULT_WORKERS
    log_status: bool = DEFAULT_LOG_STATUS

    img_save_dir: str = DEFAULT_IMG_SAVE_DIR
    links_json: str = DEFAULT_LINKS_JSON

    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    status_interval_seconds: float = DEFAULT_STATUS_INTERVAL_SECONDS

    frontier_order: FrontierOrder = FrontierOrder(DEFAULT_FRONTIER_ORDER)
    allowed_domains: list[str] = field(default_factory=list)
    normalize_links: bool = DEFAULT_NORMALIZE_LINKS
    scrape_images: bool = DEFAULT_SCRAPE_IMAGES
    scrape_titles: bool = DEFAULT_SCRAPE_TITLES

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))


    def __post_init__(self) -> None:
        self.seed_url = (self.seed_url or "").strip()
        if not self.seed_url:
            raise ValueError("CrawlConfig requires a seed URL")
        if not is_http_url(self.seed_url):
            raise ValueError(f"Seed URL must be an absolute http(s) URL: {self.seed_url!r}")

        if self.max_links <= 0:
            raise ValueError("max_links must be > 0")
        if self.max_images < 0:
            raise ValueError("max_images must be >= 0")
        if self.workers <= 0:
            raise ValueError("workers must be > 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be > 0")
        if self.status_interval_seconds <= 0:
            raise ValueError("status_interval_seconds must be > 0")
        if not self.img_save_dir:
            raise ValueError("img_save_dir cannot be empty")
        if not self.links_json:
            raise ValueError("links_json cannot be empty")

        self.frontier_order = _to_order(self.frontier_order)

        domains: list[str] = []
        for item in self.allowed_domains:
            domain = normalize_domain(str(item))
            if not domain:
                raise ValueError(f"Invalid allowed domain: {item!r}")
            if domain not in domains:
                domains.append(domain)
        self.allowed_domains = domains

    def headers(self) -> dict[str, str]:
        """Return request headers with the configured User-Agent."""

        merged: dict[str, str] = dict(self.default_headers)
        merged.setdefault("User-Agent", self.user_agent)
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "seed_url": self.seed_url,
            "max_links": self.max_links,
            "max_images": self.max_images,
            "workers": self.workers,
            "log_status": self.log_status,
            "img_save_dir": self.img_save_dir,
            "links_json": self.links_json,
            "timeout_seconds": self.timeout_seconds,
            "poll_interval_seconds": self.poll_interval_seconds,
            "status_interval_seconds": self.status_interval_seconds,
            "frontier_order": self.frontier_order.value,
            "allowed_domains": list(self.allowed_domains),
            "normalize_links": self.normalize_links,
            "scrape_images": self.scrape_images,
            "scrape_titles": self.scrape_titles,
            "user_agent": self.user_agent,
            "default_headers": dict(self.default_headers),
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        seed_url = payload.get("seed_url", payload.get("starting_url"))
        if not seed_url:
            raise ValueError("Config missing required key: 'seed_url'")

        return cls(
            seed_url=str(seed_url),
            max_links=_as_int(payload.get("max_links", DEFAULT_MAX_LINKS), "max_links"),
            max_images=_as_int(payload.get("max_images", DEFAULT_MAX_IMAGES), "max_images"),
            workers=_as_int(payload.get("workers", DEFAULT_WORKERS), "workers"),
            log_status=_as_bool(payload.get("log_status", DEFAULT_LOG_STATUS), "log_status"),
            img_save_dir=str(payload.get("img_save_dir", DEFAULT_IMG_SAVE_DIR)),
            links_json=str(payload.get("links_json", DEFAULT_LINKS_JSON)),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                "timeout_seconds",
            ),
            poll_interval_seconds=_as_float(
                payload.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS),
                "poll_interval_seconds",
            ),
            status_interval_seconds=_as_float(
                payload.get("status_interval_seconds", DEFAULT_STATUS_INTERVAL_SECONDS),
                "status_interval_seconds",
            ),
            frontier_order=_to_order(payload.get("frontier_order", DEFAULT_FRONTIER_ORDER)),
            allowed_domains=[str(item) for item in list(payload.get("allowed_domains") or [])],
            normalize_links=_as_bool(
                payload.get("normalize_links", DEFAULT_NORMALIZE_LINKS),
                "normalize_links",
            ),
            scrape_images=_as_bool(
                payload.get("scrape_images", DEFAULT_SCRAPE_IMAGES),
                "scrape_images",
            ),
            scrape_titles=_as_bool(
                payload.get("scrape_titles", DEFAULT_SCRAPE_TITLES),
                "scrape_titles",
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")

    return CrawlConfig.from_dict(payload)


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    suffix = out_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    out_path.parent.mkdir(parents=True, exist_ok=True)
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    out_path.write_text(yaml.safe_dump(payload, sort_keys=False), encoding="utf-8")


__all__ = [
    "CrawlConfig",
    "load_config",
    "save_config",
]
