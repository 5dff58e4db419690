"""Turn the images found during a crawl into files on disk."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import os
from pathlib import Path
import tempfile
from typing import Iterable, Mapping
import uuid

import requests
from tqdm import tqdm

from .config import CrawlConfig
from .constants import IMAGE_DOWNLOAD_CHUNK_BYTES, IMAGE_EXTENSION_BY_CONTENT_TYPE
from .types import Image, Link, LinkId


LOGGER = logging.getLogger(__name__)


class UnsupportedImageType(ValueError):
    """The response content type does not map to a known image extension."""


def collect_images(links: Iterable[tuple[LinkId, Link]]) -> dict[str, Image]:
    """Key every image of every page by a fresh UUID."""

    return {
        str(uuid.uuid4()): image
        for _, link in links
        for image in link.images
    }


def extension_for_content_type(content_type: str | None) -> str:
    """Map an image content type (parameters ignored) to a file extension."""

    if not content_type:
        raise UnsupportedImageType("Response has no content type")

    normalized = content_type.split(";", maxsplit=1)[0].strip().lower()
    extension = IMAGE_EXTENSION_BY_CONTENT_TYPE.get(normalized)
    if extension is None:
        raise UnsupportedImageType(f"Unsupported image content type: {normalized!r}")
    return extension


@dataclass(frozen=True, slots=True)
class ImageFailure:
    """One image that could not be saved."""

    name: str
    link: str
    message: str


@dataclass(slots=True)
class ImageDownloadReport:
    """Which images were saved and which were skipped."""

    saved: dict[str, Path] = field(default_factory=dict)
    failures: list[ImageFailure] = field(default_factory=list)

    @property
    def attempted(self) -> int:
        return len(self.saved) + len(self.failures)


class ImageDownloader:
    """Download images one by one, streaming each body to disk."""

    def __init__(self, config: CrawlConfig, *, session: requests.Session | None = None) -> None:
        self.config = config
        self.session = session or requests.Session()
        self._owns_session = session is None

    def download_all(
        self,
        images: Mapping[str, Image],
        save_dir: str | Path,
        max_images: int,
    ) -> ImageDownloadReport:
        """Save at most `max_images` images as `<save_dir>/<name>.<ext>`.

        A failure on one image is logged and skipped.
        """

        directory = ensure_directory(save_dir)
        report = ImageDownloadReport()

        selected = list(images.items())[: max(0, max_images)]
        for name, image in tqdm(selected, desc="Downloading images", unit="image", leave=False):
            try:
                report.saved[name] = self.download_one(image, directory / name)
            except (requests.RequestException, UnsupportedImageType, OSError) as exc:
                LOGGER.error("Could not download image %s, error: %s", image.link, exc)
                report.failures.append(ImageFailure(name=name, link=image.link, message=str(exc)))

        return report

    def download_one(self, image: Image, destination_stem: Path) -> Path:
        """Download one image; the extension comes from its content type.

        The body is streamed into a temporary file that only replaces `<stem>.<ext>`
        once the whole body has arrived.
        """

        with self.session.get(
            image.link,
            headers=self.config.headers(),
            timeout=self.config.timeout_seconds,
            stream=True,
        ) as response:
            response.raise_for_status()
            extension = extension_for_content_type(response.headers.get("Content-Type"))

            path = destination_stem.with_name(f"{destination_stem.name}.{extension}")
            tmp_fd, tmp_path = tempfile.mkstemp(
                dir=str(path.parent),
                prefix=path.name + ".",
                suffix=".tmp",
            )
            try:
                with os.fdopen(tmp_fd, "wb") as handle:
                    for chunk in response.iter_content(chunk_size=IMAGE_DOWNLOAD_CHUNK_BYTES):
                        if chunk:
                            handle.write(chunk)
                os.replace(tmp_path, path)
            except Exception:
                try:
                    os.unlink(tmp_path)
                except FileNotFoundError:
                    pass
                raise
        return path

    def close(self) -> None:
        if self._owns_session:
            self.session.close()

    def __enter__(self) -> "ImageDownloader":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()


def ensure_directory(path: str | Path) -> Path:
    """Create `path` (and parents) if absent; refuse an existing non-directory."""

    directory = Path(path)
    if directory.exists() and not directory.is_dir():
        raise NotADirectoryError(f"Image directory is not a directory: {directory}")
    directory.mkdir(parents=True, exist_ok=True)
    return directory


__all__ = [
    "ImageDownloadReport",
    "ImageDownloader",
    "ImageFailure",
    "UnsupportedImageType",
    "collect_images",
    "ensure_directory",
    "extension_for_content_type",
]
