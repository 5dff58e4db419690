"""Filesystem output: link graph JSON, image database, run stats.

Writes go through a temp file and `os.replace`, so a crash never leaves a
half-written JSON document behind.
"""

from __future__ import annotations

import json
import os
from pathlib import Path
import tempfile
from typing import Any, Mapping

from .constants import IMAGE_DATABASE_FILENAME, JSON_INDENT
from .images import ensure_directory
from .link_graph import LinkGraph
from .types import Image


class Storage:
    """Persist crawl outputs to caller-chosen paths."""

    def __init__(self, links_json: str | Path, img_save_dir: str | Path) -> None:
        self.links_json_path = Path(links_json)
        self.img_save_dir = Path(img_save_dir)
        self.image_database_path = self.img_save_dir / IMAGE_DATABASE_FILENAME
        self.crawl_stats_path = self.links_json_path.with_name(
            f"{self.links_json_path.stem}.stats.json"
        )

    @property
    def paths(self) -> dict[str, str]:
        """Return output paths for logging/CLI status messages."""

        return {
            "links_json": str(self.links_json_path),
            "img_save_dir": str(self.img_save_dir),
            "image_database": str(self.image_database_path),
            "crawl_stats": str(self.crawl_stats_path),
        }

    def save_link_graph(self, graph: LinkGraph) -> Path:
        """Write the graph as `{"links": {...}, "link_ids": {...}}`."""

        self._atomic_write_json(self.links_json_path, graph.to_json())
        return self.links_json_path

    def save_image_database(self, images: Mapping[str, Image]) -> Path:
        """Write `{name: {"link": ..., "alt": ...}}` into the image directory."""

        ensure_directory(self.img_save_dir)
        payload = {name: image.to_json() for name, image in images.items()}
        self._atomic_write_json(self.image_database_path, payload)
        return self.image_database_path

    def save_crawl_stats(self, stats: Mapping[str, Any]) -> Path:
        self._atomic_write_json(self.crawl_stats_path, dict(stats))
        return self.crawl_stats_path

    @staticmethod
    def load_json(path: str | Path) -> Any:
        return json.loads(Path(path).read_text(encoding="utf-8"))

    @staticmethod
    def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
        path.parent.mkdir(parents=True, exist_ok=True)
        content = json.dumps(payload, ensure_ascii=False, indent=JSON_INDENT, sort_keys=True) + "\n"
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


__all__ = ["Storage"]
