"""Thread-safe crawl statistics aggregation."""

from __future__ import annotations

from collections import defaultdict
from dataclasses import replace
from datetime import datetime, timezone
import threading
from typing import Any, Mapping

from .types import CrawlStats, PageExtraction


class StatsCollector:
    """Collect crawler runtime counters from concurrent workers."""

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._lock = threading.Lock()
        self._core = base or CrawlStats()

        self._frontier_snapshot: dict[str, Any] = {}
        self._failure_type_counts: dict[str, int] = defaultdict(int)
        self._links_found_total = 0
        self._images_found_total = 0
        self._titles_found_total = 0

    def record_extraction(self, extraction: PageExtraction) -> None:
        """Record one started fetch and what it produced."""

        with self._lock:
            self._core.pages_fetched += 1
            if extraction.is_empty:
                self._core.pages_empty += 1
            self._links_found_total += len(extraction.links)
            self._images_found_total += len(extraction.images)
            self._titles_found_total += len(extraction.titles)

    def record_revisit(self) -> None:
        with self._lock:
            self._core.pages_revisited += 1

    def record_merge(self) -> None:
        with self._lock:
            self._core.pages_merged += 1

    def record_enqueue(self, enqueued: int, skipped_visited: int) -> None:
        """Record frontier pushes and links dropped as already visited."""

        with self._lock:
            self._core.links_enqueued += enqueued
            self._core.links_skipped_visited += skipped_visited

    def record_worker_failure(self, error_type: str) -> None:
        with self._lock:
            self._core.worker_failures += 1
            self._failure_type_counts[error_type] += 1

    def record_images(self, saved: int, failed: int) -> None:
        with self._lock:
            self._core.images_saved += saved
            self._core.images_failed += failed

    def record_frontier_snapshot(self, snapshot: Mapping[str, Any]) -> None:
        """Attach latest frontier snapshot for diagnostics."""

        with self._lock:
            self._frontier_snapshot = dict(snapshot)

    def start(self) -> None:
        """Mark crawl as started now."""

        with self._lock:
            self._core.start()

    def finish(self) -> None:
        """Mark crawl as finished."""

        with self._lock:
            self._core.finish()

    def core(self) -> CrawlStats:
        """Return a copy of the core `CrawlStats` record."""

        with self._lock:
            return replace(self._core)

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable summary payload."""

        with self._lock:
            core = self._core.to_json()

            start = _parse_iso_utc(self._core.started_at)
            end = (
                _parse_iso_utc(self._core.finished_at)
                if self._core.finished_at
                else datetime.now(timezone.utc)
            )
            duration_seconds = max(0.0, (end - start).total_seconds())

            return {
                **core,
                "duration_seconds": duration_seconds,
                "throughput": {
                    "pages_per_second": (
                        self._core.pages_fetched / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                },
                "extraction": {
                    "links_found_total": self._links_found_total,
                    "images_found_total": self._images_found_total,
                    "titles_found_total": self._titles_found_total,
                },
                "frontier": dict(self._frontier_snapshot),
                "worker_failure_types": dict(self._failure_type_counts),
            }


def _parse_iso_utc(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = ["StatsCollector"]
