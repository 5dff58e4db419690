"""Crawl orchestration: one shared state, N worker threads, optional observer."""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
import threading
from typing import Any

from .config import CrawlConfig
from .extractor import PageExtractor, PageFetchExtractor
from .link_graph import LinkGraph, LinkGraphError
from .state import CrawlerState
from .stats import StatsCollector
from .status import StatusReporter
from .url import normalize_url
from .worker import CrawlWorker


LOGGER = logging.getLogger(__name__)


@dataclass(frozen=True, slots=True)
class WorkerFailure:
    """An exception that ended one worker thread."""

    worker: str
    error_type: str
    message: str
    fatal: bool = False


@dataclass(slots=True)
class CrawlResult:
    """Outcome of one crawl run."""

    link_graph: LinkGraph
    frontier_remaining: int
    failures: list[WorkerFailure] = field(default_factory=list)
    stats: dict[str, Any] = field(default_factory=dict)

    @property
    def consistent(self) -> bool:
        """False when any worker hit an internal consistency error."""

        return not any(failure.fatal for failure in self.failures)


class Crawler:
    """Run workers against one `CrawlerState` and hand back the final graph."""

    def __init__(
        self,
        config: CrawlConfig,
        *,
        extractor: PageFetchExtractor | None = None,
        stats: StatsCollector | None = None,
    ) -> None:
        self.config = config
        self.extractor = extractor or PageExtractor(config)
        self.stats = stats or StatsCollector()

        self._owns_extractor = extractor is None
        self._failures: list[WorkerFailure] = []
        self._failures_lock = threading.Lock()

    def seed_url(self) -> str:
        if not self.config.normalize_links:
            return self.config.seed_url
        return normalize_url(self.config.seed_url) or self.config.seed_url

    def run(self) -> CrawlResult:
        self.stats.start()
        seed_url = self.seed_url()
        state = CrawlerState.from_seed(
            seed_url,
            self.config.max_links,
            order=self.config.frontier_order,
        )
        stop_event = threading.Event()
        with self._failures_lock:
            self._failures = []

        workers = [
            CrawlWorker(
                f"crawler-worker-{idx}",
                state,
                self.extractor,
                poll_interval_seconds=self.config.poll_interval_seconds,
                stats=self.stats,
                stop_event=stop_event,
            )
            for idx in range(self.config.workers)
        ]
        threads = [
            threading.Thread(target=self._run_worker, args=(worker,), name=worker.name, daemon=True)
            for worker in workers
        ]

        reporter: StatusReporter | None = None
        reporter_thread: threading.Thread | None = None
        if self.config.log_status:
            reporter = StatusReporter(state, interval_seconds=self.config.status_interval_seconds)
            reporter_thread = threading.Thread(
                target=reporter.run,
                name="crawler-status",
                daemon=True,
            )

        LOGGER.info(
            "Starting crawl: seed=%s, max_links=%d, workers=%d, order=%s",
            seed_url,
            self.config.max_links,
            self.config.workers,
            state.frontier.order.value,
        )

        try:
            for thread in threads:
                thread.start()
            if reporter_thread is not None:
                reporter_thread.start()

            for thread in threads:
                thread.join()
        except KeyboardInterrupt:
            stop_event.set()
            raise
        finally:
            if reporter is not None and reporter_thread is not None:
                reporter.stop()
                reporter_thread.join()
            if self._owns_extractor and isinstance(self.extractor, PageExtractor):
                self.extractor.close()

        frontier_remaining = len(state.frontier)
        if frontier_remaining:
            LOGGER.info("Discarding %d frontier entries left at shutdown", frontier_remaining)

        self.stats.record_frontier_snapshot(state.frontier.snapshot())
        self.stats.finish()

        LOGGER.info(
            "Crawl finished: %d links found, %d worker failures",
            len(state.link_graph),
            len(self._failures),
        )

        return CrawlResult(
            link_graph=state.link_graph,
            frontier_remaining=frontier_remaining,
            failures=list(self._failures),
            stats=self.stats.to_json(),
        )

    def _run_worker(self, worker: CrawlWorker) -> None:
        try:
            worker.run()
        except LinkGraphError as exc:
            LOGGER.critical("%s stopped on inconsistent link graph: %s", worker.name, exc)
            self._record_failure(worker, exc, fatal=True)
        except Exception as exc:
            LOGGER.exception("%s failed", worker.name)
            self._record_failure(worker, exc, fatal=False)

    def _record_failure(self, worker: CrawlWorker, exc: Exception, *, fatal: bool) -> None:
        failure = WorkerFailure(
            worker=worker.name,
            error_type=exc.__class__.__name__,
            message=str(exc),
            fatal=fatal,
        )
        self.stats.record_worker_failure(failure.error_type)
        with self._failures_lock:
            self._failures.append(failure)


__all__ = [
    "CrawlResult",
    "Crawler",
    "WorkerFailure",
]
