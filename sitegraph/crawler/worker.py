"""Crawl loop run by each worker thread."""

from __future__ import annotations

from enum import Enum
import logging
import threading

from .extractor import PageFetchExtractor
from .stats import StatsCollector
from .state import CrawlerState
from .types import LinkPath, PageExtraction, Visit


LOGGER = logging.getLogger(__name__)


class WorkerState(str, Enum):
    """States of one worker's crawl loop."""

    CHECK_BUDGET = "check_budget"
    DEQUEUE = "dequeue"
    WAIT = "wait"
    FETCH = "fetch"
    MERGE = "merge"
    DONE = "done"


class CrawlWorker:
    """Pull link paths from the frontier, extract them and merge the results.

    The fetch runs without any lock held. The worker stops once it sees the
    budget exhausted, or once the frontier is empty with no visit in flight.
    """

    def __init__(
        self,
        name: str,
        state: CrawlerState,
        extractor: PageFetchExtractor,
        *,
        poll_interval_seconds: float,
        stats: StatsCollector | None = None,
        stop_event: threading.Event | None = None,
    ) -> None:
        self.name = name
        self.state = state
        self.extractor = extractor
        self.poll_interval_seconds = poll_interval_seconds
        self.stats = stats or StatsCollector()
        self._stop_event = stop_event or threading.Event()

        self.phase = WorkerState.CHECK_BUDGET
        self.fetches_started = 0

    def run(self) -> None:
        visit: Visit | None = None
        extraction: PageExtraction | None = None

        while self.phase != WorkerState.DONE:
            if self.phase == WorkerState.CHECK_BUDGET:
                if self.state.budget_exhausted():
                    LOGGER.debug("%s: budget of %d links reached", self.name, self.state.max_links)
                    self.phase = WorkerState.DONE
                else:
                    self.phase = WorkerState.DEQUEUE

            elif self.phase == WorkerState.DEQUEUE:
                visit = self.state.begin_visit()
                if visit is not None:
                    self.phase = WorkerState.FETCH
                elif self.state.budget_exhausted():
                    self.phase = WorkerState.CHECK_BUDGET
                elif self.state.drained():
                    LOGGER.debug("%s: frontier drained", self.name)
                    self.phase = WorkerState.DONE
                else:
                    self.phase = WorkerState.WAIT

            elif self.phase == WorkerState.WAIT:
                # The stop event is only set by the coordinator on early shutdown.
                if self._stop_event.wait(self.poll_interval_seconds):
                    self.phase = WorkerState.DONE
                else:
                    self.phase = WorkerState.CHECK_BUDGET

            elif self.phase == WorkerState.FETCH:
                assert visit is not None
                try:
                    extraction = self._fetch(visit)
                except BaseException:
                    self.state.end_visit(visit)
                    raise
                self.phase = WorkerState.MERGE

            elif self.phase == WorkerState.MERGE:
                assert visit is not None
                try:
                    self._merge(visit.path, extraction)
                finally:
                    self.state.end_visit(visit)
                    visit = None
                    extraction = None
                self.phase = WorkerState.CHECK_BUDGET

    def _fetch(self, visit: Visit) -> PageExtraction | None:
        """Extract the page, or return None for a revisit."""

        if visit.revisit:
            self.stats.record_revisit()
            return None

        self.fetches_started += 1
        extraction = self.extractor.extract(visit.path.child)
        self.stats.record_extraction(extraction)
        return extraction

    def _merge(self, entry: LinkPath, extraction: PageExtraction | None) -> None:
        graph = self.state.link_graph

        with self.state.merging():
            if extraction is None:
                # Reached again through another parent: record only the new edge.
                graph.update(entry.child, entry.parent, [], [], [])
                self.stats.record_merge()
                return

            graph.update(
                entry.child,
                entry.parent,
                extraction.links,
                extraction.images,
                extraction.titles,
            )

            new_paths: list[LinkPath] = []
            skipped = 0
            seen: set[str] = set()
            for link in extraction.links:
                if link in seen:
                    continue
                seen.add(link)
                if graph.visited(link):
                    LOGGER.debug("Link already found: %s", link)
                    skipped += 1
                    continue
                new_paths.append(LinkPath(child=link, parent=entry.child))

            self.state.frontier.push_many(new_paths)

        self.stats.record_merge()
        self.stats.record_enqueue(len(new_paths), skipped)


__all__ = [
    "CrawlWorker",
    "WorkerState",
]
