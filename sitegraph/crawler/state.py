"""Shared state for one crawl run."""

from __future__ import annotations

from contextlib import contextmanager
import threading
from typing import Iterator

from .frontier import Frontier
from .link_graph import LinkGraph
from .types import FrontierOrder, LinkPath, Visit


class CrawlerState:
    """Frontier, link graph and page budget shared by every worker of a run.

    The frontier and the graph carry their own reader-writer locks. On top of
    them a coordination lock makes "check budget, pop" and "merge, push" atomic
    with respect to each other, and tracks the popped entries still being
    visited along with the URLs they are fetching. Lock order is always
    coordination lock first.
    """

    def __init__(self, frontier: Frontier, link_graph: LinkGraph, max_links: int) -> None:
        if max_links <= 0:
            raise ValueError("max_links must be > 0")

        self.frontier = frontier
        self.link_graph = link_graph
        self._max_links = max_links

        self._coordination_lock = threading.Lock()
        self._in_flight = 0
        self._fetching: set[str] = set()

    @classmethod
    def from_seed(
        cls,
        seed_url: str,
        max_links: int,
        *,
        order: FrontierOrder | str = FrontierOrder.LIFO,
    ) -> "CrawlerState":
        frontier = Frontier(order, initial=[LinkPath(child=seed_url)])
        return cls(frontier, LinkGraph(), max_links)

    @property
    def max_links(self) -> int:
        return self._max_links

    @property
    def in_flight(self) -> int:
        with self._coordination_lock:
            return self._in_flight

    def budget_exhausted(self) -> bool:
        """True once the graph holds `max_links` pages."""

        return len(self.link_graph) >= self._max_links

    def begin_visit(self) -> Visit | None:
        """Pop one entry and mark it in flight.

        Returns `None` when the frontier is empty or the budget is exhausted.
        An entry whose URL is already in the graph, or is being fetched by
        another visit, comes back as a revisit.
        """

        with self._coordination_lock:
            if self.budget_exhausted():
                return None
            entry = self.frontier.pop()
            if entry is None:
                return None

            self._in_flight += 1
            if entry.child in self._fetching or self.link_graph.visited(entry.child):
                return Visit(entry, revisit=True)
            self._fetching.add(entry.child)
            return Visit(entry)

    @contextmanager
    def merging(self) -> Iterator[None]:
        """Hold the coordination lock while a visit's results are merged."""

        with self._coordination_lock:
            yield

    def end_visit(self, visit: Visit) -> None:
        """Mark one in-flight visit as finished."""

        with self._coordination_lock:
            if self._in_flight <= 0:
                raise RuntimeError("end_visit() called without a matching begin_visit()")
            self._in_flight -= 1
            if not visit.revisit:
                self._fetching.discard(visit.path.child)

    def drained(self) -> bool:
        """True when the frontier is empty and no visit is in flight.

        A visit pushes its new links before it ends, so a drained crawl can
        never be refilled.
        """

        with self._coordination_lock:
            return self._in_flight == 0 and self.frontier.empty()

    def snapshot(self) -> dict[str, int]:
        """Return progress counters for the status observer."""

        return {
            "links_found": len(self.link_graph),
            "queue_size": len(self.frontier),
            "in_flight": self.in_flight,
            "max_links": self._max_links,
        }


__all__ = ["CrawlerState"]
