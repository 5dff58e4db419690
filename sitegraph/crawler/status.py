"""Read-only progress observer for a running crawl."""

from __future__ import annotations

import logging
import threading

from tqdm import tqdm

from .state import CrawlerState


LOGGER = logging.getLogger(__name__)


class StatusReporter:
    """Render links found / queue depth on a `tqdm` bar at a fixed interval.

    The reporter only reads the crawler state. It stops by itself once the
    budget is exhausted, or when `stop()` is called after the workers joined.
    """

    def __init__(
        self,
        state: CrawlerState,
        *,
        interval_seconds: float,
        disable: bool | None = None,
    ) -> None:
        self.state = state
        self.interval_seconds = interval_seconds
        self.disable = disable
        self._stop_event = threading.Event()

    def stop(self) -> None:
        self._stop_event.set()

    def run(self) -> None:
        progress = tqdm(
            total=self.state.max_links,
            desc="Finding links",
            unit="link",
            disable=self.disable,
        )
        try:
            while True:
                snapshot = self.state.snapshot()
                progress.n = min(snapshot["links_found"], self.state.max_links)
                progress.set_postfix(queue=snapshot["queue_size"], in_flight=snapshot["in_flight"])
                progress.refresh()

                if self.state.budget_exhausted() or self._stop_event.wait(self.interval_seconds):
                    break
        finally:
            progress.close()

        LOGGER.info("All links found: %d", len(self.state.link_graph))


__all__ = ["StatusReporter"]
