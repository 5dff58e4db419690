"""Thread-safe frontier of pending link paths."""

from __future__ import annotations

from collections import deque
from typing import Iterable

from .locks import ReadWriteLock
from .types import FrontierOrder, LinkPath


class Frontier:
    """Worklist shared by crawl workers.

    - Thread-safe `push` and non-blocking `pop`; workers poll an empty frontier.
    - Never drops entries and never deduplicates them: deciding whether a URL is
      worth visiting is the link graph's job.
    - `LIFO` order (the default) pops the most recently pushed entry.
    """

    def __init__(
        self,
        order: FrontierOrder | str = FrontierOrder.LIFO,
        *,
        initial: Iterable[LinkPath] | None = None,
    ) -> None:
        self.order = FrontierOrder(order)

        self._entries: deque[LinkPath] = deque()
        self._lock = ReadWriteLock()

        self._pushed_count = 0
        self._popped_count = 0

        if initial:
            self.push_many(initial)

    def push(self, entry: LinkPath) -> None:
        """Append one entry."""

        with self._lock.write():
            self._entries.append(entry)
            self._pushed_count += 1

    def push_many(self, entries: Iterable[LinkPath]) -> int:
        """Append entries in order and return how many were pushed."""

        batch = list(entries)
        if not batch:
            return 0
        with self._lock.write():
            self._entries.extend(batch)
            self._pushed_count += len(batch)
        return len(batch)

    def pop(self) -> LinkPath | None:
        """Remove and return one entry, or `None` when the frontier is empty."""

        with self._lock.write():
            if not self._entries:
                return None
            if self.order == FrontierOrder.LIFO:
                entry = self._entries.pop()
            else:
                entry = self._entries.popleft()
            self._popped_count += 1
            return entry

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._entries)

    def empty(self) -> bool:
        """Return True if no entry is pending."""

        return len(self) == 0

    def pending(self) -> list[LinkPath]:
        """Return a snapshot of pending entries in pop order."""

        with self._lock.read():
            entries = list(self._entries)
        if self.order == FrontierOrder.LIFO:
            entries.reverse()
        return entries

    def snapshot(self) -> dict[str, int | str]:
        """Return frontier counters for logs/stats reporting."""

        with self._lock.read():
            return {
                "order": self.order.value,
                "queue_size": len(self._entries),
                "pushed": self._pushed_count,
                "popped": self._popped_count,
            }


__all__ = ["Frontier"]
