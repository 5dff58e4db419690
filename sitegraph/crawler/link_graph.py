"""Canonical store of discovered pages and their parent/child edges."""

from __future__ import annotations

import itertools
from typing import Any, Iterable, Iterator

from .locks import ReadWriteLock
from .types import Image, JSONDict, Link, LinkId


class LinkGraphError(RuntimeError):
    """The graph index and its records disagree.

    Signals a broken invariant inside the crawler, never an unreliable site.
    """


class LinkGraph:
    """Thread-safe mapping of URL -> `LinkId` -> `Link`.

    Invariants:
    - each URL is claimed at most once and keeps its id for the graph's lifetime;
    - records are never removed, so `len()` never decreases;
    - every id in a `children`/`parents` list names an existing record;
    - edge lists hold each neighbour once;
    - images and titles keep the order and repeats of one extraction, and a
      later merge only appends values the page does not hold yet, so
      re-merging the same page is a no-op.

    Ids come from a counter owned by the graph: the first claimed URL is `0`.
    """

    def __init__(self) -> None:
        self._lock = ReadWriteLock()
        self._links: dict[LinkId, Link] = {}
        self._link_ids: dict[str, LinkId] = {}
        self._next_id = itertools.count()

    def visited(self, url: str) -> bool:
        """Return True iff `url` already has an assigned id."""

        with self._lock.read():
            return url in self._link_ids

    def claim(self, url: str) -> tuple[LinkId, bool]:
        """Return the id of `url`, assigning one if needed.

        The second item is True when this call created the record.
        """

        with self._lock.write():
            link, created = self._claim_locked(url)
            return link.id, created

    def update(
        self,
        url: str,
        parent_url: str | None,
        discovered_children: Iterable[str],
        images: Iterable[Image],
        titles: Iterable[str],
    ) -> LinkId:
        """Merge one page's extraction results and return the page's id.

        Only children already present in the graph become edges; the rest are
        expected to be queued by the caller and linked once visited.
        """

        children = list(discovered_children)
        with self._lock.write():
            link, _ = self._claim_locked(url)

            if parent_url is not None:
                parent_id = self._link_ids.get(parent_url)
                if parent_id is not None:
                    parent = self._record_locked(parent_id)
                    _append_unique(link.parents, parent_id)
                    _append_unique(parent.children, link.id)

            for child_url in children:
                child_id = self._link_ids.get(child_url)
                if child_id is not None:
                    _append_unique(link.children, child_id)

            _extend_new(link.images, images)
            _extend_new(link.titles, titles)

            return link.id

    def link_id(self, url: str) -> LinkId | None:
        """Return the id assigned to `url`, if any."""

        with self._lock.read():
            return self._link_ids.get(url)

    def get(self, url: str) -> Link | None:
        """Return a copy of the record for `url`, if any."""

        with self._lock.read():
            link_id = self._link_ids.get(url)
            if link_id is None:
                return None
            return self._record_locked(link_id).copy()

    def __getitem__(self, link_id: LinkId) -> Link:
        with self._lock.read():
            link = self._links.get(link_id)
            if link is None:
                raise KeyError(link_id)
            return link.copy()

    def __contains__(self, url: object) -> bool:
        if not isinstance(url, str):
            return False
        return self.visited(url)

    def __len__(self) -> int:
        with self._lock.read():
            return len(self._links)

    def __iter__(self) -> Iterator[tuple[LinkId, Link]]:
        """Yield `(id, link)` pairs in id order.

        Each call iterates its own snapshot of record copies, so iteration is
        restartable and unaffected by later merges.
        """

        with self._lock.read():
            snapshot = [link.copy() for _, link in sorted(self._links.items())]
        return ((link.id, link) for link in snapshot)

    def urls(self) -> list[str]:
        """Return claimed URLs in id order."""

        with self._lock.read():
            return [url for url, _ in sorted(self._link_ids.items(), key=lambda item: item[1])]

    def to_json(self) -> JSONDict:
        """Serialize both maps, keyed by id and by URL."""

        with self._lock.read():
            return {
                "links": {str(link_id): link.to_json() for link_id, link in sorted(self._links.items())},
                "link_ids": dict(self._link_ids),
            }

    def _claim_locked(self, url: str) -> tuple[Link, bool]:
        link_id = self._link_ids.get(url)
        if link_id is not None:
            return self._record_locked(link_id), False

        new_id = next(self._next_id)
        if new_id in self._links:
            raise LinkGraphError(f"Link id {new_id} already assigned while claiming {url!r}")
        link = Link(id=new_id, url=url)
        self._links[new_id] = link
        self._link_ids[url] = new_id
        return link, True

    def _record_locked(self, link_id: LinkId) -> Link:
        link = self._links.get(link_id)
        if link is None:
            raise LinkGraphError(f"Link id {link_id} is indexed but has no record")
        return link


def _append_unique(values: list[Any], value: Any) -> None:
    if value not in values:
        values.append(value)


def _extend_new(values: list[Any], incoming: Iterable[Any]) -> None:
    """Append the incoming values not already stored, keeping repeats among them."""

    existing = list(values)
    values.extend(value for value in incoming if value not in existing)


__all__ = [
    "LinkGraph",
    "LinkGraphError",
]
