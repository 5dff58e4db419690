"""URL fetching over `requests` with one session per worker thread."""

from __future__ import annotations

import threading
import time

import requests

from .config import CrawlConfig
from .types import FetchResult


class Fetcher:
    """Fetch URLs with a single GET attempt and the configured timeout.

    Each worker thread gets its own `requests.Session`, so connection pools are
    never shared across threads.
    """

    def __init__(self, config: CrawlConfig) -> None:
        self.config = config

        self._thread_local = threading.local()
        self._sessions: list[requests.Session] = []
        self._sessions_lock = threading.Lock()

        self._closed = False

    def fetch(self, url: str) -> FetchResult:
        """Fetch one URL; transport errors are returned, never raised."""

        if self._closed:
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                error="Fetcher is closed",
            )

        started = time.perf_counter()
        session = self._thread_local_session()

        try:
            response = session.get(
                url,
                headers=self.config.headers(),
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
            )
            elapsed_ms = int((time.perf_counter() - started) * 1000)

            return FetchResult(
                requested_url=url,
                final_url=response.url or url,
                status_code=response.status_code,
                content_type=response.headers.get("Content-Type"),
                body=response.content if response.content is not None else b"",
                elapsed_ms=elapsed_ms,
                error=None,
            )
        except requests.RequestException as exc:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                elapsed_ms=elapsed_ms,
                error=f"{exc.__class__.__name__}: {exc}",
            )

    def close(self) -> None:
        """Close every session opened by worker threads."""

        self._closed = True
        with self._sessions_lock:
            sessions, self._sessions = self._sessions, []
        for session in sessions:
            session.close()

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _thread_local_session(self) -> requests.Session:
        session = getattr(self._thread_local, "session", None)
        if session is None:
            session = requests.Session()
            self._thread_local.session = session
            with self._sessions_lock:
                self._sessions.append(session)
        return session


__all__ = ["Fetcher"]
