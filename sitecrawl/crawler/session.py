"""Mutable state of one crawl: result lists, page cap and cancellation."""

from __future__ import annotations

import logging
import threading
import time

from .config import CrawlConfig
from .frontier import Frontier
from .types import FailureRecord, PageRecord, SkipRecord


LOGGER = logging.getLogger(__name__)


class CrawlSession:
    """Aggregate root shared by all workers of one crawl.

    A URL lands in at most one of `pages`, `skipped` and `failed`; a second
    terminal record for the same URL is refused. `pages` never grows past
    `max_pages`.
    """

    def __init__(self, config: CrawlConfig, frontier: Frontier) -> None:
        self.config = config
        self.frontier = frontier
        self.start_url = config.seed_url
        self.domain = frontier.domain

        self._lock = threading.Lock()
        self._pages: list[PageRecord] = []
        self._skipped: list[SkipRecord] = []
        self._failed: list[FailureRecord] = []
        self._recorded_urls: set[str] = set()

        self._cancel_event = threading.Event()
        self._started = time.perf_counter()

    def record_page(self, page: PageRecord) -> bool:
        """Append a crawled page. Returns False when the cap or dedup refuses it."""

        with self._lock:
            if len(self._pages) >= self.config.max_pages:
                LOGGER.debug("Page cap reached, dropping %s", page.url)
                return False
            if not self._claim(page.url):
                return False
            self._pages.append(page)

        self.frontier.mark_page_completed()
        return True

    def record_skip(self, record: SkipRecord) -> bool:
        with self._lock:
            if not self._claim(record.url):
                return False
            self._skipped.append(record)

        self.frontier.mark_skipped(record.url)
        return True

    def record_failure(self, record: FailureRecord) -> bool:
        with self._lock:
            if not self._claim(record.url):
                return False
            self._failed.append(record)
        return True

    def _claim(self, url: str) -> bool:
        # Caller holds self._lock.
        if url in self._recorded_urls:
            LOGGER.warning("Refusing second result record for %s", url)
            return False
        self._recorded_urls.add(url)
        return True

    @property
    def page_count(self) -> int:
        with self._lock:
            return len(self._pages)

    def page_cap_reached(self) -> bool:
        return self.page_count >= self.config.max_pages

    def cancel(self) -> None:
        self._cancel_event.set()

    @property
    def cancelled(self) -> bool:
        return self._cancel_event.is_set()

    def should_stop(self) -> bool:
        """True once no further fetches should be started."""

        return self.cancelled or self.page_cap_reached()

    def elapsed_ms(self) -> int:
        return int((time.perf_counter() - self._started) * 1000)

    def snapshot(self) -> tuple[list[PageRecord], list[SkipRecord], list[FailureRecord]]:
        """Copies of the three ordered result lists."""

        with self._lock:
            return list(self._pages), list(self._skipped), list(self._failed)


__all__ = ["CrawlSession"]
