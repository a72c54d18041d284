"""Thread-safe FIFO frontier with visitation registry and crawl limits."""

from __future__ import annotations

import threading
import time
from collections import deque
from dataclasses import dataclass
from enum import Enum
from typing import Iterable

from .config import CrawlConfig
from .types import WorkItem
from .url import is_same_domain, is_url_in_scope, normalize_url


class EnqueueStatus(str, Enum):
    """Result status for frontier enqueue attempts."""

    ENQUEUED = "enqueued"
    SKIPPED_INVALID_URL = "skipped_invalid_url"
    SKIPPED_OUT_OF_SCOPE = "skipped_out_of_scope"
    SKIPPED_DEPTH = "skipped_depth"
    SKIPPED_SEEN = "skipped_seen"
    SKIPPED_QUEUED = "skipped_queued"
    SKIPPED_TERMINAL = "skipped_terminal"
    SKIPPED_BUDGET = "skipped_budget"
    SKIPPED_CLOSED = "skipped_closed"


@dataclass(frozen=True, slots=True)
class EnqueueResult:
    """Outcome of one enqueue attempt."""

    status: EnqueueStatus
    normalized_url: str | None = None
    item: WorkItem | None = None

    @property
    def accepted(self) -> bool:
        return self.status == EnqueueStatus.ENQUEUED


class Frontier:
    """Work queue shared by crawl workers.

    - Strict insertion order: depth d+1 links are always queued after the
      depth-d items that were already waiting, so traversal is breadth-first.
    - A URL is marked visited the moment it is popped, which is the only
      guard against two workers fetching the same URL.
    - Admission rejects visited, queued and skipped URLs, items deeper than
      `max_depth`, and everything once `max_pages` pages have completed.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        domain: str | None = None,
    ) -> None:
        self.config = config
        self.domain = domain or config.domain

        self._queue: deque[WorkItem] = deque()
        self._lock = threading.Lock()
        self._not_empty = threading.Condition(self._lock)
        self._all_done = threading.Condition(self._lock)
        self._unfinished = 0

        self._queued_urls: set[str] = set()
        self._visited_urls: set[str] = set()
        self._skipped_urls: set[str] = set()
        self._completed_pages = 0

        self._enqueued_count = 0
        self._dequeued_count = 0
        self._skipped_seen_count = 0
        self._skipped_queued_count = 0
        self._skipped_terminal_count = 0
        self._skipped_depth_count = 0
        self._skipped_budget_count = 0
        self._skipped_invalid_count = 0
        self._skipped_out_of_scope_count = 0

        self._closed = False

    def seed(self, seed_url: str) -> EnqueueResult:
        """Push the seed URL at depth 0.

        Only the domain rule applies to the seed. Resource and admin-path
        patterns filter discovered links.
        """

        return self._admit(seed_url, depth=0, parent_url=None, filter_resources=False)

    def push(
        self,
        url: str,
        *,
        depth: int,
        parent_url: str | None = None,
    ) -> EnqueueResult:
        """Attempt to enqueue one URL with admission rules enforced."""

        return self._admit(url, depth=depth, parent_url=parent_url, filter_resources=True)

    def _admit(
        self,
        url: str,
        *,
        depth: int,
        parent_url: str | None,
        filter_resources: bool,
    ) -> EnqueueResult:
        normalized = normalize_url(url)
        if not normalized:
            with self._lock:
                self._skipped_invalid_count += 1
            return EnqueueResult(EnqueueStatus.SKIPPED_INVALID_URL)

        if filter_resources:
            in_scope = is_url_in_scope(normalized, domain=self.domain)
        else:
            in_scope = is_same_domain(normalized, self.domain)
        if not in_scope:
            with self._lock:
                self._skipped_out_of_scope_count += 1
            return EnqueueResult(EnqueueStatus.SKIPPED_OUT_OF_SCOPE, normalized_url=normalized)

        if depth < 0 or depth > self.config.max_depth:
            with self._lock:
                self._skipped_depth_count += 1
            return EnqueueResult(EnqueueStatus.SKIPPED_DEPTH, normalized_url=normalized)

        with self._lock:
            if self._closed:
                return EnqueueResult(EnqueueStatus.SKIPPED_CLOSED, normalized_url=normalized)

            if normalized in self._visited_urls:
                self._skipped_seen_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_SEEN, normalized_url=normalized)

            if normalized in self._queued_urls:
                self._skipped_queued_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_QUEUED, normalized_url=normalized)

            if normalized in self._skipped_urls:
                self._skipped_terminal_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_TERMINAL, normalized_url=normalized)

            if self._completed_pages >= self.config.max_pages:
                self._skipped_budget_count += 1
                return EnqueueResult(EnqueueStatus.SKIPPED_BUDGET, normalized_url=normalized)

            item = WorkItem(url=normalized, depth=depth, parent_url=parent_url)
            self._queue.append(item)
            self._queued_urls.add(normalized)
            self._unfinished += 1
            self._enqueued_count += 1
            self._not_empty.notify()

        return EnqueueResult(
            EnqueueStatus.ENQUEUED,
            normalized_url=normalized,
            item=item,
        )

    def push_many(
        self,
        urls: Iterable[str],
        *,
        depth: int,
        parent_url: str | None = None,
    ) -> list[EnqueueResult]:
        """Attempt to enqueue multiple URLs, preserving input order."""

        return [self.push(url, depth=depth, parent_url=parent_url) for url in urls]

    def pop(self, *, block: bool = True, timeout: float | None = None) -> WorkItem | None:
        """Pop the oldest item and mark its URL visited.

        Returns `None` when no item is available under the requested blocking mode.
        """

        with self._not_empty:
            if block:
                deadline = None if timeout is None else time.monotonic() + timeout
                while not self._queue:
                    if self._closed:
                        return None
                    if deadline is None:
                        self._not_empty.wait()
                        continue
                    remaining = deadline - time.monotonic()
                    if remaining <= 0:
                        return None
                    self._not_empty.wait(remaining)
            elif not self._queue:
                return None

            item = self._queue.popleft()
            self._queued_urls.discard(item.url)
            self._visited_urls.add(item.url)
            self._dequeued_count += 1
            return item

    def task_done(self) -> None:
        """Mark one popped item as fully processed."""

        with self._all_done:
            if self._unfinished <= 0:
                raise ValueError("task_done() called too many times")
            self._unfinished -= 1
            if self._unfinished == 0:
                self._all_done.notify_all()

    def join(self, timeout: float | None = None) -> bool:
        """Block until every pushed item is done. Returns False on timeout."""

        with self._all_done:
            if timeout is None:
                while self._unfinished:
                    self._all_done.wait()
                return True
            return self._all_done.wait_for(lambda: self._unfinished == 0, timeout)

    def mark_page_completed(self) -> int:
        """Count one recorded page toward the `max_pages` admission budget."""

        with self._lock:
            self._completed_pages += 1
            return self._completed_pages

    def mark_skipped(self, url: str) -> None:
        """Remember a permanently skipped URL so it is never admitted again."""

        normalized = normalize_url(url) or url
        with self._lock:
            self._skipped_urls.add(normalized)

    def close(self) -> None:
        """Close frontier to future enqueue attempts and wake idle workers."""

        with self._lock:
            self._closed = True
            self._not_empty.notify_all()

    @property
    def closed(self) -> bool:
        """Whether frontier has been closed for new enqueue attempts."""

        with self._lock:
            return self._closed

    def qsize(self) -> int:
        with self._lock:
            return len(self._queue)

    def empty(self) -> bool:
        with self._lock:
            return not self._queue

    def is_visited(self, url: str) -> bool:
        normalized = normalize_url(url) or url
        with self._lock:
            return normalized in self._visited_urls

    def snapshot(self) -> dict[str, int | bool]:
        """Return frontier counters for logs/stats reporting."""

        with self._lock:
            return {
                "closed": self._closed,
                "queue_size": len(self._queue),
                "visited_urls": len(self._visited_urls),
                "completed_pages": self._completed_pages,
                "enqueued": self._enqueued_count,
                "dequeued": self._dequeued_count,
                "skipped_seen": self._skipped_seen_count,
                "skipped_queued": self._skipped_queued_count,
                "skipped_terminal": self._skipped_terminal_count,
                "skipped_depth": self._skipped_depth_count,
                "skipped_budget": self._skipped_budget_count,
                "skipped_invalid": self._skipped_invalid_count,
                "skipped_out_of_scope": self._skipped_out_of_scope_count,
            }


__all__ = [
    "EnqueueResult",
    "EnqueueStatus",
    "Frontier",
]
