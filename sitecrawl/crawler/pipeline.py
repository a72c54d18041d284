"""End-to-end crawl orchestration."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable

from .config import CrawlConfig
from .constants import ROBOTS_BLOCKED_REASON
from .errors import SeedURLError
from .fetcher import Fetcher
from .frontier import Frontier
from .parsers import HTMLParser
from .session import CrawlSession
from .stats import StatsCollector
from .storage import ResultStore
from .types import (
    CrawlResult,
    Decision,
    FailureRecord,
    FetchOutcome,
    PageRecord,
    SkipRecord,
    WorkItem,
)
from .url import host_from_url, normalize_url


LOGGER = logging.getLogger(__name__)

WORKER_POLL_SECONDS = 0.5
JOIN_POLL_SECONDS = 0.1


class CrawlPipeline:
    """Orchestrates frontier, fetcher, parser, session, stats and result store."""

    def __init__(
        self,
        config: CrawlConfig,
        *,
        fetcher: Fetcher | None = None,
        html_parser: HTMLParser | None = None,
        stats: StatsCollector | None = None,
        store: ResultStore | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config

        self.fetcher = fetcher or Fetcher(config, sleep=sleep)
        self.html_parser = html_parser or HTMLParser()
        self.stats = stats or StatsCollector()
        self.store = store or ResultStore(config.output_dir)
        self._sleep = sleep

        self._owns_fetcher = fetcher is None

        self._session: CrawlSession | None = None
        self._session_lock = threading.Lock()
        self._cancel_requested = threading.Event()

    def run(self) -> CrawlResult:
        """Crawl from the seed until the frontier drains, the page cap is hit or
        the crawl is cancelled, then persist results.

        Raises `SeedURLError` before doing any work if the seed is unusable.
        """

        seed_url = normalize_url(self.config.seed_url)
        domain = host_from_url(seed_url or "")
        if not seed_url or not domain:
            raise SeedURLError(self.config.seed_url)

        frontier = Frontier(self.config, domain=domain)
        session = CrawlSession(self.config, frontier)
        with self._session_lock:
            self._session = session
            if self._cancel_requested.is_set():
                session.cancel()
                frontier.close()

        LOGGER.info("Target domain: %s", domain)
        LOGGER.info("Mode: %s", self._mode_banner())

        if self.config.robots_enforced:
            self.fetcher.load_robots(seed_url)

        seed_result = frontier.seed(seed_url)
        self.stats.record_enqueue(seed_result)
        if not seed_result.accepted:
            LOGGER.warning("Seed %s was not admitted: %s", seed_url, seed_result.status.value)

        workers = [
            threading.Thread(
                target=self._worker,
                args=(session,),
                name=f"crawler-worker-{idx}",
                daemon=True,
            )
            for idx in range(self.config.concurrency)
        ]
        for worker in workers:
            worker.start()

        try:
            self._wait(session)
        except KeyboardInterrupt:
            LOGGER.warning("Interrupted, finishing in-flight requests")
            self.cancel()
        finally:
            frontier.close()
            for worker in workers:
                worker.join()
            if self._owns_fetcher:
                self.fetcher.close()

        self.stats.record_frontier_snapshot(frontier.snapshot())
        self.stats.finish()

        pages, skipped, failed = session.snapshot()
        total_time_ms = session.elapsed_ms()
        runtime_stats = self.stats.to_json()

        results_path, summary_path = self.store.save(
            config=self.config,
            domain=domain,
            pages=pages,
            skipped=skipped,
            failed=failed,
            total_time_ms=total_time_ms,
            cancelled=session.cancelled,
            runtime_stats=runtime_stats,
        )

        result = CrawlResult(
            start_url=self.config.seed_url,
            domain=domain,
            pages=pages,
            skipped=skipped,
            failed=failed,
            total_time_ms=total_time_ms,
            cancelled=session.cancelled,
            output_path=str(results_path),
            summary_path=str(summary_path),
            stats=runtime_stats,
        )
        LOGGER.info(
            "Crawl finished: %d pages, %d skipped, %d failed in %dms",
            len(pages),
            len(skipped),
            len(failed),
            total_time_ms,
        )
        return result

    def cancel(self) -> None:
        """Stop starting new fetches. In-flight work completes and is recorded."""

        with self._session_lock:
            self._cancel_requested.set()
            session = self._session
        if session is not None:
            session.cancel()
            session.frontier.close()

    def _mode_banner(self) -> str:
        if self.config.ignore_restrictions:
            return "ignoring restrictions (robots.txt and authorization skips disabled)"
        parts = [
            "respecting robots.txt" if self.config.respect_robots else "not checking robots.txt",
        ]
        if self.config.skip_unauthorized:
            parts.append("skipping unauthorized and terminal-status pages")
        return ", ".join(parts)

    @staticmethod
    def _wait(session: CrawlSession) -> None:
        frontier = session.frontier
        while not frontier.join(timeout=JOIN_POLL_SECONDS):
            if session.should_stop():
                return

    def _worker(self, session: CrawlSession) -> None:
        frontier = session.frontier
        while True:
            if session.should_stop():
                return

            item = frontier.pop(block=True, timeout=WORKER_POLL_SECONDS)
            if item is None:
                if frontier.closed:
                    return
                continue

            try:
                # Another worker may have filled the cap while this one waited.
                if session.should_stop():
                    continue
                if self._process(session, item) and self.config.delay_seconds > 0:
                    self._sleep(self.config.delay_seconds)
            except Exception as exc:
                LOGGER.exception("Unexpected error while crawling %s", item.url)
                self._record_failure(
                    session,
                    FailureRecord.from_exception(
                        url=item.url,
                        exc=exc,
                        parent_url=item.parent_url,
                    ),
                )
            finally:
                frontier.task_done()

    def _process(self, session: CrawlSession, item: WorkItem) -> bool:
        """Handle one work item. Returns True if a request was issued."""

        if self.config.robots_enforced and not self.fetcher.is_allowed_by_robots(item.url):
            LOGGER.info("Blocked by robots.txt: %s", item.url)
            self._record_skip(
                session,
                SkipRecord(
                    url=item.url,
                    reason=ROBOTS_BLOCKED_REASON,
                    parent_url=item.parent_url,
                ),
            )
            return False

        LOGGER.info(
            "Crawling (%d/%d): %s",
            session.page_count + 1,
            self.config.max_pages,
            item.url,
        )
        outcome = self.fetcher.fetch(item.url)
        self.stats.record_fetch(outcome)

        decision = outcome.decision
        if decision.decision == Decision.ACCEPT:
            self._handle_accepted(session, item, outcome)
        elif decision.decision == Decision.SKIP:
            LOGGER.info("Skipping %s: %s", item.url, decision.reason)
            self._record_skip(
                session,
                SkipRecord(
                    url=item.url,
                    reason=decision.reason or "",
                    status_code=decision.status_code,
                    parent_url=item.parent_url,
                ),
            )
        else:
            LOGGER.warning(
                "Failed to crawl %s after %d attempt(s): %s",
                item.url,
                outcome.attempts,
                decision.reason,
            )
            self._record_failure(
                session,
                FailureRecord(
                    url=item.url,
                    error_message=decision.reason or outcome.result.describe_error(),
                    parent_url=item.parent_url,
                    error_type=outcome.result.error_type
                    or ("HTTPError" if outcome.result.status_code is not None else None),
                    status_code=outcome.result.status_code,
                    attempts=outcome.attempts,
                ),
            )
        return True

    def _handle_accepted(
        self,
        session: CrawlSession,
        item: WorkItem,
        outcome: FetchOutcome,
    ) -> None:
        fetch_result = outcome.result

        if not fetch_result.is_html:
            LOGGER.info("Unsupported content type for %s: %s", item.url, fetch_result.content_type)
            self._record_failure(
                session,
                FailureRecord(
                    url=item.url,
                    error_message=f"Unsupported content type: {fetch_result.content_type}",
                    parent_url=item.parent_url,
                    error_type="UnsupportedContentType",
                    status_code=fetch_result.status_code,
                    attempts=outcome.attempts,
                ),
            )
            return

        parse_result = self.html_parser.parse(
            url=item.url,
            html=fetch_result.body or b"",
            domain=session.domain,
            final_url=fetch_result.final_url,
        )
        page = PageRecord.from_fetch_and_parse(
            item=item,
            fetch_result=fetch_result,
            parse_result=parse_result,
        )
        if not session.record_page(page):
            return
        self.stats.record_page(page)

        if item.depth >= self.config.max_depth:
            return

        internal_links = parse_result.internal_links
        if not internal_links:
            return

        enqueue_results = session.frontier.push_many(
            internal_links,
            depth=item.depth + 1,
            parent_url=item.url,
        )
        self.stats.record_enqueue_many(enqueue_results)

    def _record_skip(self, session: CrawlSession, record: SkipRecord) -> None:
        if session.record_skip(record):
            self.stats.record_skip(record)

    def _record_failure(self, session: CrawlSession, record: FailureRecord) -> None:
        if session.record_failure(record):
            self.stats.record_failure(record)


def run_crawl(config: CrawlConfig, **kwargs) -> CrawlResult:
    """Convenience wrapper: build a pipeline and run it once."""

    return CrawlPipeline(config, **kwargs).run()


__all__ = [
    "CrawlPipeline",
    "run_crawl",
]
