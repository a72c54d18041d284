"""Thread-safe crawl statistics and end-of-crawl result summaries."""

from __future__ import annotations

from collections import defaultdict
from datetime import datetime, timezone
import threading
from typing import Any, Mapping, Sequence

from .frontier import EnqueueResult, EnqueueStatus
from .types import (
    CrawlStats,
    Decision,
    FailureRecord,
    FetchOutcome,
    JSONDict,
    PageRecord,
    SkipRecord,
)
from .url import normalize_domain


class StatsCollector:
    """Collect runtime counters across concurrent crawl workers."""

    def __init__(self, base: CrawlStats | None = None) -> None:
        self._lock = threading.Lock()
        self._core = base or CrawlStats()

        self._frontier_extra: dict[str, int] = defaultdict(int)
        self._frontier_snapshot: dict[str, int | bool] = {}

        self._decision_counts: dict[str, int] = defaultdict(int)
        self._fetch_status_code_counts: dict[str, int] = defaultdict(int)
        self._fetch_error_type_counts: dict[str, int] = defaultdict(int)
        self._fetch_elapsed_ms_total = 0
        self._fetch_elapsed_samples = 0
        self._fetch_bytes_total = 0
        self._retry_delay_seconds_total = 0.0

        self._words_total = 0
        self._links_total = 0
        self._failure_type_counts: dict[str, int] = defaultdict(int)

    def record_enqueue(self, result_or_status: EnqueueResult | EnqueueStatus) -> None:
        """Record one frontier admission outcome."""

        if isinstance(result_or_status, EnqueueResult):
            status = result_or_status.status
        else:
            status = result_or_status

        with self._lock:
            if status == EnqueueStatus.ENQUEUED:
                self._core.frontier_enqueued += 1
                return
            if status in {EnqueueStatus.SKIPPED_SEEN, EnqueueStatus.SKIPPED_QUEUED}:
                self._core.frontier_skipped_visited += 1
                return
            if status == EnqueueStatus.SKIPPED_DEPTH:
                self._core.frontier_skipped_depth += 1
                return
            if status == EnqueueStatus.SKIPPED_BUDGET:
                self._core.frontier_skipped_budget += 1
                return

            self._frontier_extra[status.value] += 1

    def record_enqueue_many(self, results: Sequence[EnqueueResult]) -> None:
        for result in results:
            self.record_enqueue(result)

    def record_frontier_snapshot(self, snapshot: Mapping[str, int | bool]) -> None:
        with self._lock:
            self._frontier_snapshot = dict(snapshot)

    def record_fetch(self, outcome: FetchOutcome) -> None:
        """Record the settled outcome of one URL's attempt loop."""

        result = outcome.result
        decision = outcome.decision.decision

        with self._lock:
            self._decision_counts[decision.value] += 1
            if decision == Decision.ACCEPT:
                self._core.fetched_ok += 1
            else:
                self._core.fetched_error += 1

            self._core.retries += outcome.retries
            self._retry_delay_seconds_total += sum(outcome.delays)

            if result.status_code is not None:
                self._fetch_status_code_counts[str(result.status_code)] += 1
            if result.error_type:
                self._fetch_error_type_counts[result.error_type] += 1

            if result.elapsed_ms is not None:
                self._fetch_elapsed_ms_total += int(result.elapsed_ms)
                self._fetch_elapsed_samples += 1
            if result.content_length is not None:
                self._fetch_bytes_total += int(result.content_length)

    def record_page(self, page: PageRecord) -> None:
        with self._lock:
            self._core.pages += 1
            self._words_total += page.word_count
            self._links_total += len(page.links)

    def record_skip(self, record: SkipRecord) -> None:
        with self._lock:
            self._core.skipped += 1

    def record_failure(self, record: FailureRecord) -> None:
        with self._lock:
            self._core.failed += 1
            self._failure_type_counts[record.error_type or "Unknown"] += 1

    def finish(self) -> None:
        with self._lock:
            self._core.finish()

    def to_json(self) -> dict[str, Any]:
        """Return a JSON-serializable summary payload."""

        with self._lock:
            core = self._core.to_json()

            start = _parse_iso_utc(self._core.started_at)
            end = (
                _parse_iso_utc(self._core.finished_at)
                if self._core.finished_at
                else datetime.now(timezone.utc)
            )
            duration_seconds = max(0.0, (end - start).total_seconds())

            fetch_elapsed_avg = (
                self._fetch_elapsed_ms_total / self._fetch_elapsed_samples
                if self._fetch_elapsed_samples > 0
                else 0.0
            )
            fetched_total = self._core.fetched_ok + self._core.fetched_error

            return {
                **core,
                "duration_seconds": duration_seconds,
                "throughput": {
                    "fetched_per_second": (
                        fetched_total / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                    "pages_per_second": (
                        self._core.pages / duration_seconds if duration_seconds > 0 else 0.0
                    ),
                },
                "frontier": {
                    "extra_status_counts": dict(self._frontier_extra),
                    "snapshot": dict(self._frontier_snapshot),
                },
                "fetch": {
                    "decision_counts": dict(self._decision_counts),
                    "status_code_counts": dict(self._fetch_status_code_counts),
                    "error_type_counts": dict(self._fetch_error_type_counts),
                    "elapsed_ms_total": self._fetch_elapsed_ms_total,
                    "elapsed_ms_samples": self._fetch_elapsed_samples,
                    "elapsed_ms_avg": fetch_elapsed_avg,
                    "bytes_total": self._fetch_bytes_total,
                    "retry_delay_seconds_total": self._retry_delay_seconds_total,
                },
                "content": {
                    "words_total": self._words_total,
                    "links_total": self._links_total,
                },
                "failure_type_counts": dict(self._failure_type_counts),
            }


def summarize_results(
    pages: Sequence[PageRecord],
    skipped: Sequence[SkipRecord],
    domain: str,
) -> JSONDict:
    """Link and content statistics over the final result lists."""

    target = normalize_domain(domain)
    total_links = 0
    domains: set[str] = set()
    content_types: dict[str, int] = defaultdict(int)
    skip_reasons: dict[str, int] = defaultdict(int)

    for page in pages:
        total_links += len(page.links)
        content_types[page.content_type.value] += 1
        for link in page.links:
            if link.domain:
                domains.add(link.domain)

    for record in skipped:
        skip_reasons[record.reason] += 1

    average = round(total_links / len(pages), 2) if pages else 0

    return {
        "total_links": total_links,
        "unique_domains": len(domains),
        "unique_external_domains": len(domains - {target}),
        "average_links_per_page": average,
        "content_types": dict(content_types),
        "skip_reasons": dict(skip_reasons),
    }


def _parse_iso_utc(value: str | None) -> datetime:
    if not value:
        return datetime.now(timezone.utc)
    try:
        parsed = datetime.fromisoformat(value)
    except ValueError:
        return datetime.now(timezone.utc)
    if parsed.tzinfo is None:
        return parsed.replace(tzinfo=timezone.utc)
    return parsed.astimezone(timezone.utc)


__all__ = [
    "StatsCollector",
    "summarize_results",
]
