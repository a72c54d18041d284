"""Records passed between frontier, fetcher, parser, session and result store.

Imports nothing from the rest of the package.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Mapping


class Decision(str, Enum):
    """Outcome of classifying one fetch attempt."""

    ACCEPT = "accept"
    RETRY = "retry"
    SKIP = "skip"
    FAIL = "fail"


class ContentType(str, Enum):
    """Coarse page classification derived from document structure."""

    ARTICLE = "article"
    NAVIGATION = "navigation"
    FORM_PAGE = "form-page"
    LISTING = "listing"
    PAGE = "page"


JSONPrimitive = str | int | float | bool | None
JSONValue = JSONPrimitive | list["JSONValue"] | dict[str, "JSONValue"]
JSONDict = dict[str, JSONValue]


def utc_now_iso() -> str:
    """Return an RFC3339-like UTC timestamp string for records and manifests."""

    return datetime.now(timezone.utc).isoformat(timespec="seconds")


@dataclass(frozen=True, slots=True)
class WorkItem:
    """A crawl candidate admitted to the frontier."""

    url: str
    depth: int
    parent_url: str | None = None
    discovered_at: str = field(default_factory=utc_now_iso)


@dataclass(slots=True)
class FetchResult:
    """Raw result of one fetch attempt: a response status or a transport error."""

    requested_url: str
    final_url: str | None
    status_code: int | None
    content_type: str | None
    body: bytes | None
    fetched_at: str = field(default_factory=utc_now_iso)
    elapsed_ms: int | None = None
    error: str | None = None
    error_type: str | None = None

    @property
    def is_transport_error(self) -> bool:
        return self.error is not None and self.status_code is None

    @property
    def ok(self) -> bool:
        return (
            self.error is None
            and self.status_code is not None
            and 200 <= self.status_code < 300
            and self.body is not None
        )

    @property
    def content_length(self) -> int | None:
        return None if self.body is None else len(self.body)

    @property
    def is_html(self) -> bool:
        """True unless the server declared a non-HTML content type."""

        normalized = (self.content_type or "").split(";", maxsplit=1)[0].strip().lower()
        if not normalized:
            return True
        return normalized in {"text/html", "application/xhtml+xml"}

    def describe_error(self) -> str:
        if self.error:
            return self.error
        if self.status_code is not None:
            return f"HTTP status {self.status_code}"
        return "Unknown fetch failure"


@dataclass(frozen=True, slots=True)
class PolicyDecision:
    """What to do with a URL after one attempt."""

    decision: Decision
    reason: str | None = None
    status_code: int | None = None
    delay_seconds: float = 0.0

    @property
    def terminal(self) -> bool:
        return self.decision != Decision.RETRY


@dataclass(frozen=True, slots=True)
class FetchOutcome:
    """Final classification of a URL once the retry loop has settled."""

    decision: PolicyDecision
    result: FetchResult
    attempts: int
    delays: tuple[float, ...] = ()

    @property
    def retries(self) -> int:
        return max(0, self.attempts - 1)


@dataclass(frozen=True, slots=True)
class LinkRecord:
    """One outbound hyperlink discovered on a page."""

    url: str
    text: str
    title: str
    is_internal: bool
    domain: str

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "text": self.text,
            "title": self.title,
            "is_internal": self.is_internal,
            "domain": self.domain,
        }


@dataclass(slots=True)
class ParseResult:
    """Structured fields extracted from one HTML document."""

    url: str
    final_url: str | None
    title: str | None
    meta: dict[str, str] = field(default_factory=dict)
    headings: list[JSONDict] = field(default_factory=list)
    content: JSONDict = field(default_factory=dict)
    images: list[JSONDict] = field(default_factory=list)
    links: list[LinkRecord] = field(default_factory=list)
    content_type: ContentType = ContentType.PAGE
    word_count: int = 0
    parser: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    @property
    def internal_links(self) -> list[str]:
        return [link.url for link in self.links if link.is_internal]


@dataclass(frozen=True, slots=True)
class PageRecord:
    """One crawled page as it appears in the results sequence."""

    url: str
    final_url: str | None
    title: str | None
    meta: dict[str, str]
    headings: list[JSONDict]
    content: JSONDict
    images: list[JSONDict]
    links: list[LinkRecord]
    content_type: ContentType
    word_count: int
    depth: int
    parent_url: str | None
    status_code: int | None
    response_time_ms: int | None
    crawled_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_fetch_and_parse(
        cls,
        *,
        item: WorkItem,
        fetch_result: FetchResult,
        parse_result: ParseResult,
        crawled_at: str | None = None,
    ) -> "PageRecord":
        return cls(
            url=item.url,
            final_url=fetch_result.final_url,
            title=parse_result.title,
            meta=dict(parse_result.meta),
            headings=list(parse_result.headings),
            content=dict(parse_result.content),
            images=list(parse_result.images),
            links=list(parse_result.links),
            content_type=parse_result.content_type,
            word_count=parse_result.word_count,
            depth=item.depth,
            parent_url=item.parent_url,
            status_code=fetch_result.status_code,
            response_time_ms=fetch_result.elapsed_ms,
            crawled_at=crawled_at or fetch_result.fetched_at,
        )

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "final_url": self.final_url,
            "title": self.title,
            "meta": dict(self.meta),
            "headings": list(self.headings),
            "content": dict(self.content),
            "images": list(self.images),
            "links": [link.to_json() for link in self.links],
            "content_type": self.content_type.value,
            "word_count": self.word_count,
            "depth": self.depth,
            "parent_url": self.parent_url,
            "status_code": self.status_code,
            "response_time_ms": self.response_time_ms,
            "crawled_at": self.crawled_at,
        }


@dataclass(frozen=True, slots=True)
class SkipRecord:
    """A URL permanently skipped by policy."""

    url: str
    reason: str
    status_code: int | None = None
    parent_url: str | None = None
    created_at: str = field(default_factory=utc_now_iso)

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "reason": self.reason,
            "status_code": self.status_code,
            "parent_url": self.parent_url,
            "created_at": self.created_at,
        }


@dataclass(frozen=True, slots=True)
class FailureRecord:
    """A URL that could not be crawled."""

    url: str
    error_message: str
    parent_url: str | None = None
    error_type: str | None = None
    status_code: int | None = None
    attempts: int = 0
    created_at: str = field(default_factory=utc_now_iso)

    @classmethod
    def from_exception(
        cls,
        *,
        url: str,
        exc: Exception,
        **kwargs: Any,
    ) -> "FailureRecord":
        return cls(
            url=url,
            error_message=str(exc) or exc.__class__.__name__,
            error_type=exc.__class__.__name__,
            **kwargs,
        )

    def to_json(self) -> JSONDict:
        return {
            "url": self.url,
            "error_message": self.error_message,
            "parent_url": self.parent_url,
            "error_type": self.error_type,
            "status_code": self.status_code,
            "attempts": self.attempts,
            "created_at": self.created_at,
        }


@dataclass(slots=True)
class CrawlStats:
    """Simple mutable counters used for crawl summary reporting."""

    frontier_enqueued: int = 0
    frontier_skipped_visited: int = 0
    frontier_skipped_depth: int = 0
    frontier_skipped_budget: int = 0

    fetched_ok: int = 0
    fetched_error: int = 0
    retries: int = 0

    pages: int = 0
    skipped: int = 0
    failed: int = 0

    started_at: str = field(default_factory=utc_now_iso)
    finished_at: str | None = None

    def finish(self) -> None:
        self.finished_at = utc_now_iso()

    def to_json(self) -> JSONDict:
        return {
            "frontier_enqueued": self.frontier_enqueued,
            "frontier_skipped_visited": self.frontier_skipped_visited,
            "frontier_skipped_depth": self.frontier_skipped_depth,
            "frontier_skipped_budget": self.frontier_skipped_budget,
            "fetched_ok": self.fetched_ok,
            "fetched_error": self.fetched_error,
            "retries": self.retries,
            "pages": self.pages,
            "skipped": self.skipped,
            "failed": self.failed,
            "started_at": self.started_at,
            "finished_at": self.finished_at,
        }


@dataclass(slots=True)
class CrawlResult:
    """What a finished crawl session hands back to the caller."""

    start_url: str
    domain: str
    pages: list[PageRecord]
    skipped: list[SkipRecord]
    failed: list[FailureRecord]
    total_time_ms: int
    cancelled: bool = False
    output_path: str | None = None
    summary_path: str | None = None
    stats: Mapping[str, Any] = field(default_factory=dict)

    @property
    def total_links(self) -> int:
        return sum(len(page.links) for page in self.pages)

    @property
    def failed_requests(self) -> int:
        return len(self.failed)

    @property
    def skipped_requests(self) -> int:
        return len(self.skipped)


__all__ = [
    "ContentType",
    "CrawlResult",
    "CrawlStats",
    "Decision",
    "FailureRecord",
    "FetchOutcome",
    "FetchResult",
    "JSONDict",
    "JSONPrimitive",
    "JSONValue",
    "LinkRecord",
    "PageRecord",
    "ParseResult",
    "PolicyDecision",
    "SkipRecord",
    "WorkItem",
    "utc_now_iso",
]
