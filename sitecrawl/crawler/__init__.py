"""Crawler package: config, shared types, and pipeline components."""

from .config import CrawlConfig, load_config, save_config
from .errors import CrawlError, SeedURLError
from .fetcher import Fetcher
from .frontier import EnqueueResult, EnqueueStatus, Frontier
from .parsers import HTMLParser, HTMLParserConfig
from .pipeline import CrawlPipeline, run_crawl
from .policy import backoff_delay, classify
from .session import CrawlSession
from .stats import StatsCollector, summarize_results
from .storage import ResultStore, list_crawl_results
from .types import (
    ContentType,
    CrawlResult,
    CrawlStats,
    Decision,
    FailureRecord,
    FetchOutcome,
    FetchResult,
    LinkRecord,
    PageRecord,
    ParseResult,
    PolicyDecision,
    SkipRecord,
    WorkItem,
    utc_now_iso,
)
from .url import host_from_url, is_url_in_scope, normalize_domain, normalize_url, resolve_url

__all__ = [
    "ContentType",
    "CrawlConfig",
    "CrawlError",
    "CrawlPipeline",
    "CrawlResult",
    "CrawlSession",
    "CrawlStats",
    "Decision",
    "EnqueueResult",
    "EnqueueStatus",
    "FailureRecord",
    "FetchOutcome",
    "FetchResult",
    "Fetcher",
    "Frontier",
    "HTMLParser",
    "HTMLParserConfig",
    "LinkRecord",
    "PageRecord",
    "ParseResult",
    "PolicyDecision",
    "ResultStore",
    "SeedURLError",
    "SkipRecord",
    "StatsCollector",
    "WorkItem",
    "backoff_delay",
    "classify",
    "host_from_url",
    "is_url_in_scope",
    "list_crawl_results",
    "load_config",
    "normalize_domain",
    "normalize_url",
    "resolve_url",
    "run_crawl",
    "save_config",
    "summarize_results",
    "utc_now_iso",
]
