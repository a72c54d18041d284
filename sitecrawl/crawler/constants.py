"""Crawler defaults and fixed status-code vocabulary."""

from __future__ import annotations


DEFAULT_MAX_PAGES = 50
DEFAULT_MAX_DEPTH = 3
DEFAULT_DELAY_SECONDS = 1.0
DEFAULT_TIMEOUT_SECONDS = 30.0
DEFAULT_MAX_RETRIES = 3
DEFAULT_RETRY_BACKOFF_SECONDS = 1.0
DEFAULT_MAX_REDIRECTS = 5
DEFAULT_CONCURRENCY = 1

DEFAULT_RESPECT_ROBOTS = False
DEFAULT_SKIP_UNAUTHORIZED = False
DEFAULT_IGNORE_RESTRICTIONS = False

DEFAULT_USER_AGENT = "WebCrawler/1.0 (+https://github.com/webcrawler)"
DEFAULT_HTTP_HEADERS: dict[str, str] = {
    "Accept": "text/html,application/xhtml+xml,application/xml;q=0.9,*/*;q=0.8",
    "Accept-Language": "en-US,en;q=0.5",
    "Accept-Encoding": "gzip, deflate",
    "Connection": "keep-alive",
    "Upgrade-Insecure-Requests": "1",
}

DEFAULT_OUTPUT_DIR = "crawl-results"
DEFAULT_SUMMARY_TOP_N = 10

JSON_INDENT = 2
SUPPORTED_CONFIG_SUFFIXES = (".json", ".yaml", ".yml")

ROBOTS_BLOCKED_REASON = "robots.txt blocked"
AUTHORIZATION_ISSUE_PREFIX = "Authorization issue"

AUTHORIZATION_STATUS_CODES = frozenset({401, 403, 407, 429, 451})
TERMINAL_STATUS_CODES = frozenset({404, 410, 500, 502, 503, 504})
CLASSIFIED_STATUS_CODES = AUTHORIZATION_STATUS_CODES | TERMINAL_STATUS_CODES

# Resources that are gone for good; retrying them cannot change the answer.
PERMANENT_STATUS_CODES = frozenset({404, 410})

SKIP_REASONS: dict[int, str] = {
    401: "Unauthorized – Authentication required",
    403: "Forbidden – Access denied",
    407: "Proxy authentication required",
    429: "Too many requests – Rate limited",
    451: "Unavailable for legal reasons",
    404: "Not found",
    410: "Gone",
    500: "Internal server error",
    502: "Bad gateway",
    503: "Service unavailable",
    504: "Gateway timeout",
}

AUTHORIZATION_KEYWORDS = (
    "unauthorized",
    "forbidden",
    "access denied",
    "authentication",
    "permission",
)

ACCEPT_ANY_STATUS_RANGE = (200, 600)


__all__ = [
    "ACCEPT_ANY_STATUS_RANGE",
    "AUTHORIZATION_ISSUE_PREFIX",
    "AUTHORIZATION_KEYWORDS",
    "AUTHORIZATION_STATUS_CODES",
    "CLASSIFIED_STATUS_CODES",
    "DEFAULT_CONCURRENCY",
    "DEFAULT_DELAY_SECONDS",
    "DEFAULT_HTTP_HEADERS",
    "DEFAULT_IGNORE_RESTRICTIONS",
    "DEFAULT_MAX_DEPTH",
    "DEFAULT_MAX_PAGES",
    "DEFAULT_MAX_REDIRECTS",
    "DEFAULT_MAX_RETRIES",
    "DEFAULT_OUTPUT_DIR",
    "DEFAULT_RESPECT_ROBOTS",
    "DEFAULT_RETRY_BACKOFF_SECONDS",
    "DEFAULT_SKIP_UNAUTHORIZED",
    "DEFAULT_SUMMARY_TOP_N",
    "DEFAULT_TIMEOUT_SECONDS",
    "DEFAULT_USER_AGENT",
    "JSON_INDENT",
    "PERMANENT_STATUS_CODES",
    "ROBOTS_BLOCKED_REASON",
    "SKIP_REASONS",
    "SUPPORTED_CONFIG_SUFFIXES",
    "TERMINAL_STATUS_CODES",
]
