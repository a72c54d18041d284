"""URL identity and crawl-scope rules.

Every URL the crawler compares, queues or records goes through `normalize_url`
first, so two spellings of one page share a single identity.
"""

from __future__ import annotations

import posixpath
import re
from urllib.parse import parse_qsl, urlencode, urljoin, urlsplit, urlunsplit


CRAWLABLE_SCHEMES = frozenset({"http", "https"})
DEFAULT_PORTS = {"http": 80, "https": 443}

# hrefs that never point at a fetchable document.
NON_NAVIGABLE_PREFIXES = ("#", "javascript:", "mailto:", "tel:", "data:")

# Query keys that only carry campaign attribution.
TRACKING_PARAM_PREFIX = "utm_"
TRACKING_PARAMS = frozenset(
    {"fbclid", "gclid", "mc_cid", "mc_eid", "mkt_tok", "spm", "igshid", "ref_src"}
)

# Not pages: documents, media, assets and feeds are never crawled.
SKIP_EXTENSIONS = (
    ".pdf", ".jpg", ".jpeg", ".png", ".gif", ".svg", ".webp", ".ico",
    ".css", ".js", ".map", ".xml", ".txt",
    ".zip", ".rar", ".7z",
    ".mp4", ".mp3", ".wav", ".webm",
    ".woff", ".woff2", ".ttf", ".eot",
)
SKIP_PATTERNS = ("/wp-admin/", "/admin/", ".json", ".rss", ".atom")


def _strip_www(host: str) -> str:
    host = host.strip().lower().strip(".")
    return host[4:] if host.startswith("www.") else host


def normalize_domain(domain_or_url: str) -> str:
    """Bare lowercase host for a domain or URL, `www.` removed."""

    raw = (domain_or_url or "").strip()
    if not raw:
        return ""
    return _strip_www(urlsplit(raw if "://" in raw else f"//{raw}").hostname or "")


def host_from_url(url: str) -> str:
    return _strip_www(urlsplit(url or "").hostname or "")


def _canonical_path(path: str) -> str:
    if not path or path == "/":
        return "/"
    leading = path.startswith("/")
    resolved = posixpath.normpath(re.sub(r"/{2,}", "/", path))
    if resolved == ".":
        return "/"
    if leading and not resolved.startswith("/"):
        resolved = "/" + resolved
    return resolved.rstrip("/") or "/"


def _canonical_query(query: str) -> str:
    kept = [
        (key, value)
        for key, value in parse_qsl(query, keep_blank_values=True)
        if not (key.lower().startswith(TRACKING_PARAM_PREFIX) or key.lower() in TRACKING_PARAMS)
    ]
    return urlencode(sorted(kept))


def normalize_url(url: str | None) -> str | None:
    """Crawl identity of an absolute http(s) URL, or None if it has none.

    Lowercases scheme and host, drops the fragment, the default port,
    tracking parameters and a trailing slash, sorts the query and resolves
    dot segments.
    """

    raw = (url or "").strip()
    if not raw:
        return None

    try:
        parts = urlsplit(raw)
        port = parts.port
    except ValueError:
        return None

    scheme = parts.scheme.lower()
    host = (parts.hostname or "").lower()
    if scheme not in CRAWLABLE_SCHEMES or not host:
        return None

    netloc = host if port in (None, DEFAULT_PORTS[scheme]) else f"{host}:{port}"
    return urlunsplit(
        (scheme, netloc, _canonical_path(parts.path), _canonical_query(parts.query), "")
    )


def resolve_url(base_url: str, href: str | None) -> str | None:
    """Absolute http(s) URL an href points at, or None for non-navigable hrefs."""

    candidate = (href or "").strip()
    if not candidate or candidate.lower().startswith(NON_NAVIGABLE_PREFIXES):
        return None

    try:
        absolute = urljoin(base_url, candidate)
    except ValueError:
        return None

    parts = urlsplit(absolute)
    if parts.scheme.lower() not in CRAWLABLE_SCHEMES or not parts.netloc:
        return None
    return absolute


def is_same_domain(url: str, domain: str) -> bool:
    host = host_from_url(url)
    return bool(host) and host == normalize_domain(domain)


def should_skip_url(url: str) -> bool:
    """True for URLs that point at non-page resources or admin areas."""

    lowered = (url or "").lower()
    path = urlsplit(lowered).path or "/"

    if path.endswith(SKIP_EXTENSIONS):
        return True
    return any(pattern in lowered or pattern in path + "/" for pattern in SKIP_PATTERNS)


def is_url_in_scope(url: str, *, domain: str) -> bool:
    """Same-domain, page-like http(s) URL."""

    normalized = normalize_url(url)
    if normalized is None or not is_same_domain(normalized, domain):
        return False
    return not should_skip_url(normalized)


__all__ = [
    "SKIP_EXTENSIONS",
    "SKIP_PATTERNS",
    "host_from_url",
    "is_same_domain",
    "is_url_in_scope",
    "normalize_domain",
    "normalize_url",
    "resolve_url",
    "should_skip_url",
]
