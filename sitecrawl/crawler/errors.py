"""Session-level crawler exceptions.

Per-URL problems never raise out of the pipeline; they become skip or failure
records. Only conditions that make the whole session impossible live here.
"""

from __future__ import annotations


class CrawlError(Exception):
    """Base class for fatal crawl-session errors."""


class SeedURLError(CrawlError, ValueError):
    """The seed URL cannot be resolved into a crawlable target."""

    def __init__(self, seed_url: str, detail: str = "not a valid http(s) URL") -> None:
        super().__init__(f"Invalid seed URL {seed_url!r}: {detail}")
        self.seed_url = seed_url


__all__ = ["CrawlError", "SeedURLError"]
