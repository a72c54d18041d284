"""Filesystem-backed result store for finished crawls.

The store owns the on-disk layout. Other modules should use this API instead of
building paths manually.
"""

from __future__ import annotations

from datetime import datetime, timezone
import json
import logging
import os
from pathlib import Path
import tempfile
from typing import Any, Mapping, Sequence

from .config import CrawlConfig
from .constants import JSON_INDENT
from .stats import summarize_results
from .types import FailureRecord, JSONDict, PageRecord, SkipRecord, utc_now_iso


LOGGER = logging.getLogger(__name__)

RESULT_SUFFIX = ".json"
SUMMARY_SUFFIX = "_summary.json"


def safe_domain(domain: str) -> str:
    """Filesystem-safe form of a domain for result file names."""

    cleaned = "".join(
        char if (char.isalnum() or char in {"-", "_"}) else "_"
        for char in (domain or "").strip().lower()
    )
    return cleaned or "unknown"


class ResultStore:
    """Persist crawl results under a single `output_dir` root."""

    def __init__(self, output_dir: str | Path) -> None:
        self.output_dir = Path(output_dir)

    def paths_for(self, domain: str, *, when: datetime | None = None) -> tuple[Path, Path]:
        """Return the (results, summary) paths for a domain on a given day."""

        day = (when or datetime.now(timezone.utc)).strftime("%Y-%m-%d")
        stem = f"{safe_domain(domain)}_{day}"
        return (
            self.output_dir / f"{stem}{RESULT_SUFFIX}",
            self.output_dir / f"{stem}{SUMMARY_SUFFIX}",
        )

    def save(
        self,
        *,
        config: CrawlConfig,
        domain: str,
        pages: Sequence[PageRecord],
        skipped: Sequence[SkipRecord],
        failed: Sequence[FailureRecord],
        total_time_ms: int,
        cancelled: bool = False,
        runtime_stats: Mapping[str, Any] | None = None,
    ) -> tuple[Path, Path]:
        """Write the full results file and its summary. Returns both paths."""

        self.output_dir.mkdir(parents=True, exist_ok=True)
        results_path, summary_path = self.paths_for(domain)
        timestamp = utc_now_iso()
        statistics = summarize_results(pages, skipped, domain)

        results: JSONDict = {
            "crawl_info": {
                "start_url": config.seed_url,
                "domain": domain,
                "timestamp": timestamp,
                "total_pages": len(pages),
                "total_time_ms": total_time_ms,
                "failed_requests": len(failed),
                "skipped_requests": len(skipped),
                "cancelled": cancelled,
                "options": config.to_dict(),
            },
            "pages": [page.to_json() for page in pages],
            "failed_urls": [record.to_json() for record in failed],
            "skipped_urls": [record.to_json() for record in skipped],
            "statistics": statistics,
            "runtime_stats": dict(runtime_stats or {}),
        }

        summary: JSONDict = {
            "domain": domain,
            "start_url": config.seed_url,
            "crawled_at": timestamp,
            "total_pages": len(pages),
            "total_time_ms": total_time_ms,
            "statistics": statistics,
            "top_pages": self._top_pages(pages, config.summary_top_n),
            "failed_urls_count": len(failed),
            "skipped_urls_count": len(skipped),
        }

        self._atomic_write_json(results_path, results)
        self._atomic_write_json(summary_path, summary)
        LOGGER.info("Results saved to %s", results_path)
        LOGGER.info("Summary saved to %s", summary_path)
        return results_path, summary_path

    @staticmethod
    def _top_pages(pages: Sequence[PageRecord], limit: int) -> list[JSONDict]:
        ranked = sorted(pages, key=lambda page: page.word_count, reverse=True)
        return [
            {
                "url": page.url,
                "title": page.title,
                "word_count": page.word_count,
                "links_count": len(page.links),
            }
            for page in ranked[:limit]
        ]

    @staticmethod
    def _atomic_write_json(path: Path, payload: Mapping[str, Any]) -> None:
        content = json.dumps(payload, ensure_ascii=False, indent=JSON_INDENT) + "\n"
        tmp_fd, tmp_path = tempfile.mkstemp(
            dir=str(path.parent),
            prefix=path.name + ".",
            suffix=".tmp",
        )
        try:
            with os.fdopen(tmp_fd, "w", encoding="utf-8") as handle:
                handle.write(content)
                handle.flush()
                os.fsync(handle.fileno())
            os.replace(tmp_path, path)
        except Exception:
            try:
                os.unlink(tmp_path)
            except FileNotFoundError:
                pass
            raise


def list_crawl_results(output_dir: str | Path) -> list[Path]:
    """Return saved result files (summaries excluded), newest first."""

    root = Path(output_dir)
    if not root.is_dir():
        return []

    results = [
        path
        for path in root.glob(f"*{RESULT_SUFFIX}")
        if path.is_file() and not path.name.endswith(SUMMARY_SUFFIX)
    ]
    return sorted(results, key=lambda path: path.stat().st_mtime, reverse=True)


__all__ = [
    "ResultStore",
    "list_crawl_results",
    "safe_domain",
]
