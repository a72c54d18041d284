"""Typed crawler configuration with JSON/YAML load/save helpers."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Mapping

import yaml  # type: ignore

from .constants import (
    DEFAULT_CONCURRENCY,
    DEFAULT_DELAY_SECONDS,
    DEFAULT_HTTP_HEADERS,
    DEFAULT_IGNORE_RESTRICTIONS,
    DEFAULT_MAX_DEPTH,
    DEFAULT_MAX_PAGES,
    DEFAULT_MAX_REDIRECTS,
    DEFAULT_MAX_RETRIES,
    DEFAULT_OUTPUT_DIR,
    DEFAULT_RESPECT_ROBOTS,
    DEFAULT_RETRY_BACKOFF_SECONDS,
    DEFAULT_SKIP_UNAUTHORIZED,
    DEFAULT_SUMMARY_TOP_N,
    DEFAULT_TIMEOUT_SECONDS,
    DEFAULT_USER_AGENT,
    JSON_INDENT,
    SUPPORTED_CONFIG_SUFFIXES,
)
from .errors import SeedURLError
from .types import JSONDict, JSONValue
from .url import host_from_url, normalize_url


def _as_float(value: Any, key: str) -> float:
    try:
        return float(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid float for '{key}': {value!r}") from exc


def _as_int(value: Any, key: str) -> int:
    if isinstance(value, bool):
        raise ValueError(f"Invalid int for '{key}': {value!r}")
    try:
        return int(value)
    except (TypeError, ValueError) as exc:
        raise ValueError(f"Invalid int for '{key}': {value!r}") from exc


def _as_bool(value: Any, key: str) -> bool:
    if isinstance(value, bool):
        return value
    raise ValueError(f"Invalid bool for '{key}': {value!r}")


@dataclass(slots=True)
class CrawlConfig:
    """Session configuration; read-only once a crawl starts."""

    seed_url: str

    max_pages: int = DEFAULT_MAX_PAGES
    max_depth: int = DEFAULT_MAX_DEPTH
    concurrency: int = DEFAULT_CONCURRENCY

    delay_seconds: float = DEFAULT_DELAY_SECONDS
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    max_retries: int = DEFAULT_MAX_RETRIES
    retry_backoff_seconds: float = DEFAULT_RETRY_BACKOFF_SECONDS
    max_redirects: int = DEFAULT_MAX_REDIRECTS

    respect_robots: bool = DEFAULT_RESPECT_ROBOTS
    skip_unauthorized: bool = DEFAULT_SKIP_UNAUTHORIZED
    ignore_restrictions: bool = DEFAULT_IGNORE_RESTRICTIONS

    user_agent: str = DEFAULT_USER_AGENT
    default_headers: dict[str, str] = field(default_factory=lambda: dict(DEFAULT_HTTP_HEADERS))

    output_dir: str = DEFAULT_OUTPUT_DIR
    summary_top_n: int = DEFAULT_SUMMARY_TOP_N

    metadata: dict[str, JSONValue] = field(default_factory=dict)

    def __post_init__(self) -> None:
        self.seed_url = (self.seed_url or "").strip()
        if not self.seed_url:
            raise SeedURLError(self.seed_url, "seed URL is required")
        if normalize_url(self.seed_url) is None or not host_from_url(self.seed_url):
            raise SeedURLError(self.seed_url)

        if self.max_pages <= 0:
            raise ValueError("max_pages must be > 0")
        if self.max_depth < 0:
            raise ValueError("max_depth must be >= 0")
        if self.concurrency <= 0:
            raise ValueError("concurrency must be > 0")
        if self.delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        if self.timeout_seconds <= 0:
            raise ValueError("timeout_seconds must be > 0")
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.retry_backoff_seconds < 0:
            raise ValueError("retry_backoff_seconds must be >= 0")
        if self.max_redirects < 0:
            raise ValueError("max_redirects must be >= 0")
        if self.summary_top_n <= 0:
            raise ValueError("summary_top_n must be > 0")
        if not self.user_agent.strip():
            raise ValueError("user_agent cannot be empty")

    @property
    def domain(self) -> str:
        """Target domain every crawled URL must share with the seed."""

        return host_from_url(self.seed_url)

    @property
    def robots_enforced(self) -> bool:
        """Robots directives apply unless restrictions are ignored."""

        return self.respect_robots and not self.ignore_restrictions

    def headers(self) -> dict[str, str]:
        """Return request headers merged with the configured identity."""

        merged: dict[str, str] = dict(self.default_headers)
        merged["User-Agent"] = self.user_agent
        return merged

    def to_dict(self) -> JSONDict:
        """Serialize config for manifests and reproducibility."""

        return {
            "seed_url": self.seed_url,
            "max_pages": self.max_pages,
            "max_depth": self.max_depth,
            "concurrency": self.concurrency,
            "delay_seconds": self.delay_seconds,
            "timeout_seconds": self.timeout_seconds,
            "max_retries": self.max_retries,
            "retry_backoff_seconds": self.retry_backoff_seconds,
            "max_redirects": self.max_redirects,
            "respect_robots": self.respect_robots,
            "skip_unauthorized": self.skip_unauthorized,
            "ignore_restrictions": self.ignore_restrictions,
            "user_agent": self.user_agent,
            "default_headers": self.default_headers,
            "output_dir": self.output_dir,
            "summary_top_n": self.summary_top_n,
            "metadata": self.metadata,
        }

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "CrawlConfig":
        """Build config from a parsed dictionary."""

        if "seed_url" not in payload:
            raise ValueError("Config missing required key: 'seed_url'")

        return cls(
            seed_url=str(payload["seed_url"] or ""),
            max_pages=_as_int(payload.get("max_pages", DEFAULT_MAX_PAGES), "max_pages"),
            max_depth=_as_int(payload.get("max_depth", DEFAULT_MAX_DEPTH), "max_depth"),
            concurrency=_as_int(payload.get("concurrency", DEFAULT_CONCURRENCY), "concurrency"),
            delay_seconds=_as_float(
                payload.get("delay_seconds", DEFAULT_DELAY_SECONDS),
                "delay_seconds",
            ),
            timeout_seconds=_as_float(
                payload.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS),
                "timeout_seconds",
            ),
            max_retries=_as_int(payload.get("max_retries", DEFAULT_MAX_RETRIES), "max_retries"),
            retry_backoff_seconds=_as_float(
                payload.get("retry_backoff_seconds", DEFAULT_RETRY_BACKOFF_SECONDS),
                "retry_backoff_seconds",
            ),
            max_redirects=_as_int(
                payload.get("max_redirects", DEFAULT_MAX_REDIRECTS),
                "max_redirects",
            ),
            respect_robots=_as_bool(
                payload.get("respect_robots", DEFAULT_RESPECT_ROBOTS),
                "respect_robots",
            ),
            skip_unauthorized=_as_bool(
                payload.get("skip_unauthorized", DEFAULT_SKIP_UNAUTHORIZED),
                "skip_unauthorized",
            ),
            ignore_restrictions=_as_bool(
                payload.get("ignore_restrictions", DEFAULT_IGNORE_RESTRICTIONS),
                "ignore_restrictions",
            ),
            user_agent=str(payload.get("user_agent", DEFAULT_USER_AGENT)),
            default_headers={
                str(k): str(v)
                for k, v in dict(payload.get("default_headers", DEFAULT_HTTP_HEADERS)).items()
            },
            output_dir=str(payload.get("output_dir", DEFAULT_OUTPUT_DIR)),
            summary_top_n=_as_int(
                payload.get("summary_top_n", DEFAULT_SUMMARY_TOP_N),
                "summary_top_n",
            ),
            metadata=dict(payload.get("metadata") or {}),
        )


def _load_yaml(path: Path) -> dict[str, Any]:
    data = yaml.safe_load(path.read_text(encoding="utf-8"))
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"YAML config at {path} must be a mapping at top level")
    return data


def read_config_payload(path: str | Path) -> dict[str, Any]:
    """Read a raw config mapping from JSON/YAML without validating it."""

    config_path = Path(path)
    suffix = config_path.suffix.lower()
    if suffix not in SUPPORTED_CONFIG_SUFFIXES:
        raise ValueError(
            f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
        )

    if suffix == ".json":
        payload = json.loads(config_path.read_text(encoding="utf-8"))
    else:
        payload = _load_yaml(config_path)

    if not isinstance(payload, dict):
        raise ValueError(f"Config at {config_path} must be a mapping")
    return payload


def load_config(path: str | Path) -> CrawlConfig:
    """Load CrawlConfig from JSON/YAML path."""

    return CrawlConfig.from_dict(read_config_payload(path))


def save_config(config: CrawlConfig, path: str | Path) -> None:
    """Save CrawlConfig as JSON or YAML based on file extension."""

    out_path = Path(path)
    out_path.parent.mkdir(parents=True, exist_ok=True)
    suffix = out_path.suffix.lower()
    payload = config.to_dict()

    if suffix == ".json":
        out_path.write_text(
            json.dumps(payload, indent=JSON_INDENT, sort_keys=True) + "\n",
            encoding="utf-8",
        )
        return

    if suffix in {".yaml", ".yml"}:
        out_path.write_text(
            yaml.safe_dump(payload, sort_keys=False, allow_unicode=True),
            encoding="utf-8",
        )
        return

    raise ValueError(
        f"Unsupported config suffix '{suffix}'. Supported: {SUPPORTED_CONFIG_SUFFIXES}"
    )


__all__ = [
    "CrawlConfig",
    "load_config",
    "read_config_payload",
    "save_config",
]
