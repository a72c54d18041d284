"""CLI entrypoint for a same-domain crawl."""

from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
import sys
from typing import Any

from sitecrawl.crawler import CrawlConfig, CrawlPipeline, CrawlResult, SeedURLError
from sitecrawl.crawler.config import read_config_payload
from sitecrawl.crawler.constants import DEFAULT_OUTPUT_DIR


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        description="Crawl a website, staying on the seed URL's domain.",
    )

    parser.add_argument(
        "url",
        nargs="?",
        default=None,
        help="Seed URL. Prompted for when neither this nor the config provides one.",
    )
    parser.add_argument(
        "--config",
        type=Path,
        default=None,
        help="Path to JSON/YAML crawl config.",
    )
    parser.add_argument(
        "--output_dir",
        type=Path,
        default=None,
        help=f"Directory for result files and logs (default: {DEFAULT_OUTPUT_DIR}).",
    )

    parser.add_argument("--max_pages", type=int, default=None)
    parser.add_argument("--max_depth", type=int, default=None)
    parser.add_argument("--delay_seconds", type=float, default=None)
    parser.add_argument("--timeout_seconds", type=float, default=None)
    parser.add_argument("--max_retries", type=int, default=None)
    parser.add_argument("--retry_backoff_seconds", type=float, default=None)
    parser.add_argument("--concurrency", type=int, default=None)
    parser.add_argument("--user_agent", type=str, default=None)

    parser.add_argument(
        "--respect_robots",
        dest="respect_robots",
        action="store_true",
        default=None,
        help="Respect robots.txt (default comes from config).",
    )
    parser.add_argument(
        "--no_respect_robots",
        dest="respect_robots",
        action="store_false",
        help="Ignore robots.txt.",
    )
    parser.add_argument(
        "--skip_unauthorized",
        action="store_true",
        default=None,
        help="Skip pages answering with authorization or terminal status codes.",
    )
    parser.add_argument(
        "--ignore_restrictions",
        action="store_true",
        default=None,
        help="Override robots.txt and authorization skips; accept any response.",
    )

    parser.add_argument(
        "--print_stats_json",
        action="store_true",
        help="Print full runtime stats JSON in stdout after run.",
    )
    parser.add_argument(
        "--verbose",
        action="store_true",
        help="Enable verbose logging.",
    )

    return parser.parse_args(argv)


def ensure_scheme(url: str) -> str:
    """Prefix `https://` when the user typed a bare host."""

    url = url.strip()
    if url and "://" not in url:
        return f"https://{url}"
    return url


def prompt_for_url() -> str:
    try:
        return input("Enter the website URL to crawl: ").strip()
    except EOFError:
        return ""


def build_config(args: argparse.Namespace) -> CrawlConfig:
    payload: dict[str, Any] = {}
    if args.config is not None:
        payload = read_config_payload(args.config)

    if args.url:
        payload["seed_url"] = args.url
    if not payload.get("seed_url"):
        payload["seed_url"] = prompt_for_url()
    if not payload["seed_url"]:
        raise SeedURLError("", "seed URL is required")
    payload["seed_url"] = ensure_scheme(str(payload["seed_url"]))

    if args.output_dir is not None:
        payload["output_dir"] = str(args.output_dir)

    overrides = {
        "max_pages": args.max_pages,
        "max_depth": args.max_depth,
        "delay_seconds": args.delay_seconds,
        "timeout_seconds": args.timeout_seconds,
        "max_retries": args.max_retries,
        "retry_backoff_seconds": args.retry_backoff_seconds,
        "concurrency": args.concurrency,
        "user_agent": args.user_agent,
        "respect_robots": args.respect_robots,
        "skip_unauthorized": args.skip_unauthorized,
        "ignore_restrictions": args.ignore_restrictions,
    }
    for key, value in overrides.items():
        if value is not None:
            payload[key] = value

    return CrawlConfig.from_dict(payload)


def setup_logging(output_dir: Path, verbose: bool) -> None:
    log_level = logging.DEBUG if verbose else logging.INFO

    log_dir = output_dir / "logs"
    log_dir.mkdir(parents=True, exist_ok=True)
    log_path = log_dir / "crawl.log"

    formatter = logging.Formatter(
        "%(asctime)s %(levelname)s [%(name)s] %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root = logging.getLogger()
    root.handlers.clear()
    root.setLevel(log_level)

    stream_handler = logging.StreamHandler(sys.stdout)
    stream_handler.setLevel(log_level)
    stream_handler.setFormatter(formatter)
    root.addHandler(stream_handler)

    file_handler = logging.FileHandler(log_path, encoding="utf-8")
    file_handler.setLevel(log_level)
    file_handler.setFormatter(formatter)
    root.addHandler(file_handler)

    # "discarding data: None" and similar extraction chatter drowns the crawl log.
    logging.getLogger("trafilatura").setLevel(logging.ERROR)
    logging.getLogger("trafilatura.core").setLevel(logging.ERROR)
    logging.getLogger("readability.readability").setLevel(logging.WARNING)


def print_summary(result: CrawlResult, *, print_stats_json: bool) -> None:
    print("\n=== Crawl Complete ===")
    if result.cancelled:
        print("(cancelled before the frontier drained)")
    print(f"domain: {result.domain}")
    print(f"pages crawled: {len(result.pages)}")
    print(f"results: {result.output_path}")
    print(f"summary: {result.summary_path}")
    print(f"total time: {result.total_time_ms / 1000:.2f}s")
    print(f"total links found: {result.total_links}")
    print(f"failed requests: {result.failed_requests}")
    print(f"skipped requests: {result.skipped_requests}")

    if print_stats_json:
        print("\n--- Full Stats JSON ---")
        print(json.dumps(dict(result.stats), indent=2, sort_keys=True))


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)

    try:
        config = build_config(args)
    except (ValueError, OSError) as exc:
        setup_logging(args.output_dir or Path(DEFAULT_OUTPUT_DIR), verbose=args.verbose)
        logging.error("Failed to build config: %s", exc)
        return 2

    setup_logging(Path(config.output_dir), verbose=args.verbose)
    logging.info(
        "Starting crawl: seed=%s, max_pages=%d, max_depth=%d, output_dir=%s",
        config.seed_url,
        config.max_pages,
        config.max_depth,
        config.output_dir,
    )

    try:
        result = CrawlPipeline(config).run()
    except SeedURLError as exc:
        logging.error("%s", exc)
        return 2
    except KeyboardInterrupt:
        logging.error("Interrupted by user")
        return 130
    except Exception:
        logging.exception("Crawl failed")
        return 1

    print_summary(result, print_stats_json=args.print_stats_json)
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
