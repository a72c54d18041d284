"""URL fetching with robots.txt checks and the policy-driven retry loop."""

from __future__ import annotations

import logging
import threading
import time
from typing import Callable
from urllib.parse import urlsplit
from urllib.robotparser import RobotFileParser

import requests

from .config import CrawlConfig
from .policy import classify
from .types import Decision, FetchOutcome, FetchResult, PolicyDecision


LOGGER = logging.getLogger(__name__)


class Fetcher:
    """Fetch URLs with `requests`, classifying every attempt through the policy.

    Concurrency model:
    - Each worker thread gets its own `requests.Session` unless one is injected.
    - The robots cache is shared and guarded by a lock.
    """

    def __init__(
        self,
        config: CrawlConfig,
        *,
        session: requests.Session | None = None,
        sleep: Callable[[float], None] = time.sleep,
    ) -> None:
        self.config = config
        self._shared_session = session
        self._sleep = sleep

        self._thread_local = threading.local()
        self._owned_sessions: list[requests.Session] = []

        self._robots_lock = threading.Lock()
        self._robots_cache: dict[str, RobotFileParser | None] = {}

        self._closed = False
        self._closed_lock = threading.Lock()

    def fetch(self, url: str) -> FetchOutcome:
        """Fetch one URL, retrying as the policy dictates, and classify the outcome."""

        delays: list[float] = []
        attempt = 1

        while True:
            if self._is_closed():
                result = FetchResult(
                    requested_url=url,
                    final_url=None,
                    status_code=None,
                    content_type=None,
                    body=None,
                    error="Fetcher is closed",
                    error_type="FetcherClosed",
                )
                decision = PolicyDecision(Decision.FAIL, reason=result.error)
                return FetchOutcome(decision, result, attempts=attempt, delays=tuple(delays))

            result = self._fetch_once(url)
            decision = classify(result, attempt=attempt, config=self.config)

            if decision.decision != Decision.RETRY:
                return FetchOutcome(decision, result, attempts=attempt, delays=tuple(delays))

            LOGGER.info(
                "Retrying %s (%d/%d) in %.1fs: %s",
                url,
                attempt,
                self.config.max_retries,
                decision.delay_seconds,
                decision.reason,
            )
            delays.append(decision.delay_seconds)
            if decision.delay_seconds > 0:
                self._sleep(decision.delay_seconds)
            attempt += 1

    def close(self) -> None:
        """Stop issuing new attempts and release owned HTTP sessions."""

        with self._closed_lock:
            self._closed = True
            sessions, self._owned_sessions = self._owned_sessions, []

        # Sessions belong to whichever worker thread created them.
        for session in sessions:
            session.close()
        self._thread_local.session = None

    def __enter__(self) -> "Fetcher":
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def _is_closed(self) -> bool:
        with self._closed_lock:
            return self._closed

    def _fetch_once(self, url: str) -> FetchResult:
        started = time.perf_counter()
        session = self._session()

        try:
            response = session.get(
                url,
                headers=self.config.headers(),
                timeout=self.config.timeout_seconds,
                allow_redirects=True,
            )
            elapsed_ms = int((time.perf_counter() - started) * 1000)

            body = response.content if response.content is not None else b""
            return FetchResult(
                requested_url=url,
                final_url=response.url or url,
                status_code=response.status_code,
                content_type=response.headers.get("Content-Type"),
                body=body,
                elapsed_ms=elapsed_ms,
                error=None,
            )
        except requests.RequestException as exc:
            elapsed_ms = int((time.perf_counter() - started) * 1000)
            return FetchResult(
                requested_url=url,
                final_url=None,
                status_code=None,
                content_type=None,
                body=None,
                elapsed_ms=elapsed_ms,
                error=f"{exc.__class__.__name__}: {exc}",
                error_type=exc.__class__.__name__,
            )

    def _session(self) -> requests.Session:
        if self._shared_session is not None:
            return self._shared_session

        session = getattr(self._thread_local, "session", None)
        if session is None:
            session = requests.Session()
            session.max_redirects = self.config.max_redirects
            self._thread_local.session = session
            with self._closed_lock:
                self._owned_sessions.append(session)
        return session

    def load_robots(self, url: str) -> bool:
        """Load robots.txt for the URL's origin once. Returns True if rules were found."""

        host_key = self._host_key(url)
        with self._robots_lock:
            if host_key in self._robots_cache:
                return self._robots_cache[host_key] is not None

        parser = self._load_robots_parser(host_key)
        with self._robots_lock:
            self._robots_cache[host_key] = parser

        if parser is None:
            LOGGER.warning("No robots.txt found for %s, proceeding without restrictions", host_key)
            return False
        LOGGER.info("Loaded robots.txt for %s", host_key)
        return True

    def is_allowed_by_robots(self, url: str) -> bool:
        """Evaluate robots directives for the configured user agent."""

        host_key = self._host_key(url)

        with self._robots_lock:
            cached = host_key in self._robots_cache
            parser = self._robots_cache.get(host_key)

        if not cached:
            self.load_robots(url)
            with self._robots_lock:
                parser = self._robots_cache.get(host_key)

        # If robots cannot be loaded, fail open to avoid stalling crawling.
        if parser is None:
            return True

        try:
            return parser.can_fetch(self.config.user_agent or "*", url)
        except Exception:
            LOGGER.debug("robots.txt evaluation failed for %s", url, exc_info=True)
            return True

    @staticmethod
    def _host_key(url: str) -> str:
        parsed = urlsplit(url)
        return f"{parsed.scheme.lower()}://{parsed.netloc.lower()}"

    def _load_robots_parser(self, host_root: str) -> RobotFileParser | None:
        robots_url = f"{host_root}/robots.txt"

        try:
            response = self._session().get(
                robots_url,
                headers={"User-Agent": self.config.user_agent},
                timeout=min(10.0, self.config.timeout_seconds),
            )
        except requests.RequestException as exc:
            LOGGER.debug("robots.txt request failed for %s: %s", robots_url, exc)
            return None

        if response.status_code >= 400:
            return None

        parser = RobotFileParser()
        parser.set_url(robots_url)
        parser.parse(response.text.splitlines())
        return parser


__all__ = ["Fetcher"]
