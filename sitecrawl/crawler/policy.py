"""Accept / retry / skip / fail classification for fetch attempts.

Everything here is pure: no I/O, no sleeping, no shared state. The fetcher
drives the attempt loop and asks `classify` what to do after each attempt.

Decision table, evaluated top to bottom:

1. ``ignore_restrictions``: any response with a status in [200, 600) is
   accepted; transport errors are retried until the budget runs out and then
   fail. Nothing is ever skipped in this mode.
2. 2xx responses are accepted.
3. Authorization-class (401, 403, 407, 429, 451) and terminal-class
   (404, 410, 500, 502, 503, 504) statuses are skipped immediately when
   ``skip_unauthorized`` is set. Otherwise they count as generic errors,
   except 404/410 which fail at once.
4. With ``skip_unauthorized``, transport errors whose message mentions an
   authorization keyword are skipped.
5. Everything else is retried with linear backoff, then fails.

Robots directives are checked by the pipeline before the first attempt and
never reach this module.
"""

from __future__ import annotations

from typing import Protocol

from .constants import (
    ACCEPT_ANY_STATUS_RANGE,
    AUTHORIZATION_ISSUE_PREFIX,
    AUTHORIZATION_KEYWORDS,
    CLASSIFIED_STATUS_CODES,
    PERMANENT_STATUS_CODES,
    SKIP_REASONS,
)
from .types import Decision, FetchResult, PolicyDecision


class RetrySettings(Protocol):
    """The slice of `CrawlConfig` the policy reads."""

    max_retries: int
    retry_backoff_seconds: float
    skip_unauthorized: bool
    ignore_restrictions: bool


def backoff_delay(attempt: int, base_delay: float) -> float:
    """Delay before retry number `attempt` (1-indexed): ``base * attempt``."""

    if attempt < 1:
        raise ValueError("attempt must be >= 1")
    return max(0.0, base_delay) * attempt


def skip_reason_for_status(status_code: int) -> str | None:
    return SKIP_REASONS.get(status_code)


def is_authorization_message(message: str | None) -> bool:
    """True if an error message reads like an authorization problem."""

    if not message:
        return False
    lowered = message.lower()
    return any(keyword in lowered for keyword in AUTHORIZATION_KEYWORDS)


def _failure_reason(result: FetchResult) -> str:
    if result.status_code is not None and result.error is None:
        known = SKIP_REASONS.get(result.status_code)
        if known:
            return f"HTTP status {result.status_code} ({known})"
    return result.describe_error()


def _retry_or_fail(result: FetchResult, *, attempt: int, config: RetrySettings) -> PolicyDecision:
    if attempt <= config.max_retries:
        return PolicyDecision(
            Decision.RETRY,
            reason=_failure_reason(result),
            status_code=result.status_code,
            delay_seconds=backoff_delay(attempt, config.retry_backoff_seconds),
        )
    return PolicyDecision(
        Decision.FAIL,
        reason=_failure_reason(result),
        status_code=result.status_code,
    )


def classify(result: FetchResult, *, attempt: int, config: RetrySettings) -> PolicyDecision:
    """Classify the `attempt`-th (1-indexed) fetch of one URL."""

    if attempt < 1:
        raise ValueError("attempt must be >= 1")

    status = result.status_code
    has_response = result.error is None and status is not None

    if config.ignore_restrictions:
        low, high = ACCEPT_ANY_STATUS_RANGE
        if has_response and low <= status < high:
            return PolicyDecision(Decision.ACCEPT, status_code=status)
        return _retry_or_fail(result, attempt=attempt, config=config)

    if has_response and 200 <= status < 300:
        return PolicyDecision(Decision.ACCEPT, status_code=status)

    if status is not None and status in CLASSIFIED_STATUS_CODES:
        if config.skip_unauthorized:
            return PolicyDecision(
                Decision.SKIP,
                reason=skip_reason_for_status(status),
                status_code=status,
            )
        if status in PERMANENT_STATUS_CODES:
            return PolicyDecision(
                Decision.FAIL,
                reason=_failure_reason(result),
                status_code=status,
            )
        return _retry_or_fail(result, attempt=attempt, config=config)

    if config.skip_unauthorized and is_authorization_message(result.error):
        return PolicyDecision(
            Decision.SKIP,
            reason=f"{AUTHORIZATION_ISSUE_PREFIX}: {result.error}",
            status_code=status,
        )

    return _retry_or_fail(result, attempt=attempt, config=config)


__all__ = [
    "RetrySettings",
    "backoff_delay",
    "classify",
    "is_authorization_message",
    "skip_reason_for_status",
]
