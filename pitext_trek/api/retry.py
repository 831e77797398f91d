# pitext_trek/api/retry.py
"""Bounded retry combinator shared by pipeline stages."""

from __future__ import annotations

import logging
from enum import Enum
from typing import Callable, Optional, TypeVar

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt

logger = logging.getLogger(__name__)

T = TypeVar("T")


class RetryDecision(Enum):
    RETRY = "retry"
    FAIL = "fail"


def always_retry(_exc: BaseException) -> RetryDecision:
    return RetryDecision.RETRY


def with_retries(
    max_attempts: int,
    classify: Callable[[BaseException], RetryDecision],
    operation: Callable[[int, Optional[BaseException]], T],
) -> T:
    """Run ``operation`` until it succeeds or the attempt budget is spent.

    ``operation`` receives the 1-based attempt number and the exception that
    ended the previous attempt (``None`` on the first one), so callers can
    harden their request after a failure. ``classify`` decides whether an
    exception is worth another attempt. The last exception is re-raised
    unchanged once retrying stops.
    """
    if max_attempts < 1:
        raise ValueError("max_attempts must be at least 1")

    last_error: Optional[BaseException] = None

    def _log_failure(state: RetryCallState) -> None:
        exc = state.outcome.exception() if state.outcome else None
        logger.warning("Attempt %d/%d failed: %s", state.attempt_number, max_attempts, exc)

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        retry=retry_if_exception(lambda exc: classify(exc) is RetryDecision.RETRY),
        before_sleep=_log_failure,
        reraise=True,
    )

    for attempt in retrying:
        with attempt:
            number = attempt.retry_state.attempt_number
            try:
                return operation(number, last_error)
            except Exception as exc:
                last_error = exc
                raise

    # Retrying with reraise=True either returns or raises above
    raise RuntimeError("retry loop exited without a result")  # pragma: no cover
