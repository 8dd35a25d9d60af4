"""Retry with exponential back-off for transient upstream failures.

Every GitHub, raw-content and git call in prwarden goes through a
RetryExecutor. The executor knows nothing about the operation it wraps: it
maps the raised exception to an ErrorKind tag and retries only the kinds the
policy lists as transient.

Back-off is ``2**attempt`` seconds with attempt starting at 1 (2s, 4s, ...),
unjittered, so a test with a fake sleep can assert the exact schedule.
"""

from __future__ import annotations

import asyncio
import enum
import logging
import time
from dataclasses import dataclass, field
from typing import Awaitable, Callable, TypeVar

import requests
from github import GithubException, RateLimitExceededException, UnknownObjectException

from prwarden_core.errors import GitCommandError

logger = logging.getLogger(__name__)

T = TypeVar("T")


class ErrorKind(enum.Enum):
    RATE_LIMITED = "rate_limited"
    TOO_MANY_REQUESTS = "too_many_requests"
    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    UNAUTHORIZED = "unauthorized"
    SERVER_ERROR = "server_error"
    GIT_FAILURE = "git_failure"
    OTHER = "other"


# NOT_FOUND is retried because GitHub is eventually consistent: a blob or ref
# created by a push seconds ago can 404 on a replica for a short while.
TRANSIENT_KINDS = frozenset({ErrorKind.RATE_LIMITED, ErrorKind.TOO_MANY_REQUESTS, ErrorKind.NOT_FOUND})


def _kind_from_status(status: int | None, message: str = "") -> ErrorKind:
    if status == 429:
        return ErrorKind.TOO_MANY_REQUESTS
    if status == 404:
        return ErrorKind.NOT_FOUND
    if status == 403:
        # Secondary rate limits come back as 403 with an explanatory message.
        return ErrorKind.RATE_LIMITED if "rate limit" in message.lower() else ErrorKind.FORBIDDEN
    if status == 401:
        return ErrorKind.UNAUTHORIZED
    if status is not None and status >= 500:
        return ErrorKind.SERVER_ERROR
    return ErrorKind.OTHER


def classify_error(exc: BaseException) -> ErrorKind:
    """Map an exception from PyGithub, requests or git to an ErrorKind."""
    if isinstance(exc, RateLimitExceededException):
        return ErrorKind.RATE_LIMITED
    if isinstance(exc, UnknownObjectException):
        return ErrorKind.NOT_FOUND
    if isinstance(exc, GithubException):
        data = exc.data if isinstance(exc.data, dict) else {}
        return _kind_from_status(exc.status, str(data.get("message", "")))
    if isinstance(exc, requests.HTTPError):
        response = exc.response
        return _kind_from_status(response.status_code if response is not None else None, str(exc))
    if isinstance(exc, GitCommandError):
        output = exc.output.lower()
        if "429" in output or "rate limit" in output:
            return ErrorKind.TOO_MANY_REQUESTS
        if "not found" in output:
            return ErrorKind.NOT_FOUND
        return ErrorKind.GIT_FAILURE
    return ErrorKind.OTHER


@dataclass(frozen=True)
class RetryPolicy:
    max_attempts: int = 3
    transient_kinds: frozenset[ErrorKind] = field(default=TRANSIENT_KINDS)

    def backoff(self, attempt: int) -> float:
        return float(2**attempt)

    def is_transient(self, kind: ErrorKind) -> bool:
        return kind in self.transient_kinds


DEFAULT_RETRY_POLICY = RetryPolicy()


class RetryExecutor:
    """Run an async operation, retrying transient failures.

    ``sleep`` and ``clock`` are injectable so tests can run the back-off
    schedule against a fake clock. ``deadline`` (seconds, measured from the
    first attempt) stops retrying once the next back-off would cross it;
    None means no overall deadline.
    """

    def __init__(
        self,
        policy: RetryPolicy = DEFAULT_RETRY_POLICY,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        deadline: float | None = None,
    ):
        self.policy = policy
        self._sleep = sleep
        self._clock = clock
        self.deadline = deadline

    async def execute(self, operation: Callable[[], Awaitable[T]]) -> T:
        started = self._clock()
        attempt = 1
        while True:
            try:
                return await operation()
            except Exception as e:
                kind = classify_error(e)
                if not self.policy.is_transient(kind) or attempt >= self.policy.max_attempts:
                    raise
                delay = self.policy.backoff(attempt)
                if self.deadline is not None and self._clock() - started + delay > self.deadline:
                    logger.warning("Retry deadline of %ss reached after %d attempt(s)", self.deadline, attempt)
                    raise
                logger.warning(
                    "Transient %s error (attempt %d/%d): %s. Retrying in %ss...",
                    kind.value,
                    attempt,
                    self.policy.max_attempts,
                    e,
                    delay,
                    extra={"attempt": attempt, "delay": delay, "error_kind": kind.value},
                )
                await self._sleep(delay)
                attempt += 1

    async def run_blocking(self, func: Callable[..., T], *args, **kwargs) -> T:
        """Retry a blocking callable (PyGithub, requests, subprocess) in a worker thread."""
        return await self.execute(lambda: asyncio.to_thread(func, *args, **kwargs))
