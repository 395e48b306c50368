"""Retrying request executor: remote call -> stable {data, error, success} envelope.

RetryExecutor is the single place that classifies and retries remote failures.
Callers branch on the returned ApiResult / ApiListResult; they never catch or
retry themselves. Forbidden, NotFound and Conflict are surfaced on the first
occurrence; everything else is retried with exponential backoff plus jitter
bounded by one base interval. Sleep, clock and random source are injectable so
the backoff schedule is testable without real timers.
"""

from __future__ import annotations

import asyncio
import logging
import random
import time
from collections.abc import Awaitable, Callable
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any, TypeVar

from fiscalhub.application.dtos.result import (
    ApiListResult,
    ApiResult,
    RemoteErrorPayload,
    RemoteResponse,
)
from fiscalhub.core.constants import (
    CONFLICT_CODES,
    FORBIDDEN_CODES,
    NOT_FOUND_CODES,
    UNKNOWN_ERROR_MESSAGE,
)
from fiscalhub.domain.enums import ErrorKind
from fiscalhub.domain.exceptions import REMOTE_EXCEPTIONS, RemoteException

if TYPE_CHECKING:
    from fiscalhub.core.config import Settings

logger = logging.getLogger(__name__)

T = TypeVar("T")

Operation = Callable[[], Awaitable[RemoteResponse[Any]]]


def classify_error_code(code: str | None) -> ErrorKind:
    """Map an opaque backend error code onto an ErrorKind. Unknown -> TRANSIENT."""
    if code is None:
        return ErrorKind.TRANSIENT
    code = str(code)
    if code in FORBIDDEN_CODES:
        return ErrorKind.FORBIDDEN
    if code in NOT_FOUND_CODES:
        return ErrorKind.NOT_FOUND
    if code in CONFLICT_CODES:
        return ErrorKind.CONFLICT
    return ErrorKind.TRANSIENT


def exception_from_payload(error: RemoteErrorPayload) -> RemoteException:
    """Build the RemoteException subclass for a backend error body."""
    kind = classify_error_code(error.code)
    return REMOTE_EXCEPTIONS[kind](error.message or UNKNOWN_ERROR_MESSAGE, error.code)


def exception_from_error(exc: Exception) -> RemoteException:
    """Normalize any exception raised inside an operation.

    RemoteException passes through. Other exceptions that carry an ErrorKind
    in a `kind` attribute (e.g. storage errors) keep it; the rest are TRANSIENT.
    """
    if isinstance(exc, RemoteException):
        return exc
    kind = getattr(exc, "kind", None)
    if not isinstance(kind, ErrorKind):
        kind = ErrorKind.TRANSIENT
    message = str(exc) or exc.__class__.__name__ or UNKNOWN_ERROR_MESSAGE
    return REMOTE_EXCEPTIONS[kind](message, getattr(exc, "error_code", None))


@dataclass(frozen=True)
class RetryPolicy:
    """Retry budget and backoff schedule.

    Attributes:
        max_retries: Additional attempts after the first call.
        base_delay: Base interval in seconds; delay(n) = base * 2^n + U[0, base).
    """

    max_retries: int = 3
    base_delay: float = 1.0

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError("max_retries must be >= 0")
        if self.base_delay < 0:
            raise ValueError("base_delay must be >= 0")

    def delay_for(self, retry_index: int, jitter_fraction: float) -> float:
        """Delay before retry number retry_index (0-based); jitter_fraction in [0, 1)."""
        return self.base_delay * (2**retry_index) + jitter_fraction * self.base_delay

    @classmethod
    def from_settings(cls, settings: Settings | None = None) -> RetryPolicy:
        from fiscalhub.core.config import get_settings

        s = settings or get_settings()
        return cls(max_retries=s.retry_max_retries, base_delay=s.retry_base_delay_seconds)


@dataclass
class RetryState:
    """State of one execution: attempts made, last error, elapsed time, delays slept."""

    started_at: float
    attempts: int = 0
    last_error: RemoteException | None = None
    elapsed: float = 0.0
    delays: list[float] = field(default_factory=list)

    def record_failure(self, error: RemoteException, now: float) -> None:
        self.attempts += 1
        self.last_error = error
        self.elapsed = now - self.started_at

    def record_success(self, now: float) -> None:
        self.attempts += 1
        self.last_error = None
        self.elapsed = now - self.started_at

    def should_retry(self, policy: RetryPolicy) -> bool:
        """True when the last error is retryable and the budget is not spent."""
        if self.last_error is None or not self.last_error.kind.retryable:
            return False
        return self.attempts <= policy.max_retries


class RetryExecutor:
    """Stateless between calls; safe to share across services and views."""

    def __init__(
        self,
        policy: RetryPolicy | None = None,
        *,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
        clock: Callable[[], float] = time.monotonic,
        random_source: Callable[[], float] = random.random,
    ) -> None:
        self.policy = policy or RetryPolicy()
        self._sleep = sleep
        self._clock = clock
        self._random = random_source

    async def execute(self, operation: Operation) -> ApiResult[Any]:
        """Run operation with retry; always returns an ApiResult."""
        try:
            response = await self._run(operation)
        except RemoteException as e:
            return ApiResult.fail(e.message, e.kind, e.code)
        return ApiResult.ok(response.data)

    async def execute_list(self, operation: Operation) -> ApiListResult[Any]:
        """Run a list operation with retry; failures carry data=[]."""
        try:
            response = await self._run(operation)
        except RemoteException as e:
            return ApiListResult.fail(e.message, e.kind, e.code)
        return ApiListResult.ok(list(response.data or []), response.count)

    async def _run(self, operation: Operation) -> RemoteResponse[Any]:
        """Drive the retry state machine. Raises the last RemoteException on failure."""
        name = getattr(operation, "__qualname__", repr(operation))
        state = RetryState(started_at=self._clock())
        while True:
            try:
                response = await operation()
            except Exception as exc:
                error = exception_from_error(exc)
            else:
                if response.error is None:
                    state.record_success(self._clock())
                    return response
                error = exception_from_payload(response.error)

            state.record_failure(error, self._clock())
            if not error.kind.retryable:
                logger.debug(
                    "Non-retryable %s in %s: %s", error.kind.value, name, error.message
                )
                raise error
            if not state.should_retry(self.policy):
                logger.warning(
                    "Retry exhausted for %s after %d attempts (%.2fs): %s",
                    name,
                    state.attempts,
                    state.elapsed,
                    error.message,
                )
                raise error

            delay = self.policy.delay_for(state.attempts - 1, self._random())
            state.delays.append(delay)
            logger.info(
                "Retry %d/%d for %s in %.2fs: %s",
                state.attempts,
                self.policy.max_retries,
                name,
                delay,
                error.message,
            )
            await self._sleep(delay)
