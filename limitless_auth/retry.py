"""
Retry Execution
Policy-driven retry loop for transient API failures.

Only errors carrying an HTTP ``status`` listed in the policy are retried
(429 and 5xx by default). Everything else propagates on first occurrence.

Usage:
    executor = RetryExecutor()
    markets = await executor.execute(
        lambda: http.get("/markets/active"),
        RetryPolicy(status_codes={429, 500}, max_retries=3, delays=(2, 5, 10)),
    )

    @retry_on_errors(status_codes={429, 500}, max_retries=3)
    async def create_order():
        ...
"""

import asyncio
import functools
import inspect
import random
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, FrozenSet, Optional, Tuple, Union

from .logger import AuthLogger, NoOpLogger


DEFAULT_RETRY_STATUS_CODES = frozenset({429, 500, 502, 503, 504})

RetryObserver = Callable[[int, BaseException, float], Any]


@dataclass(frozen=True)
class RetryPolicy:
    """
    Immutable retry configuration.

    Attributes:
        status_codes: HTTP statuses treated as transient
        max_retries: retries after the first attempt (total attempts = 1 + max_retries)
        delays: explicit delay schedule in seconds; the last entry repeats
        exponential_base: base for ``base ** attempt`` when no delays are given
        max_delay: cap for exponential backoff
        jitter: fraction of random spread applied to exponential delays
        on_retry: observer called as ``on_retry(attempt, error, delay)``
    """
    status_codes: FrozenSet[int] = DEFAULT_RETRY_STATUS_CODES
    max_retries: int = 3
    delays: Optional[Tuple[float, ...]] = None
    exponential_base: float = 2.0
    max_delay: float = 60.0
    jitter: float = 0.0
    on_retry: Optional[RetryObserver] = field(default=None, compare=False)

    def __post_init__(self):
        object.__setattr__(self, "status_codes", frozenset(int(s) for s in (self.status_codes or ())))
        if self.delays is not None:
            delays = tuple(float(d) for d in self.delays)
            if not delays:
                raise ValueError("delays must not be empty when provided")
            if any(d < 0 for d in delays):
                raise ValueError("delays must be non-negative")
            object.__setattr__(self, "delays", delays)
        if int(self.max_retries) < 0:
            raise ValueError("max_retries must be >= 0")
        object.__setattr__(self, "max_retries", int(self.max_retries))
        if self.exponential_base <= 0:
            raise ValueError("exponential_base must be > 0")
        if self.max_delay < 0:
            raise ValueError("max_delay must be >= 0")
        if not 0.0 <= self.jitter <= 1.0:
            raise ValueError("jitter must be within [0, 1]")

    def is_retryable(self, error: BaseException) -> bool:
        status = error_status(error)
        return status is not None and status in self.status_codes

    def get_delay(self, attempt: int) -> float:
        """Delay in seconds before retry number ``attempt`` (0-based)."""
        if self.delays:
            return self.delays[min(attempt, len(self.delays) - 1)]

        try:
            delay = min(float(self.exponential_base) ** attempt, float(self.max_delay))
        except OverflowError:
            delay = float(self.max_delay)
        if self.jitter:
            delay += delay * random.uniform(-self.jitter, self.jitter)
            delay = min(max(0.0, delay), float(self.max_delay))
        return delay


def error_status(error: BaseException) -> Optional[int]:
    """HTTP status attached to an error, if any."""
    status = getattr(error, "status", None)
    if status is None:
        status = getattr(error, "status_code", None)
    if isinstance(status, bool) or not isinstance(status, int):
        return None
    return status


# -----------------------------------------------------------------------------
# Attempt outcomes
# -----------------------------------------------------------------------------

@dataclass
class Success:
    value: Any
    attempt: int


@dataclass
class RetryableFailure:
    error: BaseException
    status: int
    attempt: int


@dataclass
class TerminalFailure:
    error: BaseException
    attempt: int
    exhausted: bool = False


AttemptOutcome = Union[Success, RetryableFailure, TerminalFailure]


# -----------------------------------------------------------------------------
# Executor
# -----------------------------------------------------------------------------

class RetryExecutor:
    """
    Runs a single-shot async operation under a RetryPolicy.

    The delay step suspends only the call being retried. Cancelling the
    awaiting task, or setting ``cancel_event``, stops further attempts.
    """

    def __init__(
        self,
        logger: Optional[AuthLogger] = None,
        sleep: Callable[[float], Awaitable[Any]] = asyncio.sleep,
    ):
        self.logger = logger or NoOpLogger()
        self._sleep = sleep

    def classify(self, error: BaseException, attempt: int, policy: RetryPolicy) -> AttemptOutcome:
        status = error_status(error)
        if status is None or status not in policy.status_codes:
            return TerminalFailure(error=error, attempt=attempt)
        if attempt >= policy.max_retries:
            return TerminalFailure(error=error, attempt=attempt, exhausted=True)
        return RetryableFailure(error=error, status=status, attempt=attempt)

    async def run_attempt(self, operation: Callable[[], Awaitable[Any]], attempt: int, policy: RetryPolicy) -> AttemptOutcome:
        try:
            value = await operation()
        except Exception as e:
            return self.classify(e, attempt, policy)
        return Success(value=value, attempt=attempt)

    def _notify(self, policy: RetryPolicy, attempt: int, error: BaseException, delay: float) -> None:
        if policy.on_retry is None:
            return
        try:
            policy.on_retry(attempt, error, delay)
        except Exception as e:
            self.logger.warning("on_retry observer failed, continuing", {"attempt": attempt, "error": str(e)})

    @staticmethod
    def _check_cancelled(cancel_event: Optional[asyncio.Event]) -> None:
        if cancel_event is not None and cancel_event.is_set():
            raise asyncio.CancelledError()

    async def execute(
        self,
        operation: Callable[[], Awaitable[Any]],
        policy: Optional[RetryPolicy] = None,
        cancel_event: Optional[asyncio.Event] = None,
    ) -> Any:
        """Run ``operation`` until it succeeds, fails terminally or exhausts the policy."""
        policy = policy or RetryPolicy()
        attempt = 0

        while True:
            self._check_cancelled(cancel_event)
            outcome = await self.run_attempt(operation, attempt, policy)

            if isinstance(outcome, Success):
                if attempt:
                    self.logger.info("Operation succeeded after retry", {"attempts": attempt + 1})
                return outcome.value

            if isinstance(outcome, TerminalFailure):
                if outcome.exhausted:
                    self.logger.error(
                        "All retries exhausted",
                        outcome.error,
                        {"attempts": attempt + 1, "status": error_status(outcome.error)},
                    )
                raise outcome.error

            delay = policy.get_delay(attempt)
            self.logger.warning(
                "API error, retrying",
                {"attempt": attempt + 1, "status": outcome.status, "delay": delay},
            )
            self._notify(policy, attempt, outcome.error, delay)

            await self._sleep(delay)
            attempt += 1


def _policy_from(policy: Optional[RetryPolicy], options: dict) -> RetryPolicy:
    if policy is not None and options:
        raise TypeError("pass either a RetryPolicy or keyword options, not both")
    if policy is not None:
        return policy
    return RetryPolicy(**options)


async def with_retry(
    fn: Callable[[], Awaitable[Any]],
    policy: Optional[RetryPolicy] = None,
    logger: Optional[AuthLogger] = None,
    **options,
) -> Any:
    """One-off wrapper around RetryExecutor.execute."""
    return await RetryExecutor(logger=logger).execute(fn, _policy_from(policy, options))


def retry_on_errors(policy: Optional[RetryPolicy] = None, logger: Optional[AuthLogger] = None, **options):
    """
    Decorator for coroutine functions and methods.

        @retry_on_errors(status_codes={429, 500}, max_retries=3, delays=(2, 5, 10))
        async def fetch():
            ...
    """
    resolved = _policy_from(policy, options)

    def decorator(func):
        if not inspect.iscoroutinefunction(func):
            raise TypeError("retry_on_errors can only decorate async functions")

        @functools.wraps(func)
        async def wrapper(*args, **kwargs):
            executor = RetryExecutor(logger=logger)
            return await executor.execute(lambda: func(*args, **kwargs), resolved)

        wrapper.retry_policy = resolved
        return wrapper

    return decorator


class RetryableClient:
    """
    HttpClient wrapper that sends every request through a RetryExecutor.

    Attributes not defined here are forwarded to the wrapped client.
    """

    def __init__(self, http_client, policy: Optional[RetryPolicy] = None, logger: Optional[AuthLogger] = None):
        self.http_client = http_client
        self.policy = policy or RetryPolicy()
        self.executor = RetryExecutor(logger=logger)

    async def get(self, path: str, **kwargs) -> Any:
        return await self.executor.execute(lambda: self.http_client.get(path, **kwargs), self.policy)

    async def post(self, path: str, data: Any = None, **kwargs) -> Any:
        return await self.executor.execute(lambda: self.http_client.post(path, data, **kwargs), self.policy)

    async def delete(self, path: str, **kwargs) -> Any:
        return await self.executor.execute(lambda: self.http_client.delete(path, **kwargs), self.policy)

    def __getattr__(self, name: str) -> Any:
        return getattr(self.http_client, name)

