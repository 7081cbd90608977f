"""
Backoff and circuit breaking for the geocoding client.

exponential_backoff re-runs a call that raised one of the given exception
types, sleeping longer between each attempt. CircuitBreaker sits in front
of it and refuses calls for a while once the service keeps failing.
"""

import functools
import time
from typing import Callable, Optional, Tuple, Type

from .logger import get_logger


class RetryError(Exception):
    """Every attempt failed; the last failure is chained as __cause__."""


class RetryableStatusError(Exception):
    """Raised for an HTTP status that may succeed on a later attempt."""

    def __init__(self, status_code: int, url: str = ""):
        super().__init__(f"HTTP {status_code} from {url or 'remote service'}")
        self.status_code = status_code
        self.url = url


class CircuitOpenError(Exception):
    """The breaker is open and the call was not attempted."""


def _log_retry(attempt: int, exc: Exception, delay: float) -> None:
    get_logger().warning("Retrying after transient failure", attempt=attempt, error=str(exc), delay=delay)


def exponential_backoff(
    max_retries: int = 3,
    base_delay: float = 1.0,
    max_delay: float = 30.0,
    exponential_base: float = 2.0,
    exceptions: Tuple[Type[Exception], ...] = (Exception,),
    on_retry: Optional[Callable] = _log_retry,
):
    """
    Retry the decorated function when it raises one of `exceptions`.

    The first wait is base_delay seconds and each later wait is multiplied
    by exponential_base, never exceeding max_delay. After max_retries
    retries the failure is re-raised as RetryError. on_retry receives
    (attempt, exception, delay) before each sleep; pass None to silence it.

        @exponential_backoff(max_retries=2, base_delay=0.5)
        def fetch(params):
            return requests.get(GEOCODE_URL, params=params, timeout=10)
    """
    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args, **kwargs):
            attempts = max_retries + 1
            wait = base_delay
            attempt = 0
            while True:
                attempt += 1
                try:
                    return func(*args, **kwargs)
                except exceptions as e:
                    if attempt == attempts:
                        raise RetryError(f"Failed after {attempts} attempts: {e}") from e
                    pause = min(wait, max_delay)
                    if on_retry is not None:
                        on_retry(attempt, e, pause)
                    time.sleep(pause)
                    wait *= exponential_base

        return wrapper
    return decorator


class CircuitBreaker:
    """
    Stops calling a service after failure_threshold consecutive failures.

    While OPEN every call raises CircuitOpenError. Once recovery_timeout
    seconds have passed since the last failure, the next call runs as a
    HALF_OPEN trial: success closes the circuit, failure opens it again.
    Only expected_exception counts as a failure; anything else propagates
    without touching the counters. `clock` must be monotonic.
    """

    CLOSED = "closed"
    OPEN = "open"
    HALF_OPEN = "half_open"

    def __init__(
        self,
        failure_threshold: int = 5,
        recovery_timeout: float = 60,
        expected_exception: Type[Exception] = Exception,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.failure_threshold = failure_threshold
        self.recovery_timeout = recovery_timeout
        self.expected_exception = expected_exception
        self._clock = clock
        self.reset()

    def reset(self):
        """Close the circuit and forget past failures."""
        self.state = self.CLOSED
        self.failure_count = 0
        self.last_failure_time: Optional[float] = None

    def _remaining_cooldown(self) -> float:
        if self.last_failure_time is None:
            return 0
        return max(0, self.recovery_timeout - (self._clock() - self.last_failure_time))

    def call(self, func: Callable, *args, **kwargs):
        """Run func(*args, **kwargs) unless the circuit is open."""
        if self.state == self.OPEN:
            remaining = self._remaining_cooldown()
            if remaining > 0:
                raise CircuitOpenError(
                    f"Circuit breaker is OPEN. Service unavailable. Retry after {remaining:.0f}s"
                )
            self.state = self.HALF_OPEN

        try:
            result = func(*args, **kwargs)
        except self.expected_exception:
            self._record_failure()
            raise

        self.state = self.CLOSED
        self.failure_count = 0
        return result

    def _record_failure(self):
        self.failure_count += 1
        self.last_failure_time = self._clock()
        tripped = self.failure_count >= self.failure_threshold
        if tripped or self.state == self.HALF_OPEN:
            self.state = self.OPEN


# Lowercased substrings that mark an error message as worth retrying
TRANSIENT_MARKERS = (
    "timeout",
    "timed out",
    "connection",
    "temporary failure",
    "service unavailable",
    "over_query_limit",
    "500",
    "502",
    "503",
    "429",
)

RETRYABLE_STATUS_CODES = frozenset({408, 429, 500, 502, 503, 504})


def is_transient_error(exception: Exception) -> bool:
    """Guess from the exception type and message whether a retry could help."""
    if isinstance(exception, RetryableStatusError):
        return True
    text = str(exception).lower()
    return any(marker in text for marker in TRANSIENT_MARKERS)


def should_retry_http_status(status_code: int) -> bool:
    return status_code in RETRYABLE_STATUS_CODES
