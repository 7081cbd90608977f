"""
Tests for retry.py - backoff decorator and circuit breaker.
"""

from unittest import mock

import pytest

from jobmate import retry
from jobmate.retry import (
    CircuitBreaker,
    CircuitOpenError,
    RetryError,
    RetryableStatusError,
    exponential_backoff,
    is_transient_error,
    should_retry_http_status,
)


@pytest.fixture
def sleeps(monkeypatch):
    """Collect the requested sleep durations instead of sleeping."""
    recorded = []
    monkeypatch.setattr(retry.time, "sleep", recorded.append)
    return recorded


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self):
        return self.now


class TestExponentialBackoff:
    """Test the exponential_backoff decorator."""

    def test_no_retry_when_call_succeeds(self, sleeps):
        func = mock.Mock(return_value="ok")

        assert exponential_backoff(max_retries=3, base_delay=0.1)(func)("a", b=1) == "ok"
        func.assert_called_once_with("a", b=1)
        assert sleeps == []

    def test_recovers_after_transient_failures(self, sleeps):
        func = mock.Mock(side_effect=[ConnectionError("reset"), ConnectionError("reset"), "ok"])

        assert exponential_backoff(max_retries=3, base_delay=0.01)(func)() == "ok"
        assert func.call_count == 3
        assert len(sleeps) == 2

    def test_gives_up_with_cause_chained(self, sleeps):
        func = mock.Mock(side_effect=RetryableStatusError(503, "https://maps.example"))

        with pytest.raises(RetryError, match="Failed after 3 attempts") as exc_info:
            exponential_backoff(max_retries=2, base_delay=0.01)(func)()

        assert func.call_count == 3
        assert exc_info.value.__cause__.status_code == 503

    def test_zero_retries_means_one_attempt(self, sleeps):
        func = mock.Mock(side_effect=ConnectionError("down"))
        with pytest.raises(RetryError):
            exponential_backoff(max_retries=0)(func)()
        assert func.call_count == 1
        assert sleeps == []

    def test_other_exceptions_propagate_immediately(self, sleeps):
        func = mock.Mock(side_effect=ValueError("bad input"))
        wrapped = exponential_backoff(max_retries=3, exceptions=(ConnectionError,))(func)

        with pytest.raises(ValueError, match="bad input"):
            wrapped()
        assert func.call_count == 1

    def test_delays_double(self, sleeps):
        seen = []
        wrapped = exponential_backoff(
            max_retries=3,
            base_delay=0.01,
            exponential_base=2.0,
            on_retry=lambda attempt, exc, delay: seen.append((attempt, delay)),
        )(mock.Mock(side_effect=ConnectionError("down")))

        with pytest.raises(RetryError):
            wrapped()

        assert seen == [(1, 0.01), (2, 0.02), (3, 0.04)]
        assert sleeps == [0.01, 0.02, 0.04]

    def test_delays_capped_at_max(self, sleeps):
        wrapped = exponential_backoff(max_retries=5, base_delay=1.0, max_delay=2.0, exponential_base=3.0)(
            mock.Mock(side_effect=ConnectionError("down"))
        )
        with pytest.raises(RetryError):
            wrapped()
        assert sleeps == [1.0, 2.0, 2.0, 2.0, 2.0]

    def test_preserves_function_name(self):
        @exponential_backoff()
        def lookup():
            return 1

        assert lookup.__name__ == "lookup"

    def test_default_callback_logs_retries(self, sleeps, quiet_logger, tmp_path):
        wrapped = exponential_backoff(max_retries=1, base_delay=0.5)(
            mock.Mock(side_effect=ConnectionError("reset by peer"))
        )
        with pytest.raises(RetryError):
            wrapped()

        for handler in quiet_logger.logger.handlers:
            handler.flush()
        log_text = "".join(p.read_text() for p in (tmp_path / "logs").glob("*.log"))
        assert "Retrying after transient failure" in log_text
        assert '"attempt": 1' in log_text




class TestCircuitBreaker:
    """Test CircuitBreaker state transitions."""

    @pytest.fixture
    def clock(self):
        return FakeClock()

    @staticmethod
    def failing_func():
        raise ConnectionError("geocoder down")

    def test_starts_closed(self):
        """A new breaker is closed and passes results through."""
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=1)
        assert breaker.call(lambda: "success") == "success"
        assert breaker.state == CircuitBreaker.CLOSED

    def test_passes_arguments(self):
        breaker = CircuitBreaker()
        assert breaker.call(pow, 2, 3) == 8

    def test_opens_after_threshold(self, clock):
        """Consecutive failures up to the threshold trip the breaker."""
        breaker = CircuitBreaker(failure_threshold=3, recovery_timeout=1, clock=clock)

        for _ in range(3):
            with pytest.raises(ConnectionError):
                breaker.call(self.failing_func)

        assert breaker.state == CircuitBreaker.OPEN

        with pytest.raises(CircuitOpenError, match="Circuit breaker is OPEN"):
            breaker.call(self.failing_func)

    def test_success_resets_failure_count(self):
        breaker = CircuitBreaker(failure_threshold=2)
        with pytest.raises(ConnectionError):
            breaker.call(self.failing_func)
        breaker.call(lambda: None)
        with pytest.raises(ConnectionError):
            breaker.call(self.failing_func)
        assert breaker.state == CircuitBreaker.CLOSED

    def test_unexpected_exceptions_do_not_count(self):
        breaker = CircuitBreaker(failure_threshold=1, expected_exception=RetryError)
        with pytest.raises(ConnectionError):
            breaker.call(self.failing_func)
        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.failure_count == 0

    def test_half_open_after_timeout(self, clock):
        """A failed trial call after the timeout reopens the circuit."""
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=10, clock=clock)

        for _ in range(2):
            with pytest.raises(ConnectionError):
                breaker.call(self.failing_func)
        assert breaker.state == CircuitBreaker.OPEN

        clock.now += 11

        # The trial call goes through, fails, and opens the circuit again
        with pytest.raises(ConnectionError):
            breaker.call(self.failing_func)
        assert breaker.state == CircuitBreaker.OPEN

        with pytest.raises(CircuitOpenError):
            breaker.call(self.failing_func)

    def test_closes_on_success_in_half_open(self, clock):
        """A successful trial call closes the breaker."""
        breaker = CircuitBreaker(failure_threshold=2, recovery_timeout=10, clock=clock)

        for _ in range(2):
            with pytest.raises(ConnectionError):
                breaker.call(self.failing_func)

        clock.now += 10
        assert breaker.call(lambda: "success") == "success"
        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.failure_count == 0

    def test_reset_closes_circuit(self):
        """reset() closes an open breaker."""
        breaker = CircuitBreaker(failure_threshold=2)

        for _ in range(2):
            with pytest.raises(ConnectionError):
                breaker.call(self.failing_func)
        assert breaker.state == CircuitBreaker.OPEN

        breaker.reset()
        assert breaker.state == CircuitBreaker.CLOSED
        assert breaker.failure_count == 0
        assert breaker.call(lambda: "ok") == "ok"


class TestTransientErrorDetection:
    """Test is_transient_error and should_retry_http_status."""

    def test_timeouts_are_transient(self):
        assert is_transient_error(ConnectionError("Connection timeout"))
        assert is_transient_error(Exception("Read timed out"))

    def test_server_errors_are_transient(self):
        """Gateway and server errors are retryable."""
        for message in ("503 Service Unavailable", "502 Bad Gateway", "500 Internal Server Error"):
            assert is_transient_error(Exception(message))

    def test_quota_errors_are_transient(self):
        assert is_transient_error(ValueError("Geocoding API error: OVER_QUERY_LIMIT"))
        assert is_transient_error(RetryableStatusError(504))

    def test_permanent_errors(self):
        """Client errors and denials are permanent."""
        for error in (
            Exception("404 Not Found"),
            ValueError("Invalid data"),
            Exception("401 Unauthorized"),
            ValueError("Geocoding API error: REQUEST_DENIED"),
        ):
            assert not is_transient_error(error)

    @pytest.mark.parametrize("status", [408, 429, 500, 502, 503, 504])
    def test_retryable_statuses(self, status):
        assert should_retry_http_status(status)

    @pytest.mark.parametrize("status", [200, 301, 400, 401, 403, 404])
    def test_permanent_statuses(self, status):
        assert not should_retry_http_status(status)

    def test_retryable_status_error_message(self):
        error = RetryableStatusError(429, "https://maps.example/geocode")
        assert str(error) == "HTTP 429 from https://maps.example/geocode"
        assert str(RetryableStatusError(500)) == "HTTP 500 from remote service"
