"""
Retry Policy Tests
==================
asyncio.sleep is patched everywhere; no test actually waits.
"""
import asyncio
import pytest
from unittest.mock import AsyncMock, patch

from vidro_ai.core.config import env_int
from vidro_ai.core.errors import ConfigurationError, ParseError, RateLimitExceeded, TransportError
from vidro_ai.llm.retry import (
    MAX_RETRIES,
    RetryPolicy,
    default_delay_hint,
    is_rate_limited,
    with_retry,
)


class _Flaky:
    """Coroutine factory that fails ``failures`` times before succeeding."""

    def __init__(self, failures: int, exc: Exception, result: str = "ok"):
        self.failures = failures
        self.exc = exc
        self.result = result
        self.calls = 0

    async def __call__(self):
        self.calls += 1
        if self.calls <= self.failures:
            raise self.exc
        return self.result


def _rate_limit_error():
    return TransportError("groq API error 429: Too Many Requests", provider="groq", status_code=429)


# ---------------------------------------------------------------------------
# Classification
# ---------------------------------------------------------------------------
class TestRateLimitClassification:

    def test_status_429(self):
        assert is_rate_limited(TransportError("slow down", status_code=429)) is True

    @pytest.mark.parametrize("message", [
        "Request failed with 429",
        "rate_limit_exceeded for model",
        "Rate limit reached",
        "RESOURCE_EXHAUSTED: quota",
        "You exceeded your current quota",
    ])
    def test_message_markers(self, message):
        assert is_rate_limited(Exception(message)) is True

    def test_other_errors_not_rate_limited(self):
        assert is_rate_limited(TransportError("groq API error 401: invalid key", status_code=401)) is False
        assert is_rate_limited(ParseError("AI returned no JSON")) is False

    def test_status_code_overrides_body_markers(self):
        exc = TransportError(
            'groq API error 401: {"error": "invalid key", "request_id": "req_01hx4293kq"}',
            provider="groq",
            status_code=401,
        )
        assert is_rate_limited(exc) is False
        assert is_rate_limited(TransportError("openai API error 400: quota field invalid", status_code=400)) is False
        assert is_rate_limited(TransportError("gemini API error 500: tokens 4290", status_code=500)) is False

    def test_transport_error_without_status_uses_markers(self):
        assert is_rate_limited(TransportError("RESOURCE_EXHAUSTED: quota exceeded")) is True
        assert is_rate_limited(TransportError("groq request timed out after 60s")) is False


class TestDelayHint:

    def test_retry_after_wins(self):
        exc = TransportError("429", status_code=429, retry_after=7.0)
        assert default_delay_hint(exc) == 7.0

    def test_gemini_retry_in_phrase(self):
        exc = Exception("RESOURCE_EXHAUSTED. Please retry in 12.5s.")
        assert default_delay_hint(exc) == 12.5

    def test_no_hint(self):
        assert default_delay_hint(Exception("429")) is None

    def test_hint_capped_at_max_delay(self):
        policy = RetryPolicy(max_delay=30.0)
        exc = TransportError("429", status_code=429, retry_after=120.0)
        assert policy.backoff(0, exc) == 30.0


class TestBackoff:

    def test_exponential_without_jitter(self):
        policy = RetryPolicy(base_delay=5.0, jitter=0.0, delay_hint=None)
        assert [policy.backoff(a) for a in range(3)] == [5.0, 10.0, 20.0]

    def test_jitter_stays_in_band(self):
        policy = RetryPolicy(base_delay=4.0, jitter=0.25, delay_hint=None)
        for _ in range(20):
            assert 4.0 <= policy.backoff(0) <= 5.0


# ---------------------------------------------------------------------------
# with_retry
# ---------------------------------------------------------------------------
class TestWithRetry:

    def test_success_after_two_rate_limits(self):
        fn = _Flaky(failures=2, exc=_rate_limit_error())
        policy = RetryPolicy(max_retries=2, base_delay=1.0, jitter=0.0)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            result = asyncio.run(with_retry(fn, policy, label="groq"))

        assert result == "ok"
        assert fn.calls == 3
        assert [c.args[0] for c in mock_sleep.await_args_list] == [1.0, 2.0]

    def test_always_rate_limited_gives_up(self):
        fn = _Flaky(failures=100, exc=_rate_limit_error())

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(RateLimitExceeded, match="Groq API rate limit exceeded"):
                asyncio.run(with_retry(fn, RetryPolicy(), label="groq"))

        assert fn.calls == MAX_RETRIES + 1

    def test_non_rate_limit_error_is_not_retried(self):
        fn = _Flaky(failures=1, exc=TransportError("groq API error 400: bad request", status_code=400))

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TransportError):
                asyncio.run(with_retry(fn, RetryPolicy(max_retries=2)))

        assert fn.calls == 1
        mock_sleep.assert_not_awaited()

    def test_zero_retries(self):
        fn = _Flaky(failures=1, exc=_rate_limit_error())

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(RateLimitExceeded):
                asyncio.run(with_retry(fn, RetryPolicy(max_retries=0)))

        assert fn.calls == 1

    def test_rate_limit_cause_is_chained(self):
        original = _rate_limit_error()
        fn = _Flaky(failures=10, exc=original)

        with patch("asyncio.sleep", new_callable=AsyncMock):
            with pytest.raises(RateLimitExceeded) as exc_info:
                asyncio.run(with_retry(fn, RetryPolicy(max_retries=1)))

        assert exc_info.value.__cause__ is original

    def test_auth_failure_with_429_in_body_fails_fast(self):
        exc = TransportError(
            'groq API error 401: {"error": "invalid api key", "request_id": "req_01hx4293kq"}',
            provider="groq",
            status_code=401,
        )
        fn = _Flaky(failures=10, exc=exc)

        with patch("asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            with pytest.raises(TransportError) as exc_info:
                asyncio.run(with_retry(fn, RetryPolicy(max_retries=2), label="groq"))

        assert exc_info.value is exc
        assert fn.calls == 1
        mock_sleep.assert_not_awaited()


# ---------------------------------------------------------------------------
# Retry settings
# ---------------------------------------------------------------------------
class TestRetrySettings:

    def test_negative_max_retries_rejected(self):
        with pytest.raises(ValueError, match="max_retries"):
            RetryPolicy(max_retries=-1)

    def test_env_int_rejects_negative(self, monkeypatch):
        monkeypatch.setenv("AI_MAX_RETRIES", "-1")
        with pytest.raises(ConfigurationError, match="AI_MAX_RETRIES must be >= 0"):
            env_int("AI_MAX_RETRIES", 2, minimum=0)

    def test_env_int_rejects_non_integer(self, monkeypatch):
        monkeypatch.setenv("AI_MAX_RETRIES", "three")
        with pytest.raises(ConfigurationError, match="must be an integer"):
            env_int("AI_MAX_RETRIES", 2, minimum=0)

    def test_env_int_default_and_value(self, monkeypatch):
        monkeypatch.delenv("AI_MAX_RETRIES", raising=False)
        assert env_int("AI_MAX_RETRIES", 2, minimum=0) == 2
        monkeypatch.setenv("AI_MAX_RETRIES", "0")
        assert env_int("AI_MAX_RETRIES", 2, minimum=0) == 0
