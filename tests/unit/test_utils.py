"""
Unit tests for retry and logging helpers.
"""

from unittest.mock import MagicMock

import pytest

from store_migration.client.exceptions import (
    NetworkError,
    RateLimitError,
    ServerError,
    ValidationError,
)
from store_migration.utils.logging import sanitize_payload, truncate_payload
from store_migration.utils.retry import retry_with_backoff, wait_for_retry_after

pytestmark = pytest.mark.unit


def flaky(failures):
    """Async callable raising each of ``failures`` in turn, then returning "ok"."""
    calls = []

    async def call():
        calls.append(len(calls) + 1)
        if failures:
            raise failures.pop(0)
        return "ok"

    return call, calls


# ---------------------------------------------------------------------------
# Retry
# ---------------------------------------------------------------------------


class TestRetryWithBackoff:
    @pytest.mark.asyncio
    async def test_recovers_from_transient_errors(self):
        call, calls = flaky([NetworkError("down"), ServerError("Server error: busy", 503)])
        wrapped = retry_with_backoff(max_attempts=3, min_wait=0, max_wait=0)(call)

        assert await wrapped() == "ok"
        assert len(calls) == 3

    @pytest.mark.asyncio
    async def test_gives_up_after_max_attempts(self):
        call, calls = flaky([NetworkError("down")] * 5)
        wrapped = retry_with_backoff(max_attempts=2, min_wait=0, max_wait=0)(call)

        with pytest.raises(NetworkError):
            await wrapped()
        assert len(calls) == 2

    @pytest.mark.asyncio
    async def test_other_errors_are_not_retried(self):
        call, calls = flaky([ValidationError("bad item")])
        wrapped = retry_with_backoff(max_attempts=3, min_wait=0, max_wait=0)(call)

        with pytest.raises(ValidationError):
            await wrapped()
        assert len(calls) == 1


class TestWaitForRetryAfter:
    def retry_state(self, error):
        state = MagicMock()
        state.outcome.exception.return_value = error
        return state

    def test_honours_retry_after(self):
        wait = wait_for_retry_after(min_wait=1, max_wait=30)
        error = RateLimitError("Rate limit exceeded", 429, retry_after=5)

        assert wait(self.retry_state(error)) == 5.0

    def test_retry_after_is_capped(self):
        wait = wait_for_retry_after(min_wait=1, max_wait=30)
        error = RateLimitError("Rate limit exceeded", 429, retry_after=120)

        assert wait(self.retry_state(error)) == 30.0


# ---------------------------------------------------------------------------
# Payload logging
# ---------------------------------------------------------------------------


class TestSanitizePayload:
    def test_redacts_credentials(self):
        payload = {
            "email": "jane@example.com",
            "consumer_secret": "cs_live",
            "X-Auth-Token": "abc",
            "authentication": {"new_password": "hunter2"},
        }

        sanitized = sanitize_payload(payload)

        assert sanitized["email"] == "jane@example.com"
        assert sanitized["consumer_secret"] == "[REDACTED]"
        assert sanitized["X-Auth-Token"] == "[REDACTED]"
        assert sanitized["authentication"] == {"new_password": "[REDACTED]"}

    def test_walks_lists(self):
        assert sanitize_payload([{"password": "x"}]) == [{"password": "[REDACTED]"}]

    def test_original_is_untouched(self):
        payload = {"password": "x"}
        sanitize_payload(payload)
        assert payload == {"password": "x"}


class TestTruncatePayload:
    def test_short_payload(self):
        assert truncate_payload({"a": 1}) == '{\n  "a": 1\n}'

    def test_long_payload(self):
        result = truncate_payload({"text": "x" * 500}, max_size=100)

        assert result.startswith('{\n  "text": "xxx')
        assert "[TRUNCATED - " in result
