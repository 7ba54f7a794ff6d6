"""
Unit tests for GitHub rate limiting module.

Why: Once the installation's quota is spent every request fails; refusing
     locally saves a round trip and reports the reset time.

What: Tests RateLimitInfo and RateLimitManager header tracking and checks.

How: Feeds response headers into the manager and checks what it allows.
"""

import time

import pytest

from chetter.github.exceptions import GitHubRateLimitError
from chetter.github.rate_limiting import RateLimitInfo, RateLimitManager


def headers(remaining: int, reset_in: int = 3600, resource: str = "core") -> dict[str, str]:
    return {
        "X-RateLimit-Limit": "5000",
        "X-RateLimit-Remaining": str(remaining),
        "X-RateLimit-Reset": str(int(time.time()) + reset_in),
        "X-RateLimit-Used": str(5000 - remaining),
        "X-RateLimit-Resource": resource,
    }


class TestRateLimitInfo:
    """Test RateLimitInfo data class."""

    def test_reset_datetime_property(self) -> None:
        reset_time = int(time.time()) + 3600
        rate_limit = RateLimitInfo(limit=5000, remaining=4500, reset=reset_time)

        assert rate_limit.reset_datetime.timestamp() == reset_time
        assert 3590 < rate_limit.seconds_until_reset <= 3600
        assert not rate_limit.is_exceeded

    def test_seconds_until_reset_in_past(self) -> None:
        rate_limit = RateLimitInfo(limit=5000, remaining=0, reset=int(time.time()) - 10)

        assert rate_limit.seconds_until_reset == 0
        assert rate_limit.is_exceeded


class TestRateLimitManager:
    """Test RateLimitManager."""

    def test_update_from_headers(self) -> None:
        manager = RateLimitManager()

        manager.update_rate_limit(headers(4999, resource="graphql"))

        info = manager.get_rate_limit("graphql")
        assert info is not None
        assert info.remaining == 4999
        assert info.used == 1
        assert manager.get_rate_limit("core") is None

    def test_ignores_missing_and_invalid_headers(self) -> None:
        manager = RateLimitManager()

        manager.update_rate_limit({})
        manager.update_rate_limit({"X-RateLimit-Limit": "many"})

        assert manager.get_rate_limit() is None

    def test_check_allows_remaining_quota(self) -> None:
        manager = RateLimitManager()
        manager.update_rate_limit(headers(10))

        manager.check_rate_limit()

    def test_check_refuses_exhausted_quota(self) -> None:
        manager = RateLimitManager()
        manager.update_rate_limit(headers(0))

        with pytest.raises(GitHubRateLimitError) as exc_info:
            manager.check_rate_limit()

        assert exc_info.value.remaining == 0
        assert exc_info.value.limit == 5000
        assert exc_info.value.status_code == 403

    def test_check_allows_after_reset(self) -> None:
        manager = RateLimitManager()
        manager.update_rate_limit(headers(0, reset_in=-5))

        manager.check_rate_limit()

    def test_buffer(self) -> None:
        manager = RateLimitManager(buffer=100)
        manager.update_rate_limit(headers(50))

        with pytest.raises(GitHubRateLimitError):
            manager.check_rate_limit()
