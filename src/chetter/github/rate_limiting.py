"""Client-side view of GitHub's rate limit headers."""

import time
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import datetime

from .exceptions import GitHubRateLimitError


@dataclass(frozen=True)
class RateLimitInfo:
    """Quota of one API resource as last reported by GitHub."""

    limit: int
    remaining: int
    reset: int
    used: int = 0
    resource: str = "core"

    @classmethod
    def from_headers(cls, headers: Mapping[str, str]) -> "RateLimitInfo | None":
        """Read the ``X-RateLimit-*`` headers, None if absent or garbled."""
        if "X-RateLimit-Limit" not in headers:
            return None
        try:
            return cls(
                limit=int(headers["X-RateLimit-Limit"]),
                remaining=int(headers.get("X-RateLimit-Remaining", 0)),
                reset=int(headers.get("X-RateLimit-Reset", 0)),
                used=int(headers.get("X-RateLimit-Used", 0)),
                resource=headers.get("X-RateLimit-Resource", "core"),
            )
        except (TypeError, ValueError):
            return None

    @property
    def reset_datetime(self) -> datetime:
        return datetime.fromtimestamp(self.reset)

    @property
    def seconds_until_reset(self) -> float:
        return max(0, self.reset - time.time())

    @property
    def is_exceeded(self) -> bool:
        return self.remaining <= 0


class RateLimitManager:
    """Remembers the last reported quota of each resource.

    Requests are never delayed here. Once a quota is spent, requests fail
    fast with ``GitHubRateLimitError`` until its reset time and callers
    report that like any other backend failure.
    """

    def __init__(self, buffer: int = 0) -> None:
        """Initialize the manager.

        Args:
            buffer: Requests to leave unused from every quota
        """
        self.buffer = buffer
        self._limits: dict[str, RateLimitInfo] = {}

    def get_rate_limit(self, resource: str = "core") -> RateLimitInfo | None:
        return self._limits.get(resource)

    def update_rate_limit(self, headers: Mapping[str, str]) -> None:
        info = RateLimitInfo.from_headers(headers)
        if info is not None:
            self._limits[info.resource] = info

    def check_rate_limit(self, resource: str = "core") -> None:
        """Refuse a request against a spent quota.

        Raises:
            GitHubRateLimitError: If ``resource`` is exhausted and not yet reset
        """
        info = self._limits.get(resource)
        if info is None or info.seconds_until_reset <= 0:
            return

        if info.remaining <= self.buffer:
            raise GitHubRateLimitError(
                f"Rate limit exhausted for {resource}, "
                f"resets in {info.seconds_until_reset:.0f}s",
                reset_time=info.reset,
                remaining=info.remaining,
                limit=info.limit,
            )
