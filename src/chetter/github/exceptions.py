"""Errors raised for failed GitHub API calls.

Everything the transport raises derives from ``GitHubError``, so the ref
lifecycle can record any backend failure with a single except clause.
"""

from collections.abc import Mapping
from typing import Any


class GitHubError(Exception):
    """A GitHub API call failed."""

    def __init__(
        self,
        message: str,
        status_code: int | None = None,
        response_data: dict[str, Any] | None = None,
    ):
        """Initialize GitHub error.

        Args:
            message: Error message, usually GitHub's own ``message`` field
            status_code: HTTP status code, None if no response was received
            response_data: Decoded error body
        """
        super().__init__(message)
        self.status_code = status_code
        self.response_data = response_data or {}


class GitHubAuthenticationError(GitHubError):
    """Credentials were missing, expired or refused."""


class GitHubRateLimitError(GitHubError):
    """The quota is spent until ``reset_time``."""

    def __init__(
        self,
        message: str,
        reset_time: int | None = None,
        remaining: int = 0,
        limit: int = 0,
    ):
        super().__init__(message, status_code=403)
        self.reset_time = reset_time
        self.remaining = remaining
        self.limit = limit


class GitHubNotFoundError(GitHubError):
    """HTTP 404. For a ref this usually means it is already gone."""


class GitHubValidationError(GitHubError):
    """HTTP 422, e.g. creating a ref that exists or moving one that doesn't."""


class GitHubServerError(GitHubError):
    """HTTP 5xx."""


class GitHubConnectionError(GitHubError):
    """No response was received at all."""


class GitHubTimeoutError(GitHubError):
    """The request outlived the client timeout."""


class GitHubGraphQLError(GitHubError):
    """Raised when a GraphQL response carries an ``errors`` array.

    GitHub answers GraphQL requests with HTTP 200 even when some or all of
    the operations failed, so the HTTP layer alone cannot detect these.
    """

    def __init__(self, errors: list[dict[str, Any]]):
        messages = "; ".join(str(e.get("message", e)) for e in errors)
        super().__init__(
            f"GraphQL request failed: {messages}",
            status_code=200,
            response_data={"errors": errors},
        )
        self.errors = errors


def error_for_response(
    status: int, data: dict[str, Any], headers: Mapping[str, str]
) -> GitHubError:
    """Build the exception matching an unsuccessful response."""
    message = data.get("message") or f"HTTP {status}"

    # 403 is shared between exhausted quotas and missing permissions
    if status == 403 and "rate limit" in message.lower():
        reset = headers.get("X-RateLimit-Reset")
        return GitHubRateLimitError(
            message,
            reset_time=int(reset) if reset else None,
            remaining=int(headers.get("X-RateLimit-Remaining", "0")),
            limit=int(headers.get("X-RateLimit-Limit", "0")),
        )

    error_type: type[GitHubError]
    if status in (401, 403):
        error_type = GitHubAuthenticationError
    elif status == 404:
        error_type = GitHubNotFoundError
    elif status == 422:
        error_type = GitHubValidationError
    elif 500 <= status < 600:
        error_type = GitHubServerError
    else:
        error_type = GitHubError
    return error_type(message, status, data)
