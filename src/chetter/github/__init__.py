"""GitHub API client package."""

from .app import GitHubApp
from .auth import AuthProvider, AuthToken, GitHubAppAuth, TokenAuth
from .client import GitHubClient, GitHubClientConfig, GitHubResponse
from .exceptions import (
    GitHubAuthenticationError,
    GitHubConnectionError,
    GitHubError,
    GitHubGraphQLError,
    GitHubNotFoundError,
    GitHubRateLimitError,
    GitHubServerError,
    GitHubTimeoutError,
    GitHubValidationError,
)
from .pagination import AsyncPaginator, Page, parse_link_header
from .rate_limiting import RateLimitInfo, RateLimitManager

__all__ = [
    "AsyncPaginator",
    "AuthProvider",
    "AuthToken",
    "GitHubApp",
    "GitHubAppAuth",
    "GitHubAuthenticationError",
    "GitHubClient",
    "GitHubClientConfig",
    "GitHubConnectionError",
    "GitHubError",
    "GitHubGraphQLError",
    "GitHubNotFoundError",
    "GitHubRateLimitError",
    "GitHubResponse",
    "GitHubServerError",
    "GitHubTimeoutError",
    "GitHubValidationError",
    "Page",
    "RateLimitInfo",
    "RateLimitManager",
    "TokenAuth",
    "parse_link_header",
]
