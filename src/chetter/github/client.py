"""Async GitHub API client with authentication and rate limit tracking."""

import asyncio
import json
import logging
import time
import uuid
from dataclasses import dataclass, field
from typing import Any
from urllib.parse import urljoin

import aiohttp

from .auth import AuthProvider
from .exceptions import (
    GitHubConnectionError,
    GitHubError,
    GitHubGraphQLError,
    GitHubTimeoutError,
    error_for_response,
)
from .pagination import MAX_PER_PAGE, AsyncPaginator, Page
from .rate_limiting import RateLimitManager

logger = logging.getLogger(__name__)

SUCCESS_STATUSES = (200, 201, 204)


@dataclass
class GitHubClientConfig:
    """Configuration for GitHub client."""

    base_url: str = "https://api.github.com"
    timeout: int = 30
    user_agent: str = "chetter-app/0.3"
    max_concurrent_requests: int = 10


@dataclass
class GitHubResponse:
    """Status, decoded body and headers of a completed request."""

    status: int
    data: Any
    headers: dict[str, str] = field(default_factory=dict)


class GitHubClient:
    """Async GitHub API client.

    Every call performs exactly one HTTP request. Failures surface as
    ``GitHubError`` subclasses and are never retried here; callers decide
    what a failure means for them.
    """

    def __init__(
        self,
        auth: AuthProvider,
        config: GitHubClientConfig | None = None,
    ) -> None:
        """Initialize GitHub client.

        Args:
            auth: Authentication provider
            config: Client configuration
        """
        self.auth = auth
        self.config = config or GitHubClientConfig()
        self.rate_limiter = RateLimitManager()

        # Created on first use so the client can be built outside a loop
        self._session: aiohttp.ClientSession | None = None
        self._session_lock = asyncio.Lock()
        self._request_semaphore = asyncio.Semaphore(self.config.max_concurrent_requests)

    async def __aenter__(self) -> "GitHubClient":
        await self._ensure_session()
        return self

    async def __aexit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        await self.close()

    async def _ensure_session(self) -> aiohttp.ClientSession:
        async with self._session_lock:
            if self._session is None or self._session.closed:
                self._session = aiohttp.ClientSession(
                    timeout=aiohttp.ClientTimeout(total=self.config.timeout),
                    headers={
                        "User-Agent": self.config.user_agent,
                        "Accept": "application/vnd.github+json",
                    },
                )
            return self._session

    async def close(self) -> None:
        """Close the HTTP session."""
        if self._session and not self._session.closed:
            await self._session.close()
        self._session = None

    def _url(self, path: str) -> str:
        if path.startswith(("http://", "https://")):
            return path
        return urljoin(self.config.base_url.rstrip("/") + "/", path.lstrip("/"))

    async def request(
        self,
        method: str,
        path: str,
        params: dict[str, Any] | None = None,
        data: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> GitHubResponse:
        """Send one authenticated request.

        Args:
            method: HTTP method
            path: API path such as ``/repos/o/r/git/refs``, or an absolute URL
            params: Query parameters
            data: JSON request body
            timeout: Total seconds for this request, replacing the session's
                ``config.timeout``

        Returns:
            The decoded response

        Raises:
            GitHubError: The subclass matching what went wrong
        """
        url = self._url(path)
        correlation_id = str(uuid.uuid4())[:8]

        self.rate_limiter.check_rate_limit()
        token = await self.auth.get_token()
        session = await self._ensure_session()

        kwargs: dict[str, Any] = {"params": params, "headers": token.to_header()}
        if data is not None:
            kwargs["json"] = data
        if timeout is not None:
            kwargs["timeout"] = aiohttp.ClientTimeout(total=timeout)

        try:
            async with self._request_semaphore:
                start_time = time.time()
                logger.debug(f"GitHub API request [{correlation_id}] {method} {url}")

                async with session.request(method, url, **kwargs) as response:
                    headers = dict(response.headers)
                    self.rate_limiter.update_rate_limit(headers)
                    logger.debug(
                        f"GitHub API response [{correlation_id}] {response.status} "
                        f"in {time.time() - start_time:.2f}s"
                    )

                    if response.status not in SUCCESS_STATUSES:
                        raise await self._error(response, headers, correlation_id)

                    body = await self._read_body(response)
                    return GitHubResponse(response.status, body, headers)

        except TimeoutError as e:
            raise GitHubTimeoutError(f"Request timeout for {method} {url}") from e
        except aiohttp.ClientError as e:
            raise GitHubConnectionError(
                f"Connection error for {method} {url}: {e}"
            ) from e

    async def _read_body(self, response: aiohttp.ClientResponse) -> Any:
        if response.status == 204:
            return None
        text = await response.text()
        if not text:
            return None
        try:
            return json.loads(text)
        except json.JSONDecodeError as e:
            raise GitHubError(
                f"Invalid JSON in GitHub response: {e}", response.status
            ) from e

    async def _error(
        self,
        response: aiohttp.ClientResponse,
        headers: dict[str, str],
        correlation_id: str,
    ) -> GitHubError:
        text = await response.text()
        try:
            data = json.loads(text) if text else None
        except json.JSONDecodeError:
            data = None
        if not isinstance(data, dict):
            data = {"message": text}

        error = error_for_response(response.status, data, headers)
        logger.warning(f"GitHub API error [{correlation_id}] {response.status}: {error}")
        return error

    async def get(self, path: str, params: dict[str, Any] | None = None) -> Any:
        """GET ``path`` and return the decoded body."""
        return (await self.request("GET", path, params)).data

    async def post(
        self,
        path: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        return (await self.request("POST", path, params, data, timeout)).data

    async def patch(
        self,
        path: str,
        data: dict[str, Any] | None = None,
        params: dict[str, Any] | None = None,
    ) -> Any:
        return (await self.request("PATCH", path, params, data)).data

    async def delete(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> Any:
        """DELETE ``path``; returns None for 204 No Content."""
        return (await self.request("DELETE", path, params, timeout=timeout)).data

    async def graphql(
        self,
        query: str,
        variables: dict[str, Any] | None = None,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        """Run a GraphQL query or mutation.

        Returns:
            The ``data`` member of the response

        Raises:
            GitHubGraphQLError: If the response carries any errors
        """
        payload: dict[str, Any] = {"query": query}
        if variables:
            payload["variables"] = variables

        body = await self.post("/graphql", data=payload, timeout=timeout) or {}
        errors = body.get("errors")
        if errors:
            raise GitHubGraphQLError(errors)
        data: dict[str, Any] = body.get("data") or {}
        return data

    async def fetch_page(self, url: str, params: dict[str, Any] | None = None) -> Page:
        response = await self.request("GET", url, params)
        return Page(response.data, response.headers)

    def paginate(
        self,
        path: str,
        params: dict[str, Any] | None = None,
        per_page: int = MAX_PER_PAGE,
        max_pages: int | None = None,
    ) -> AsyncPaginator:
        """Iterate the items of every page of a list endpoint."""
        return AsyncPaginator(
            self, self._url(path), params, per_page=per_page, max_pages=max_pages
        )
