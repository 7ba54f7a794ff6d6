"""
Unit tests for GitHub API client.

Why: Ensure the GitHub client authenticates every request, maps error
     responses to the right exceptions and never retries on its own.

What: Tests GitHubClient HTTP operations, error mapping, GraphQL error
      detection, pagination and session handling.

How: Uses aioresponses to answer requests without touching GitHub.
"""

import asyncio
import time
from collections.abc import AsyncIterator
from typing import Any
from unittest.mock import AsyncMock

import aiohttp
import pytest
import pytest_asyncio
from aioresponses import aioresponses

from chetter.github.auth import TokenAuth
from chetter.github.client import GitHubClient, GitHubClientConfig, GitHubResponse
from chetter.github.exceptions import (
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

API = "https://api.github.com"


@pytest_asyncio.fixture
async def github_client() -> AsyncIterator[GitHubClient]:
    client = GitHubClient(auth=TokenAuth("test_token"))
    yield client
    await client.close()


class TestGitHubClientConfig:
    """Test GitHubClientConfig data class."""

    def test_github_client_config_defaults(self) -> None:
        config = GitHubClientConfig()

        assert config.base_url == "https://api.github.com"
        assert config.timeout == 30
        assert config.max_concurrent_requests == 10
        assert config.user_agent.startswith("chetter")


class TestGitHubClient:
    """Test GitHubClient class."""

    def test_github_client_creation(self) -> None:
        config = GitHubClientConfig()
        auth = TokenAuth("test_token")
        client = GitHubClient(auth=auth, config=config)

        assert client.auth is auth
        assert client.config is config
        assert client._session is None

    @pytest.mark.parametrize(
        ("path", "expected"),
        [
            ("/repos/o/r", f"{API}/repos/o/r"),
            ("repos/o/r", f"{API}/repos/o/r"),
            (f"{API}/graphql", f"{API}/graphql"),
        ],
    )
    def test_url(self, path: str, expected: str) -> None:
        assert GitHubClient(TokenAuth("t"))._url(path) == expected

    def test_url_with_enterprise_prefix(self) -> None:
        client = GitHubClient(
            TokenAuth("t"), GitHubClientConfig(base_url="https://ghe.example.com/api/v3")
        )

        assert client._url("/repos/o/r") == "https://ghe.example.com/api/v3/repos/o/r"

    @pytest.mark.asyncio
    async def test_context_manager(self, github_client: GitHubClient) -> None:
        async with github_client as client:
            assert client._session is not None
            assert not client._session.closed

        assert github_client._session is None

    @pytest.mark.asyncio
    async def test_get_request_success(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/repos/o/r",
                payload={"full_name": "o/r"},
                headers={
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Remaining": "4999",
                    "X-RateLimit-Reset": "1234567890",
                },
            )

            result = await github_client.get("/repos/o/r")

            assert result == {"full_name": "o/r"}
            request = next(iter(mocked.requests.values()))[0]
            assert request.kwargs["headers"]["Authorization"] == "token test_token"

        info = github_client.rate_limiter.get_rate_limit()
        assert info is not None
        assert info.remaining == 4999

    @pytest.mark.asyncio
    async def test_post_request_success(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.post(f"{API}/repos/o/r/git/refs", status=201, payload={"ref": "x"})

            result = await github_client.post("/repos/o/r/git/refs", data={"ref": "x"})

            assert result == {"ref": "x"}
            request = next(iter(mocked.requests.values()))[0]
            assert request.kwargs["json"] == {"ref": "x"}

    @pytest.mark.asyncio
    async def test_delete_request_no_content(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.delete(f"{API}/repos/o/r/git/refs/heads/x", status=204)

            assert await github_client.delete("/repos/o/r/git/refs/heads/x") is None

    @pytest.mark.asyncio
    async def test_per_request_timeout(self, github_client: GitHubClient) -> None:
        """
        Why: Bulk deletions may legitimately take longer than the session's
             default timeout and must not be cut off early.
        What: A timeout given to one call is sent with that request only.
        How: Inspects the kwargs aioresponses recorded for two requests.
        """
        with aioresponses() as mocked:
            mocked.delete(f"{API}/a", status=204)
            mocked.delete(f"{API}/b", status=204)

            await github_client.delete("/a", timeout=90)
            await github_client.delete("/b")

            calls = {str(url): reqs[0] for (_, url), reqs in mocked.requests.items()}
            assert calls[f"{API}/a"].kwargs["timeout"].total == 90
            assert "timeout" not in calls[f"{API}/b"].kwargs

    @pytest.mark.asyncio
    @pytest.mark.parametrize(
        ("status", "message", "error_type"),
        [
            (401, "Bad credentials", GitHubAuthenticationError),
            (403, "Resource not accessible by integration", GitHubAuthenticationError),
            (404, "Not Found", GitHubNotFoundError),
            (422, "Reference already exists", GitHubValidationError),
            (500, "Internal Server Error", GitHubServerError),
            (502, "Bad Gateway", GitHubServerError),
            (409, "Git Repository is empty.", GitHubError),
        ],
    )
    async def test_error_responses(
        self,
        github_client: GitHubClient,
        status: int,
        message: str,
        error_type: type[GitHubError],
    ) -> None:
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", status=status, payload={"message": message})

            with pytest.raises(error_type) as exc_info:
                await github_client.get("/repos/o/r")

        assert exc_info.value.status_code == status
        assert message in str(exc_info.value)
        assert exc_info.value.response_data == {"message": message}

    @pytest.mark.asyncio
    async def test_rate_limit_error(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/repos/o/r",
                status=403,
                payload={"message": "API rate limit exceeded for installation"},
                headers={
                    "X-RateLimit-Limit": "5000",
                    "X-RateLimit-Remaining": "0",
                    "X-RateLimit-Reset": "1234567890",
                },
            )

            with pytest.raises(GitHubRateLimitError) as exc_info:
                await github_client.get("/repos/o/r")

        assert exc_info.value.remaining == 0
        assert exc_info.value.reset_time == 1234567890

    @pytest.mark.asyncio
    async def test_error_without_json_body(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", status=503, body="")

            with pytest.raises(GitHubServerError, match="HTTP 503"):
                await github_client.get("/repos/o/r")

    @pytest.mark.asyncio
    async def test_errors_are_not_retried(self, github_client: GitHubClient) -> None:
        """
        Why: Callers count attempts and decide what a failure means; a hidden
             retry here would double their requests.
        What: A 500 response raises after exactly one request.
        How: Registers a repeating 500 and counts the recorded requests.
        """
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", status=500, repeat=True)

            with pytest.raises(GitHubServerError):
                await github_client.get("/repos/o/r")

            assert sum(len(calls) for calls in mocked.requests.values()) == 1

    @pytest.mark.asyncio
    async def test_connection_error(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", exception=aiohttp.ClientConnectionError("refused"))

            with pytest.raises(GitHubConnectionError):
                await github_client.get("/repos/o/r")

    @pytest.mark.asyncio
    async def test_timeout_error(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", exception=asyncio.TimeoutError())

            with pytest.raises(GitHubTimeoutError):
                await github_client.get("/repos/o/r")

    @pytest.mark.asyncio
    async def test_malformed_json_response(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(f"{API}/repos/o/r", status=200, body="{not json")

            with pytest.raises(GitHubError, match="Invalid JSON"):
                await github_client.get("/repos/o/r")

    @pytest.mark.asyncio
    async def test_exhausted_rate_limit_blocks_request(
        self, github_client: GitHubClient
    ) -> None:
        github_client.rate_limiter.update_rate_limit(
            {
                "X-RateLimit-Limit": "5000",
                "X-RateLimit-Remaining": "0",
                "X-RateLimit-Reset": str(int(time.time()) + 600),
            }
        )
        with aioresponses() as mocked:
            with pytest.raises(GitHubRateLimitError):
                await github_client.get("/repos/o/r")

            assert not mocked.requests


class TestGitHubClientGraphQL:
    """Test GraphQL requests."""

    @pytest.mark.asyncio
    async def test_graphql_returns_data(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.post(f"{API}/graphql", payload={"data": {"viewer": {"login": "me"}}})

            data = await github_client.graphql("query { viewer { login } }", {"a": 1})

            assert data == {"viewer": {"login": "me"}}
            request = next(iter(mocked.requests.values()))[0]
            assert request.kwargs["json"] == {
                "query": "query { viewer { login } }",
                "variables": {"a": 1},
            }

    @pytest.mark.asyncio
    async def test_graphql_errors_raise(self, github_client: GitHubClient) -> None:
        errors: list[dict[str, Any]] = [
            {"type": "NOT_FOUND", "message": "Could not resolve to a node"}
        ]
        with aioresponses() as mocked:
            mocked.post(f"{API}/graphql", payload={"data": None, "errors": errors})

            with pytest.raises(GitHubGraphQLError) as exc_info:
                await github_client.graphql("mutation { x }")

        assert exc_info.value.errors == errors
        assert "Could not resolve" in str(exc_info.value)


class TestGitHubClientPagination:
    """Test paginate and fetch_page."""

    @pytest.mark.asyncio
    async def test_fetch_page(self, github_client: GitHubClient) -> None:
        github_client.request = AsyncMock(  # type: ignore[method-assign]
            return_value=GitHubResponse(
                200, [{"id": 1}], {"Link": f'<{API}/x?page=2>; rel="next"'}
            )
        )

        page = await github_client.fetch_page(f"{API}/x", {"per_page": 100})

        assert page.items == [{"id": 1}]
        assert page.next_url == f"{API}/x?page=2"
        github_client.request.assert_awaited_once_with("GET", f"{API}/x", {"per_page": 100})

    @pytest.mark.asyncio
    async def test_paginate(self, github_client: GitHubClient) -> None:
        with aioresponses() as mocked:
            mocked.get(
                f"{API}/repos/o/r/git/matching-refs/heads/pr/1/?per_page=100",
                payload=[{"id": 1}],
                headers={"Link": f'<{API}/repos/o/r/git/matching-refs/heads/pr/1/?page=2>; rel="next"'},
            )
            mocked.get(
                f"{API}/repos/o/r/git/matching-refs/heads/pr/1/?page=2",
                payload=[{"id": 2}],
            )

            items = await github_client.paginate(
                "/repos/o/r/git/matching-refs/heads/pr/1/"
            ).collect_all()

        assert items == [{"id": 1}, {"id": 2}]
