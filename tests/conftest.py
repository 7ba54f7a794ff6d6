"""
Shared fixtures for the chetter test suite.

Provides in-memory controllers, repository targets and webhook payload
builders so individual tests only spell out what they care about.
"""

from collections.abc import Callable
from typing import Any

import pytest

from chetter.refs.memory import InMemoryControllerFactory, InMemoryRepositoryController
from chetter.refs.models import RepositoryTarget

PR_NUMBER = 1234


@pytest.fixture
def controller() -> InMemoryRepositoryController:
    """Empty in-memory repository."""
    return InMemoryRepositoryController()


@pytest.fixture
def target() -> RepositoryTarget:
    return RepositoryTarget(owner="octo-org", name="widgets", installation_id=42)


@pytest.fixture
def controller_factory() -> InMemoryControllerFactory:
    return InMemoryControllerFactory()


def _base_payload() -> dict[str, Any]:
    return {
        "repository": {"name": "widgets", "owner": {"login": "octo-org"}},
        "installation": {"id": 42},
    }


@pytest.fixture
def pull_request_payload() -> Callable[..., dict[str, Any]]:
    """Build a ``pull_request`` webhook payload."""

    def build(
        action: str = "opened",
        number: int = PR_NUMBER,
        head: str = "abcd",
        base: str = "deaf",
    ) -> dict[str, Any]:
        payload = _base_payload()
        payload.update(
            {
                "action": action,
                "number": number,
                "pull_request": {
                    "number": number,
                    "head": {"sha": head},
                    "base": {"sha": base},
                },
            }
        )
        return payload

    return build


@pytest.fixture
def review_payload() -> Callable[..., dict[str, Any]]:
    """Build a ``pull_request_review`` webhook payload."""

    def build(
        state: str = "approved",
        reviewer: str = "me",
        commit_id: str = "abc123",
        number: int = PR_NUMBER,
        base: str = "ba5e",
    ) -> dict[str, Any]:
        payload = _base_payload()
        payload.update(
            {
                "action": "submitted",
                "review": {
                    "state": state,
                    "user": {"login": reviewer},
                    "commit_id": commit_id,
                },
                "pull_request": {
                    "number": number,
                    "head": {"sha": commit_id},
                    "base": {"sha": base},
                },
            }
        )
        return payload

    return build
