"""Decoding of GitHub webhook deliveries.

Only the fields the ref lifecycle needs are extracted. A delivery missing
any of them is rejected with ``WebhookParseError`` instead of being half
processed.
"""

import hashlib
import hmac
from dataclasses import dataclass
from typing import Any

from chetter.refs.models import RepositoryTarget

PULL_REQUEST = "pull_request"
PULL_REQUEST_REVIEW = "pull_request_review"

# Review states that record a bookmark
BOOKMARK_STATES = frozenset({"approved", "changes_requested"})


class WebhookParseError(ValueError):
    """Raised when a webhook payload lacks a required field."""


@dataclass(frozen=True)
class PullRequestEvent:
    """A ``pull_request`` delivery."""

    target: RepositoryTarget
    number: int
    action: str
    head_sha: str
    base_sha: str


@dataclass(frozen=True)
class PullRequestReviewEvent:
    """A ``pull_request_review`` delivery."""

    target: RepositoryTarget
    number: int
    action: str
    reviewer: str
    state: str | None
    commit_id: str
    base_sha: str

    @property
    def records_bookmark(self) -> bool:
        return (self.state or "").lower() in BOOKMARK_STATES


Event = PullRequestEvent | PullRequestReviewEvent


def _require(payload: dict[str, Any], path: str) -> Any:
    value: Any = payload
    for key in path.split("."):
        if not isinstance(value, dict) or value.get(key) is None:
            raise WebhookParseError(f"missing .{path}")
        value = value[key]
    return value


def parse_target(payload: dict[str, Any]) -> RepositoryTarget:
    """Extract the repository and installation a delivery refers to."""
    _require(payload, "repository")
    return RepositoryTarget(
        owner=str(_require(payload, "repository.owner.login")),
        name=str(_require(payload, "repository.name")),
        installation_id=int(_require(payload, "installation.id")),
    )


def parse_pull_request(payload: dict[str, Any]) -> PullRequestEvent:
    target = parse_target(payload)
    return PullRequestEvent(
        target=target,
        number=int(_require(payload, "pull_request.number")),
        action=str(_require(payload, "action")),
        head_sha=str(_require(payload, "pull_request.head.sha")),
        base_sha=str(_require(payload, "pull_request.base.sha")),
    )


def parse_pull_request_review(payload: dict[str, Any]) -> PullRequestReviewEvent:
    target = parse_target(payload)
    review = _require(payload, "review")
    return PullRequestReviewEvent(
        target=target,
        number=int(_require(payload, "pull_request.number")),
        action=str(_require(payload, "action")),
        reviewer=str(_require(payload, "review.user.login")),
        state=review.get("state"),
        commit_id=str(_require(payload, "review.commit_id")),
        base_sha=str(_require(payload, "pull_request.base.sha")),
    )


def parse_event(event_type: str, payload: dict[str, Any]) -> Event | None:
    """Decode a delivery given its ``X-GitHub-Event`` header value.

    Returns:
        The decoded event, or None for event kinds that are not tracked

    Raises:
        WebhookParseError: If a required field is missing
    """
    if not isinstance(payload, dict):
        raise WebhookParseError("payload is not a JSON object")

    if event_type == PULL_REQUEST:
        return parse_pull_request(payload)
    if event_type == PULL_REQUEST_REVIEW:
        return parse_pull_request_review(payload)
    return None


def verify_signature(secret: str, body: bytes, signature: str | None) -> bool:
    """Check an ``X-Hub-Signature-256`` header against the raw body."""
    if not signature:
        return False
    expected = hmac.new(secret.encode(), body, hashlib.sha256).hexdigest()
    return hmac.compare_digest(f"sha256={expected}", signature)
