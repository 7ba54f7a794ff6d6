"""Webhook decoding and dispatch."""

from .dispatcher import DispatchOutcome, EventDispatcher
from .events import (
    PullRequestEvent,
    PullRequestReviewEvent,
    WebhookParseError,
    parse_event,
    verify_signature,
)

__all__ = [
    "DispatchOutcome",
    "EventDispatcher",
    "PullRequestEvent",
    "PullRequestReviewEvent",
    "WebhookParseError",
    "parse_event",
    "verify_signature",
]
