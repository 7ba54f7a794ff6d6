"""Webhook HTTP server."""

import json
import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, Request, Response

from chetter.webhooks.dispatcher import DispatchOutcome, EventDispatcher
from chetter.webhooks.events import WebhookParseError, parse_event, verify_signature
from chetter.workers.tasks import DEFAULT_SHUTDOWN_TIMEOUT, BackgroundTaskTracker

logger = logging.getLogger(__name__)


def create_app(
    dispatcher: EventDispatcher,
    tracker: BackgroundTaskTracker,
    webhook_secret: str | None = None,
    shutdown_timeout: float = DEFAULT_SHUTDOWN_TIMEOUT,
    events_path: str = "/github/events",
) -> FastAPI:
    """Build the application serving GitHub webhook deliveries.

    Args:
        dispatcher: Routes decoded events to lifecycle operations
        tracker: Background work drained when the application shuts down
        webhook_secret: If set, deliveries must carry a valid signature
        shutdown_timeout: Seconds to wait for background work on shutdown
        events_path: Path GitHub posts deliveries to
    """

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        yield
        logger.info("Shutting down, draining background tasks")
        if await tracker.shutdown(shutdown_timeout):
            logger.info("Background tasks drained")

    app = FastAPI(title="chetter", lifespan=lifespan)

    @app.post(events_path)
    async def github_events(request: Request) -> Response:
        event_type = request.headers.get("X-GitHub-Event")
        if not event_type:
            msg = "No X-GitHub-Event header"
            logger.error(msg)
            for key, value in request.headers.items():
                logger.debug(f"{key} = {value}")
            return Response(msg, status_code=400)

        body = await request.body()

        if webhook_secret and not verify_signature(
            webhook_secret, body, request.headers.get("X-Hub-Signature-256")
        ):
            logger.error(f"Rejecting {event_type} delivery with a bad signature")
            return Response("Invalid signature", status_code=401)

        try:
            payload = json.loads(body)
            event = parse_event(event_type, payload)
        except (ValueError, WebhookParseError) as e:
            msg = f"Failed to parse event: {e}"
            logger.error(msg)
            logger.debug(body.decode("utf-8", errors="replace"))
            return Response(msg, status_code=400)

        if event is None:
            logger.debug(f"Ignoring {event_type} event")
            return Response(status_code=200)

        outcome = await dispatcher.dispatch(event)
        if outcome is DispatchOutcome.FAILED:
            return Response(status_code=500)
        return Response(status_code=200)

    @app.get("/health")
    async def health() -> dict[str, Any]:
        return {
            "status": "draining" if tracker.closed else "ok",
            "pending_tasks": tracker.pending,
            "tasks": dict(tracker.stats),
        }

    return app
