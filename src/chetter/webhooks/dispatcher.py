"""Routing of decoded webhook events to ref lifecycle operations."""

import logging
from collections.abc import Awaitable, Callable, MutableMapping
from contextlib import AbstractAsyncContextManager
from enum import Enum
from typing import Any, Protocol

from chetter.github.exceptions import GitHubError
from chetter.refs.batch_delete import BatchDeletionManager
from chetter.refs.controller import RepositoryController
from chetter.refs.lifecycle import bookmark_pr, close_pr, open_pr, synchronize_pr
from chetter.refs.models import OperationResult, RepositoryTarget
from chetter.workers.tasks import BackgroundTaskTracker, TaskTrackerClosedError

from .events import Event, PullRequestEvent, PullRequestReviewEvent

logger = logging.getLogger(__name__)

Operation = Callable[[RepositoryController], Awaitable[OperationResult]]


class DispatchOutcome(str, Enum):
    """What became of an event."""

    HANDLED = "handled"
    IGNORED = "ignored"
    SCHEDULED = "scheduled"
    FAILED = "failed"


class ControllerFactory(Protocol):
    """Source of authenticated controllers, one per repository."""

    def repository(
        self, target: RepositoryTarget
    ) -> AbstractAsyncContextManager[RepositoryController]: ...


class EventLogAdapter(logging.LoggerAdapter):
    """Prefixes records with the repository, PR and reviewer they concern."""

    def process(
        self, msg: Any, kwargs: MutableMapping[str, Any]
    ) -> tuple[Any, MutableMapping[str, Any]]:
        extra = self.extra or {}
        context = f"{extra.get('repo')}#{extra.get('pr')}"
        if extra.get("reviewer"):
            context += f" reviewer={extra['reviewer']}"
        return f"[{context}] {msg}", kwargs


class EventDispatcher:
    """Maps events to lifecycle operations.

    Open, synchronize and bookmark run inline and decide the webhook
    response. Close runs on the background tracker; only a failure to
    schedule it is reported back.
    """

    def __init__(
        self,
        controllers: ControllerFactory,
        tracker: BackgroundTaskTracker,
        deleter: BatchDeletionManager | None = None,
    ) -> None:
        self.controllers = controllers
        self.tracker = tracker
        self.deleter = deleter or BatchDeletionManager()

    async def dispatch(self, event: Event) -> DispatchOutcome:
        if isinstance(event, PullRequestReviewEvent):
            return await self._handle_review(event)
        return await self._handle_pull_request(event)

    async def _handle_pull_request(self, event: PullRequestEvent) -> DispatchOutcome:
        log = EventLogAdapter(
            logger, {"repo": event.target.full_name, "pr": event.number}
        )
        pr, head, base = event.number, event.head_sha, event.base_sha

        if event.action in ("opened", "reopened"):
            return await self._run(
                event.target, lambda c: open_pr(c, pr, head, base), log
            )
        if event.action == "synchronize":
            return await self._run(
                event.target, lambda c: synchronize_pr(c, pr, head, base), log
            )
        if event.action == "closed":
            return self._schedule_close(event, log)

        log.debug(f"Ignoring PR action: {event.action}")
        return DispatchOutcome.IGNORED

    async def _handle_review(self, event: PullRequestReviewEvent) -> DispatchOutcome:
        log = EventLogAdapter(
            logger,
            {
                "repo": event.target.full_name,
                "pr": event.number,
                "reviewer": event.reviewer,
            },
        )
        if not event.records_bookmark:
            log.debug(f"Ignoring review state: {event.state}")
            return DispatchOutcome.IGNORED

        return await self._run(
            event.target,
            lambda c: bookmark_pr(
                c, event.number, event.reviewer, event.commit_id, event.base_sha
            ),
            log,
        )

    async def _run(
        self,
        target: RepositoryTarget,
        operation: Operation,
        log: EventLogAdapter,
    ) -> DispatchOutcome:
        try:
            async with self.controllers.repository(target) as controller:
                result = await operation(controller)
        except GitHubError as e:
            log.error(f"Failed to obtain repository client: {e}")
            return DispatchOutcome.FAILED

        if not result.ok:
            log.error(f"failed to handle {result.operation}: {result}")
            return DispatchOutcome.FAILED

        log.info(str(result))
        return DispatchOutcome.HANDLED

    def _schedule_close(
        self, event: PullRequestEvent, log: EventLogAdapter
    ) -> DispatchOutcome:
        name = f"close-{event.target.full_name}#{event.number}"
        try:
            self.tracker.spawn(self._close(event, log), name=name)
        except TaskTrackerClosedError as e:
            log.error(f"Failed to schedule close: {e}")
            return DispatchOutcome.FAILED

        log.info("Scheduled ref deletion")
        return DispatchOutcome.SCHEDULED

    async def _close(
        self, event: PullRequestEvent, log: EventLogAdapter
    ) -> OperationResult:
        async with self.controllers.repository(event.target) as controller:
            result = await close_pr(controller, event.number, self.deleter)

        if result.ok:
            log.info(str(result))
        else:
            log.error(f"failed to handle close: {result}")
        return result
