"""Deleting many refs at once.

GitHub is slow at removing references: seconds per ref over REST, and the
GraphQL endpoint cuts a request off after 60s of wall time or 90s of CPU.
A PR with a long review history easily has hundreds of refs, so deletion
either batches them into bulk mutations of bounded size, or fans out one
request per ref with bounded concurrency. Either way every ref gets exactly
one attempt and one failure never stops the others.
"""

import asyncio
import logging
import time
from collections.abc import Sequence
from enum import Enum

from .controller import RepositoryController
from .models import OperationResult, Ref

logger = logging.getLogger(__name__)

# Upper bound on deleteRef mutations per GraphQL request
MAX_CHUNK_SIZE = 100


class DeleteStrategy(str, Enum):
    """How a set of refs is deleted."""

    BULK = "bulk"
    CONCURRENT = "concurrent"


def chunked(refs: Sequence[Ref], size: int) -> list[Sequence[Ref]]:
    """Split ``refs`` into consecutive chunks of at most ``size`` items."""
    return [refs[i : i + size] for i in range(0, len(refs), size)]


class BatchDeletionManager:
    """Deletes a set of refs through a ``RepositoryController``."""

    def __init__(
        self,
        strategy: DeleteStrategy = DeleteStrategy.BULK,
        chunk_size: int = MAX_CHUNK_SIZE,
        max_concurrency: int = 10,
        attempt_timeout: float | None = 60.0,
    ):
        """Initialize the deletion manager.

        Args:
            strategy: Bulk mutations or one concurrent request per ref
            chunk_size: Refs per bulk request
            max_concurrency: Concurrent single-ref deletions in flight
            attempt_timeout: Seconds before a single request counts as failed
        """
        if not 1 <= chunk_size <= MAX_CHUNK_SIZE:
            raise ValueError(f"chunk_size must be between 1 and {MAX_CHUNK_SIZE}")
        if max_concurrency < 1:
            raise ValueError("max_concurrency must be positive")

        self.strategy = DeleteStrategy(strategy)
        self.chunk_size = chunk_size
        self.max_concurrency = max_concurrency
        self.attempt_timeout = attempt_timeout

    async def delete(
        self,
        controller: RepositoryController,
        refs: Sequence[Ref],
        result: OperationResult,
    ) -> OperationResult:
        """Attempt to delete every ref, recording failures in ``result``."""
        if not refs:
            return result

        start_time = time.time()
        failures_before = len(result.errors)

        if self.strategy is DeleteStrategy.BULK:
            await self._delete_in_chunks(controller, refs, result)
        else:
            await self._delete_concurrently(controller, refs, result)

        failures = len(result.errors) - failures_before
        logger.info(
            f"Deleted refs for #{result.pr} ({self.strategy.value}): "
            f"{len(refs)} refs, {failures} failed requests "
            f"in {time.time() - start_time:.2f}s"
        )
        return result

    async def _delete_in_chunks(
        self,
        controller: RepositoryController,
        refs: Sequence[Ref],
        result: OperationResult,
    ) -> None:
        # A ref without a node id can't be named in a mutation. Each of those
        # gets its own request and its own time budget.
        without_ids = [ref for ref in refs if not ref.node_id]
        if without_ids:
            await self._delete_concurrently(controller, without_ids, result)

        with_ids = [ref for ref in refs if ref.node_id]
        for chunk in chunked(with_ids, self.chunk_size):
            logger.info(f"Sending mutation to delete {len(chunk)} refs")
            await result.attempt(
                asyncio.wait_for(controller.delete_refs(chunk), self.attempt_timeout)
            )

    async def _delete_concurrently(
        self,
        controller: RepositoryController,
        refs: Sequence[Ref],
        result: OperationResult,
    ) -> None:
        semaphore = asyncio.Semaphore(self.max_concurrency)

        async def delete_one(ref: Ref) -> None:
            async with semaphore:
                await result.attempt(
                    asyncio.wait_for(
                        controller.delete_ref(ref.name), self.attempt_timeout
                    )
                )

        outcomes = await asyncio.gather(
            *(delete_one(ref) for ref in refs), return_exceptions=True
        )
        for ref, outcome in zip(refs, outcomes, strict=True):
            if isinstance(outcome, Exception):
                logger.error(f"Unexpected error deleting {ref.name}: {outcome}")
                result.record(outcome)
