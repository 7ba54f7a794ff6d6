"""In-memory RepositoryController.

Behaves like the GitHub-backed controller (same matching rules, same
failure modes) without any network access. Used by the tests and by the
server's dry-run mode.
"""

import asyncio
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager

from chetter.github.exceptions import GitHubError, GitHubValidationError

from .models import REF_NAMESPACE, Ref, RepositoryTarget

logger = logging.getLogger(__name__)

ANY = "*"


class InMemoryRepositoryController:
    """Dict-backed refs with call recording and injectable failures."""

    def __init__(self, refs: dict[str, str] | None = None, delay: float = 0.0) -> None:
        """Initialize the controller.

        Args:
            refs: Initial refs, relative name -> sha
            delay: Seconds every call sleeps before doing anything
        """
        self.refs: dict[str, str] = dict(refs or {})
        self.delay = delay
        self.calls: list[tuple[str, ...]] = []
        self._failures: dict[tuple[str, str], GitHubError] = {}

    def fail(self, operation: str, name: str = ANY, error: GitHubError | None = None) -> None:
        """Make ``operation`` on ``name`` (or on anything) raise ``error``."""
        self._failures[(operation, name)] = error or GitHubError(
            f"injected {operation} failure for {name}", status_code=500
        )

    def calls_to(self, operation: str) -> list[tuple[str, ...]]:
        return [call for call in self.calls if call[0] == operation]

    async def _enter(self, operation: str, *names: str) -> None:
        if self.delay:
            await asyncio.sleep(self.delay)
        for name in (*names, ANY):
            error = self._failures.get((operation, name))
            if error is not None:
                raise error

    async def create_ref(self, name: str, sha: str) -> None:
        self.calls.append(("create_ref", name, sha))
        await self._enter("create_ref", name)
        if name in self.refs:
            raise GitHubValidationError("Reference already exists", status_code=422)
        self.refs[name] = sha
        logger.info(f"created {REF_NAMESPACE}/{name} as {sha[:8]}")

    async def update_ref(self, name: str, sha: str) -> None:
        self.calls.append(("update_ref", name, sha))
        await self._enter("update_ref", name)
        if name not in self.refs:
            raise GitHubValidationError("Reference does not exist", status_code=422)
        self.refs[name] = sha
        logger.info(f"updated {REF_NAMESPACE}/{name} as {sha[:8]}")

    async def delete_ref(self, name: str) -> None:
        self.calls.append(("delete_ref", name))
        await self._enter("delete_ref", name)
        self.refs.pop(name, None)

    async def delete_refs(self, refs: Sequence[Ref]) -> None:
        names = tuple(ref.name for ref in refs)
        self.calls.append(("delete_refs", *names))
        await self._enter("delete_refs", *names)
        for name in names:
            self.refs.pop(name, None)

    async def matching_refs(self, search: str) -> list[Ref]:
        self.calls.append(("matching_refs", search))
        await self._enter("matching_refs", search)
        return [
            Ref.from_name(name, sha, node_id=f"REF_{name}")
            for name, sha in sorted(self.refs.items())
            if name.startswith(search)
        ]


class InMemoryControllerFactory:
    """One ``InMemoryRepositoryController`` per repository, created on demand."""

    def __init__(self) -> None:
        self.controllers: dict[str, InMemoryRepositoryController] = {}

    def controller_for(self, full_name: str) -> InMemoryRepositoryController:
        if full_name not in self.controllers:
            self.controllers[full_name] = InMemoryRepositoryController()
        return self.controllers[full_name]

    @asynccontextmanager
    async def repository(
        self, target: RepositoryTarget
    ) -> AsyncIterator[InMemoryRepositoryController]:
        yield self.controller_for(target.full_name)
