"""Value types shared by the ref lifecycle code."""

import logging
from collections.abc import Awaitable
from dataclasses import dataclass, field
from typing import TypeVar

from chetter.github.exceptions import GitHubError

logger = logging.getLogger(__name__)

# Has to live under refs/heads, refs/tags, refs/notes or refs/guest for the
# GraphQL deleteRef mutation to accept it, and GraphQL is what lets us drop
# hundreds of refs in one request when a PR closes.
REF_NAMESPACE = "refs/heads/pr"

T = TypeVar("T")


@dataclass(frozen=True)
class Ref:
    """A git reference under ``REF_NAMESPACE``."""

    # Complete reference name, e.g. refs/heads/pr/1234/v2
    full_name: str
    # Full SHA-1 object name
    sha: str
    # GraphQL node id; only needed for bulk deletion
    node_id: str | None = None

    @property
    def name(self) -> str:
        """Reference name relative to the namespace, e.g. ``1234/v2``."""
        prefix = f"{REF_NAMESPACE}/"
        if self.full_name.startswith(prefix):
            return self.full_name[len(prefix) :]
        return self.full_name

    @classmethod
    def from_name(cls, name: str, sha: str, node_id: str | None = None) -> "Ref":
        return cls(full_name=f"{REF_NAMESPACE}/{name}", sha=sha, node_id=node_id)


@dataclass(frozen=True)
class RepositoryTarget:
    """Repository an event applies to, plus the app installation covering it."""

    owner: str
    name: str
    installation_id: int

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.name}"


@dataclass
class OperationResult:
    """Outcome of one lifecycle operation.

    Every sub-operation is attempted; failures are collected here instead of
    aborting the remaining work. The operation failed if anything failed.
    """

    operation: str
    pr: int
    attempts: int = 0
    errors: list[Exception] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.errors

    @property
    def error(self) -> Exception | None:
        """The most recent failure, if any."""
        return self.errors[-1] if self.errors else None

    def record(self, error: Exception) -> None:
        self.errors.append(error)

    async def attempt(self, call: Awaitable[T]) -> T | None:
        """Await one backend call, recording a failure instead of raising it.

        Returns:
            The call's result, or None if it failed
        """
        self.attempts += 1
        try:
            return await call
        except (GitHubError, TimeoutError) as e:
            logger.debug(f"{self.operation} #{self.pr}: call failed: {e}")
            self.record(e)
            return None

    def __str__(self) -> str:
        if self.ok:
            return f"{self.operation} #{self.pr}: ok ({self.attempts} calls)"
        return (
            f"{self.operation} #{self.pr}: {len(self.errors)} of "
            f"{self.attempts} calls failed, last error: {self.error}"
        )

