"""RepositoryController backed by the GitHub REST and GraphQL APIs."""

import json
import logging
from collections.abc import AsyncIterator, Sequence
from contextlib import asynccontextmanager
from typing import Any

from chetter.github.app import GitHubApp
from chetter.github.client import GitHubClient
from chetter.github.exceptions import (
    GitHubError,
    GitHubGraphQLError,
    GitHubNotFoundError,
    GitHubValidationError,
)

from .models import REF_NAMESPACE, Ref, RepositoryTarget

logger = logging.getLogger(__name__)

# REF_NAMESPACE without the leading "refs/", as the git/refs endpoints want it
SHORT_NAMESPACE = REF_NAMESPACE.removeprefix("refs/")


def _short(sha: str) -> str:
    return sha[:8]


def build_delete_mutation(refs: Sequence[Ref]) -> str:
    """One aliased ``deleteRef`` per ref, all in a single mutation."""
    fields = []
    for i, ref in enumerate(refs):
        fields.append(
            f"  delete_{i}: deleteRef(input: {{refId: {json.dumps(ref.node_id)}, "
            f"clientMutationId: {json.dumps(ref.full_name)}}}) {{\n"
            f"    clientMutationId\n"
            f"  }}"
        )
    return "mutation {\n" + "\n".join(fields) + "\n}"


class RepositoryClient:
    """Manages refs of one repository through an installation-scoped client."""

    def __init__(
        self,
        github: GitHubClient,
        owner: str,
        repo: str,
        delete_timeout: float | None = None,
    ) -> None:
        """Initialize the repository client.

        Args:
            github: Installation-scoped API client
            owner: Repository owner login
            repo: Repository name
            delete_timeout: Total seconds allowed for one delete request,
                overriding the client's request timeout
        """
        self.github = github
        self.owner = owner
        self.repo = repo
        self.delete_timeout = delete_timeout

    @property
    def full_name(self) -> str:
        return f"{self.owner}/{self.repo}"

    def _refs_path(self, name: str = "") -> str:
        path = f"/repos/{self.owner}/{self.repo}/git/refs"
        return f"{path}/{SHORT_NAMESPACE}/{name}" if name else path

    async def create_ref(self, name: str, sha: str) -> None:
        # Posting to git/refs directly rather than using a branch helper keeps
        # the namespace entirely under our control.
        data = {"ref": f"{REF_NAMESPACE}/{name}", "sha": sha}
        try:
            await self.github.post(self._refs_path(), data=data)
        except Exception:
            logger.error(f"Failed to create {REF_NAMESPACE}/{name} as {_short(sha)}")
            raise
        logger.info(f"created {REF_NAMESPACE}/{name} as {_short(sha)}")

    async def update_ref(self, name: str, sha: str) -> None:
        data = {"sha": sha, "force": True}
        try:
            await self.github.patch(self._refs_path(name), data=data)
        except Exception:
            logger.error(f"Failed to update {REF_NAMESPACE}/{name} to {_short(sha)}")
            raise
        logger.info(f"updated {REF_NAMESPACE}/{name} as {_short(sha)}")

    async def delete_ref(self, name: str) -> None:
        try:
            await self.github.delete(self._refs_path(name), timeout=self.delete_timeout)
        except GitHubNotFoundError:
            logger.info(f"{REF_NAMESPACE}/{name} already deleted")
            return
        except GitHubValidationError as e:
            # GitHub answers 422 "Reference does not exist" for missing refs
            if "does not exist" not in str(e).lower():
                logger.error(f"Failed to delete {REF_NAMESPACE}/{name}: {e}")
                raise
            logger.info(f"{REF_NAMESPACE}/{name} already deleted")
            return
        except Exception:
            logger.error(f"Failed to delete {REF_NAMESPACE}/{name}")
            raise
        logger.info(f"deleted {REF_NAMESPACE}/{name}")

    async def delete_refs(self, refs: Sequence[Ref]) -> None:
        with_ids = [ref for ref in refs if ref.node_id]
        without_ids = [ref for ref in refs if not ref.node_id]

        # Without a node id GraphQL can't address the ref; fall back to REST.
        # Every ref is still attempted before the first failure is raised.
        failure: GitHubError | None = None
        for ref in without_ids:
            try:
                await self.delete_ref(ref.name)
            except GitHubError as e:
                failure = e

        if with_ids:
            try:
                await self.github.graphql(
                    build_delete_mutation(with_ids), timeout=self.delete_timeout
                )
            except GitHubGraphQLError as e:
                remaining = [err for err in e.errors if err.get("type") != "NOT_FOUND"]
                for err in remaining:
                    logger.error(f"error: {err.get('message')}")
                if remaining:
                    raise GitHubGraphQLError(remaining) from e
            except Exception as e:
                logger.error(f"failed to delete references: {e}")
                raise
            for ref in with_ids:
                logger.info(f"deleted {ref.full_name}")

        if failure is not None:
            raise failure

    async def matching_refs(self, search: str) -> list[Ref]:
        path = f"/repos/{self.owner}/{self.repo}/git/matching-refs/{SHORT_NAMESPACE}/{search}"
        items = await self.github.paginate(path).collect_all()
        return [ref for ref in (self._to_ref(item) for item in items) if ref]

    def _to_ref(self, item: dict[str, Any]) -> Ref | None:
        full_name = item.get("ref", "")
        if not full_name.startswith(f"{REF_NAMESPACE}/"):
            logger.warning(f"Skipping ref outside {REF_NAMESPACE}: {full_name}")
            return None

        obj = item.get("object") or {}
        if obj.get("type") not in ("commit", "tag"):
            logger.warning(f"Skipping unmatched: {item}")
            return None

        return Ref(full_name=full_name, sha=obj["sha"], node_id=item.get("node_id"))


class RepositoryClientFactory:
    """Hands out installation-scoped ``RepositoryClient`` instances."""

    def __init__(self, app: GitHubApp, delete_timeout: float | None = None) -> None:
        self.app = app
        self.delete_timeout = delete_timeout

    @asynccontextmanager
    async def repository(self, target: RepositoryTarget) -> AsyncIterator[RepositoryClient]:
        """Yield a client for ``target``, closing its HTTP session afterwards.

        Raises:
            GitHubError: If no installation token could be obtained
        """
        github = await self.app.installation_client(target.installation_id)
        async with github:
            yield RepositoryClient(
                github, target.owner, target.name, self.delete_timeout
            )
