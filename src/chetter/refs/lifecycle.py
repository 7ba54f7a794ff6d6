"""Pull request ref lifecycle.

For every pull request the following refs are kept under ``REF_NAMESPACE``:

    <pr>/head, <pr>/head-base            current head commit and its base
    <pr>/v<N>, <pr>/v<N>-base            snapshot taken at each push
    <pr>/<reviewer>-head[-base]          what a reviewer last reviewed
    <pr>/<reviewer>-v<N>[-base]          snapshot taken at each review

Current pointers are moved in place. Snapshots are only ever created, so the
full history survives until the pull request is closed, at which point
everything under ``<pr>/`` is deleted.
"""

import logging
import re

from .batch_delete import BatchDeletionManager
from .controller import RepositoryController
from .models import REF_NAMESPACE, OperationResult, Ref
from .versioning import next_version

logger = logging.getLogger(__name__)

# What follows "<pr>/<reviewer>-" in a reviewer's own refs
REVIEWER_SUFFIX = r"(head|v\d+)(-base)?"


def _owned_by(ref: Ref, scope: str) -> bool:
    return re.fullmatch(re.escape(scope) + REVIEWER_SUFFIX, ref.name) is not None


async def _move_or_create(
    controller: RepositoryController,
    result: OperationResult,
    existing: set[str],
    name: str,
    sha: str,
) -> None:
    if name in existing:
        await result.attempt(controller.update_ref(name, sha))
    else:
        await result.attempt(controller.create_ref(name, sha))


async def _create_pair(
    controller: RepositoryController,
    result: OperationResult,
    name: str,
    sha: str,
    base: str,
) -> None:
    await result.attempt(controller.create_ref(name, sha))
    await result.attempt(controller.create_ref(f"{name}-base", base))


async def open_pr(
    controller: RepositoryController, pr: int, sha: str, base: str
) -> OperationResult:
    """Create the initial ``head`` and ``v1`` refs of a newly opened PR."""
    result = OperationResult("open", pr)
    for name in ("head", "v1"):
        await _create_pair(controller, result, f"{pr}/{name}", sha, base)
    return result


async def synchronize_pr(
    controller: RepositoryController, pr: int, sha: str, base: str
) -> OperationResult:
    """Move ``head`` to the new commits and record the next snapshot."""
    result = OperationResult("synchronize", pr)
    refs = await result.attempt(controller.matching_refs(f"{pr}/"))
    if refs is None:
        return result

    existing = {ref.name for ref in refs}
    await _move_or_create(controller, result, existing, f"{pr}/head", sha)
    await _move_or_create(controller, result, existing, f"{pr}/head-base", base)

    version = next_version(refs, f"{pr}/")
    await _create_pair(controller, result, f"{pr}/v{version}", sha, base)
    return result


async def bookmark_pr(
    controller: RepositoryController,
    pr: int,
    reviewer: str,
    sha: str,
    base: str,
) -> OperationResult:
    """Record the commit ``reviewer`` just reviewed."""
    result = OperationResult("bookmark", pr)
    refs = await result.attempt(controller.matching_refs(f"{pr}/{reviewer}"))
    if refs is None:
        return result

    # The search also returns refs of reviewers whose login starts with this
    # one ("meg", "me-bot"); those are not ours.
    scope = f"{pr}/{reviewer}-"
    own: list[Ref] = [ref for ref in refs if _owned_by(ref, scope)]
    existing = {ref.name for ref in own}

    await _move_or_create(controller, result, existing, f"{scope}head", sha)
    await _move_or_create(controller, result, existing, f"{scope}head-base", base)

    version = next_version(own, scope)
    await _create_pair(controller, result, f"{scope}v{version}", sha, base)
    return result


async def close_pr(
    controller: RepositoryController,
    pr: int,
    deleter: BatchDeletionManager | None = None,
) -> OperationResult:
    """Delete every ref of a closed PR, reviewer bookmarks included."""
    result = OperationResult("close", pr)
    refs = await result.attempt(controller.matching_refs(f"{pr}/"))
    if refs is None:
        return result

    if not refs:
        logger.info(f"No refs under {REF_NAMESPACE}/{pr}/ to delete")
        return result

    deleter = deleter or BatchDeletionManager()
    return await deleter.delete(controller, refs, result)
