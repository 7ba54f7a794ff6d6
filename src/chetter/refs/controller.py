"""Contract between the ref lifecycle logic and a hosting backend.

Example:
    class NullController:
        async def create_ref(self, name: str, sha: str) -> None: ...
        async def update_ref(self, name: str, sha: str) -> None: ...
        async def delete_ref(self, name: str) -> None: ...
        async def delete_refs(self, refs: Sequence[Ref]) -> None: ...
        async def matching_refs(self, search: str) -> list[Ref]: return []

    assert isinstance(NullController(), RepositoryController)
"""

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from .models import Ref


@runtime_checkable
class RepositoryController(Protocol):
    """Anything that can manage references under ``REF_NAMESPACE``.

    Names passed in and out are relative to the namespace (``1234/v2``).
    Every method raises ``GitHubError`` on failure.
    """

    async def create_ref(self, name: str, sha: str) -> None:
        """Create a new reference pointing at ``sha``.

        Fails if the reference already exists.
        """
        ...

    async def update_ref(self, name: str, sha: str) -> None:
        """Force-move an existing reference to ``sha``."""
        ...

    async def delete_ref(self, name: str) -> None:
        """Delete one reference. Deleting a missing reference succeeds."""
        ...

    async def delete_refs(self, refs: Sequence[Ref]) -> None:
        """Delete several references in as few requests as the backend allows.

        References that are already gone are not an error.
        """
        ...

    async def matching_refs(self, search: str) -> list[Ref]:
        """Return every reference whose name begins with ``search``.

        For example ``matching_refs("abc/d")`` matches:
            - {REF_NAMESPACE}/abc/def
            - {REF_NAMESPACE}/abc/d/ef
            - {REF_NAMESPACE}/abc/d
        but not:
            - {REF_NAMESPACE}/other/abc/d
            - {REF_NAMESPACE}/ab
        """
        ...
