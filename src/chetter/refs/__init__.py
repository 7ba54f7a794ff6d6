"""Pull request ref bookkeeping."""

from .batch_delete import BatchDeletionManager, DeleteStrategy
from .client import RepositoryClient, RepositoryClientFactory
from .controller import RepositoryController
from .lifecycle import bookmark_pr, close_pr, open_pr, synchronize_pr
from .memory import InMemoryControllerFactory, InMemoryRepositoryController
from .models import REF_NAMESPACE, OperationResult, Ref, RepositoryTarget
from .versioning import next_version, parse_version

__all__ = [
    "REF_NAMESPACE",
    "BatchDeletionManager",
    "DeleteStrategy",
    "InMemoryControllerFactory",
    "InMemoryRepositoryController",
    "OperationResult",
    "Ref",
    "RepositoryClient",
    "RepositoryClientFactory",
    "RepositoryController",
    "RepositoryTarget",
    "bookmark_pr",
    "close_pr",
    "next_version",
    "open_pr",
    "parse_version",
    "synchronize_pr",
]
