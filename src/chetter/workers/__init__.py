"""Background work."""

from .tasks import BackgroundTaskTracker, TaskTrackerClosedError

__all__ = ["BackgroundTaskTracker", "TaskTrackerClosedError"]
