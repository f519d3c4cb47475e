import logging
from typing import Optional

from celery import Celery, Task

from core.celery import celery_app

logger = logging.getLogger(__name__)


class TaskQueueService:
    """
    Hands fire-and-forget work to the Celery worker pool.

    The request that triggers the work has already succeeded by the time it
    is submitted, so submission failures are logged and never raised.
    """

    def __init__(self, celery: Celery = celery_app):
        self.celery = celery

    def submit(self, task: Task, *args, countdown: Optional[int] = None, **kwargs) -> Optional[str]:
        """
        Submit a task.

        Args:
            task: Registered Celery task to execute
            *args: Positional arguments to pass to the task
            countdown: Time in seconds to wait before executing the task
            **kwargs: Keyword arguments to pass to the task

        Returns:
            Optional[str]: Task ID, or None if the task could not be queued
        """
        try:
            result = task.apply_async(args=args, kwargs=kwargs, countdown=countdown)
            logger.debug(f"Submitted {task.name} as {result.id}")
            return result.id
        except Exception as e:
            logger.error(f"Error submitting task {task.name}: {str(e)}")
            return None


# Global instance
task_queue = TaskQueueService()
