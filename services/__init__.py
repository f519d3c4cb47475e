"""
Services package for the application.

Each service wraps one area of business logic around a database session and
the application settings.
"""
from .task_queue import task_queue, TaskQueueService

__all__ = [
    'task_queue',
    'TaskQueueService',
]
