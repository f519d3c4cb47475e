import logging

from celery import Celery

from config import Settings, get_settings

logger = logging.getLogger(__name__)


class CeleryConfig:
    """Celery configuration."""

    # Serialization
    accept_content = ['json']
    task_serializer = 'json'
    result_serializer = 'json'
    timezone = 'UTC'
    enable_utc = True

    # Task settings
    task_default_queue = 'default'
    task_routes = {
        'tasks.feed_tasks.*': {'queue': 'feeds'},
        'tasks.block_tasks.*': {'queue': 'blocks'},
    }

    # Redeliver when a worker dies mid-task; handlers are idempotent
    task_acks_late = True
    task_reject_on_worker_lost = True

    # Worker settings
    worker_prefetch_multiplier = 1
    worker_hijack_root_logger = False

    # Task time limits
    task_time_limit = 300  # 5 minutes
    task_soft_time_limit = 270  # 4.5 minutes

    # Fire-and-forget work; nobody reads results
    task_ignore_result = True


def create_celery_app(settings: Settings) -> Celery:
    """Create and configure a new Celery application."""
    app = Celery(
        'skein',
        broker=settings.CELERY_BROKER_URL,
        backend=settings.CELERY_RESULT_BACKEND,
        include=['tasks.feed_tasks', 'tasks.block_tasks']
    )

    app.config_from_object(CeleryConfig)
    app.conf.task_always_eager = settings.CELERY_TASK_ALWAYS_EAGER

    if settings.CELERY_TASK_ALWAYS_EAGER:
        logger.info("Celery tasks run inline (eager mode)")

    return app


# Create the Celery app
celery_app = create_celery_app(get_settings())

if __name__ == '__main__':
    celery_app.start()
