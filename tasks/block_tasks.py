import logging

from core.celery import celery_app
from database import SessionLocal

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.block_tasks.block_user")
def block_user_task(blocker_id: int, blocked_id: int) -> bool:
    """One follower's share of a nuclear block."""
    # services.block_service enqueues this task, so import it late
    from services.block_service import record_block

    db = SessionLocal()
    try:
        return record_block(db, blocker_id, blocked_id)
    except Exception:
        db.rollback()
        logger.exception(f"Propagated block {blocker_id} -> {blocked_id} failed")
        return False
    finally:
        db.close()
