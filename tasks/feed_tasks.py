import logging

from config import get_settings
from core.celery import celery_app
from database import SessionLocal
from services.feed_service import FeedService

logger = logging.getLogger(__name__)


@celery_app.task(name="tasks.feed_tasks.fanout_post")
def fanout_post_task(post_id: int) -> int:
    """Push a freshly created post into its recipients' feeds."""
    db = SessionLocal()
    try:
        return FeedService(db, get_settings()).fanout(post_id)
    except Exception:
        db.rollback()
        # The post is already visible; it just is not in anyone's feed
        logger.exception(f"Feed fan-out failed for post {post_id}")
        return 0
    finally:
        db.close()
