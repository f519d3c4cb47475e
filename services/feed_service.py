import logging
from datetime import datetime, timedelta
from typing import List, Optional, Set

from sqlalchemy import select
from sqlalchemy.orm import Session

from config import Settings
from core.exceptions import NotFoundError
from models.block import Block
from models.feed import FeedEntry
from models.post import Post
from models.user import User
from services.auth_service import AuthorizationGate

logger = logging.getLogger(__name__)


class FeedService:
    """Writes posts into followers' feeds and reads them back."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def recipients(self, post: Post) -> Set[int]:
        """Followers of the author plus followers of every tag on the post."""
        user_ids = {user.id for user in post.author.followed_by} if post.author else set()
        for tag in post.tags:
            user_ids.update(user.id for user in tag.followed_by)
        return user_ids

    def fanout(self, post_id: int) -> int:
        """
        Deliver a post to every eligible feed.

        Idempotent: users who already hold the post are skipped, so running
        this again after a redelivery adds nothing.

        Returns:
            int: number of feed entries written
        """
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError(f"Post {post_id} not found")

        user_ids = self.recipients(post)
        if not user_ids:
            return 0

        delivered = {
            user_id for (user_id,) in self.db.query(FeedEntry.user_id).filter(
                FeedEntry.post_id == post_id,
                FeedEntry.user_id.in_(user_ids)
            )
        }
        pending = user_ids - delivered
        for user_id in pending:
            self.db.add(FeedEntry(user_id=user_id, post_id=post_id))
        self.db.commit()

        logger.info(f"Post {post_id} delivered to {len(pending)} feeds")
        return len(pending)

    def prune(self, user_id: int) -> int:
        """Drop feed entries for posts older than the retention window."""
        cutoff = datetime.utcnow() - timedelta(days=self.settings.FEED_RETENTION_DAYS)
        stale_post_ids = select(Post.id).where(Post.created_at < cutoff)
        removed = self.db.query(FeedEntry).filter(
            FeedEntry.user_id == user_id,
            FeedEntry.post_id.in_(stale_post_ids)
        ).delete(synchronize_session=False)
        self.db.commit()
        return removed

    def feed_for(self, user: User) -> List[Post]:
        """Prune, then return the user's feed newest first, hiding blocked authors and tags."""
        self.prune(user.id)

        blocked_user_ids = select(Block.blocked_id).where(Block.blocker_id == user.id)
        blocked_tag_ids = {tag.id for tag in user.blocked_tags}

        posts = (
            self.db.query(Post)
            .join(FeedEntry, FeedEntry.post_id == Post.id)
            .filter(
                FeedEntry.user_id == user.id,
                Post.author_id.notin_(blocked_user_ids)
            )
            .order_by(Post.created_at.desc(), Post.id.desc())
            .all()
        )
        return [
            post for post in posts
            if not blocked_tag_ids.intersection(tag.id for tag in post.tags)
        ]

    def get_feed(self, user_id: int, token: Optional[str]) -> List[Post]:
        user = AuthorizationGate(self.db, self.settings).authorize(user_id, token)
        return self.feed_for(user)
