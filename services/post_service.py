import logging
from datetime import datetime, timezone
from typing import List, Optional

from sqlalchemy.orm import Session, selectinload

from config import Settings
from core.exceptions import NotFoundError, ValidationError
from models.post import Post
from models.tag import Tag
from models.user import User
from services.auth_service import AuthorizationGate
from services.tag_service import TagService
from services.task_queue import task_queue
from tasks.feed_tasks import fanout_post_task

logger = logging.getLogger(__name__)


def as_naive_utc(value: Optional[datetime]) -> Optional[datetime]:
    """Stored timestamps are naive UTC; bring offset-aware bounds into line."""
    if value is not None and value.tzinfo is not None:
        return value.astimezone(timezone.utc).replace(tzinfo=None)
    return value


class PostService:
    """Service for handling post-related operations."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.gate = AuthorizationGate(db, settings)
        self.tags = TagService(db, settings)

    def create_post(
        self,
        user_id: int,
        token: Optional[str],
        title: Optional[str] = None,
        text: Optional[str] = None,
        reply_to: Optional[int] = None,
        tag_string: Optional[str] = None,
    ) -> int:
        """
        Create a post and hand it to feed fan-out.

        Fan-out is queued only after the post and its tags are committed, so
        it always sees the final tag set.

        Returns:
            int: ID of the new post
        """
        user = self.gate.authorize(user_id, token)
        self.gate.check_not_banned(user, "create posts")
        if not title and reply_to is None:
            raise ValidationError("Post that isn't a reply must contain content")
        if reply_to is not None and self.db.get(Post, reply_to) is None:
            raise NotFoundError("Post being replied to not found")

        tags = self.tags.resolve_tags(tag_string)
        post = Post(
            author_id=user_id,
            title=title or None,
            text=text or None,
            reply_to_id=reply_to,
            tags=tags,
        )
        self.db.add(post)
        self.db.flush()
        post_id = post.id
        self.db.commit()
        logger.info(f"User {user_id} created post {post_id}")

        task_queue.submit(fanout_post_task, post_id)
        return post_id

    def get_post(self, post_id: int) -> Post:
        post = (
            self.db.query(Post)
            .options(selectinload(Post.tags), selectinload(Post.replies))
            .filter(Post.id == post_id)
            .first()
        )
        if post is None:
            raise NotFoundError("Post not found")
        return post

    def search_posts(
        self,
        author_name: Optional[str] = None,
        title_contains: str = "",
        body_contains: str = "",
        include_tags: Optional[List[str]] = None,
        exclude_tags: Optional[List[str]] = None,
        older_than: Optional[datetime] = None,
        newer_than: Optional[datetime] = None,
    ) -> List[Post]:
        """Filter posts; every included tag must be present and no excluded one."""
        older_than = as_naive_utc(older_than)
        newer_than = as_naive_utc(newer_than)
        query = self.db.query(Post)
        if author_name:
            query = query.join(User, User.id == Post.author_id).filter(User.name == author_name)
        if title_contains:
            query = query.filter(Post.title.contains(title_contains))
        if body_contains:
            query = query.filter(Post.text.contains(body_contains))
        if older_than:
            query = query.filter(Post.created_at < older_than)
        if newer_than:
            query = query.filter(Post.created_at > newer_than)

        for name in filter(None, include_tags or []):
            found = self.tags.find_tags([name])
            if not found:
                # A tag nobody has ever used cannot be on any post
                return []
            query = query.filter(Post.tags.any(Tag.id == found[0].id))
        if exclude_tags:
            unwanted = self.tags.find_tags(exclude_tags)
            if unwanted:
                query = query.filter(~Post.tags.any(Tag.id.in_([tag.id for tag in unwanted])))

        return query.order_by(Post.created_at.desc(), Post.id.desc()).all()

    def add_tags(self, user_id: int, token: Optional[str], post_id: int, tag_string: str) -> Post:
        user = self.gate.authorize(user_id, token)
        self.gate.check_not_banned(user, "add tags")
        post = self.gate.check_ownership(user_id, post_id)

        for tag in self.tags.resolve_tags(tag_string):
            if tag not in post.tags:
                post.tags.append(tag)
        self.db.commit()
        self.db.refresh(post)
        return post

    def edit_post(
        self,
        user_id: int,
        token: Optional[str],
        post_id: int,
        title: Optional[str] = None,
        text: Optional[str] = None,
    ) -> Post:
        user = self.gate.authorize(user_id, token)
        self.gate.check_not_banned(user, "edit posts")
        post = self.gate.check_ownership(user_id, post_id)

        if title is not None:
            if not title and post.reply_to_id is None:
                raise ValidationError("Post that isn't a reply must contain content")
            post.title = title or None
        if text is not None:
            post.text = text or None
        self.db.commit()
        self.db.refresh(post)
        return post

    def delete_post(self, user_id: int, token: Optional[str], post_id: int) -> None:
        self.gate.authorize(user_id, token)
        post = self.gate.check_ownership(user_id, post_id, allow_admin_override=True)
        post.soft_delete()
        self.db.commit()
        logger.info(f"User {user_id} deleted post {post_id}")
