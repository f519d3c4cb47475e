from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text, Table
from sqlalchemy.orm import relationship
from sqlalchemy.sql import func

from database import Base, SoftDeleteMixin

# Import for type checking to avoid circular imports
if TYPE_CHECKING:
    from models.user import User
    from models.tag import Tag

# Many-to-many relationship between posts and tags
post_tags = Table(
    'post_tags',
    Base.metadata,
    Column('post_id', Integer, ForeignKey('posts.id', ondelete='CASCADE'), primary_key=True),
    Column('tag_id', Integer, ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
)


class Post(SoftDeleteMixin, Base):
    """A post by a user; either carries a title or replies to another post."""

    __tablename__ = 'posts'

    id = Column(Integer, primary_key=True, index=True)
    title = Column(String(300), nullable=True)
    text = Column(Text, nullable=True)
    author_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    reply_to_id = Column(Integer, ForeignKey('posts.id', ondelete='SET NULL'), nullable=True, index=True)
    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    author = relationship(
        'User',
        back_populates='posts',
        foreign_keys=[author_id],
        doc="User who created this post"
    )
    reply_to = relationship(
        'Post',
        remote_side=[id],
        back_populates='replies',
        doc="Post this one replies to"
    )
    replies = relationship(
        'Post',
        back_populates='reply_to',
        order_by='Post.created_at',
        doc="Replies to this post"
    )
    tags = relationship(
        'Tag',
        secondary=post_tags,
        back_populates='posts',
        doc="Tags attached to this post"
    )
    feed_entries = relationship(
        'FeedEntry',
        back_populates='post',
        cascade='all, delete-orphan'
    )

    @property
    def tag_names(self) -> list:
        return sorted(tag.name for tag in self.tags)

    def __repr__(self) -> str:
        return f"<Post {self.id} by User {self.author_id}>"
