from datetime import datetime
from typing import TYPE_CHECKING

from sqlalchemy import Column, Integer, String, Boolean, DateTime, Text, ForeignKey, Table
from sqlalchemy.orm import relationship

from database import Base, SoftDeleteMixin

# Import for type checking to avoid circular imports
if TYPE_CHECKING:
    from .post import Post
    from .tag import Tag
    from .follower import Follower
    from .block import Block

# Many-to-many relationships between users and tags
user_followed_tags = Table(
    'user_followed_tags',
    Base.metadata,
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('tag_id', Integer, ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
)

user_blocked_tags = Table(
    'user_blocked_tags',
    Base.metadata,
    Column('user_id', Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
    Column('tag_id', Integer, ForeignKey('tags.id', ondelete='CASCADE'), primary_key=True),
)


class User(SoftDeleteMixin, Base):
    """User model for storing user details."""
    __tablename__ = 'users'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), nullable=False, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    password = Column(String(255), nullable=False)
    salt = Column(String(512), nullable=False)
    profile = Column(Text, nullable=True)
    is_admin = Column(Boolean, default=False, nullable=False)
    is_banned = Column(Boolean, default=False, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    posts = relationship(
        "Post",
        back_populates="author",
        foreign_keys="Post.author_id",
    )

    # Follow and block rows; writes go through these
    follower_relationships = relationship(
        "Follower",
        foreign_keys="[Follower.followed_id]",
        back_populates="followed",
        cascade="all, delete-orphan"
    )
    followed_relationships = relationship(
        "Follower",
        foreign_keys="[Follower.follower_id]",
        back_populates="follower",
        cascade="all, delete-orphan"
    )
    blocks_made = relationship(
        "Block",
        foreign_keys="[Block.blocker_id]",
        back_populates="blocker",
        cascade="all, delete-orphan"
    )
    blocks_received = relationship(
        "Block",
        foreign_keys="[Block.blocked_id]",
        back_populates="blocked",
        cascade="all, delete-orphan"
    )

    # Read-only user views over the same rows
    followed_by = relationship(
        "User",
        secondary="followers",
        primaryjoin="User.id == Follower.followed_id",
        secondaryjoin="User.id == Follower.follower_id",
        viewonly=True,
    )
    following = relationship(
        "User",
        secondary="followers",
        primaryjoin="User.id == Follower.follower_id",
        secondaryjoin="User.id == Follower.followed_id",
        viewonly=True,
    )
    blocked_users = relationship(
        "User",
        secondary="blocks",
        primaryjoin="User.id == Block.blocker_id",
        secondaryjoin="User.id == Block.blocked_id",
        viewonly=True,
    )
    blocked_by = relationship(
        "User",
        secondary="blocks",
        primaryjoin="User.id == Block.blocked_id",
        secondaryjoin="User.id == Block.blocker_id",
        viewonly=True,
    )

    followed_tags = relationship(
        "Tag",
        secondary=user_followed_tags,
        back_populates="followed_by",
    )
    blocked_tags = relationship(
        "Tag",
        secondary=user_blocked_tags,
        back_populates="blocked_by",
    )

    feed_entries = relationship(
        "FeedEntry",
        back_populates="user",
        cascade="all, delete-orphan"
    )

    def __repr__(self):
        return f"<User(id={self.id}, name='{self.name}')>"
