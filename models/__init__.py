"""
Models package for the application.

This package contains all SQLAlchemy models for the application.
"""

from .user import User, user_followed_tags, user_blocked_tags
from .post import Post, post_tags
from .tag import Tag, TagAlias
from .follower import Follower
from .block import Block
from .feed import FeedEntry

__all__ = [
    'User',
    'Post',
    'Tag',
    'TagAlias',
    'Follower',
    'Block',
    'FeedEntry',
    'post_tags',
    'user_followed_tags',
    'user_blocked_tags',
]
