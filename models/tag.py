from datetime import datetime

from sqlalchemy import Column, Integer, String, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from database import Base, SoftDeleteMixin
from .post import post_tags
from .user import user_followed_tags, user_blocked_tags


class Tag(SoftDeleteMixin, Base):
    """Canonical tag; alias strings resolve to it."""
    __tablename__ = 'tags'

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(100), unique=True, index=True, nullable=False)
    created_at = Column(DateTime, default=datetime.utcnow)

    aliases = relationship(
        "TagAlias",
        back_populates="tag",
        cascade="all, delete-orphan"
    )
    posts = relationship("Post", secondary=post_tags, back_populates="tags")
    followed_by = relationship("User", secondary=user_followed_tags, back_populates="followed_tags")
    blocked_by = relationship("User", secondary=user_blocked_tags, back_populates="blocked_tags")

    @property
    def alias_names(self) -> set:
        return {alias.alias for alias in self.aliases}

    def __repr__(self):
        return f"<Tag {self.name}>"


class TagAlias(Base):
    """An alternative spelling of a canonical tag."""
    __tablename__ = 'tag_aliases'

    id = Column(Integer, primary_key=True, index=True)
    alias = Column(String(100), unique=True, index=True, nullable=False)
    tag_id = Column(Integer, ForeignKey('tags.id', ondelete='CASCADE'), nullable=False, index=True)

    tag = relationship("Tag", back_populates="aliases")

    def __repr__(self):
        return f"<TagAlias {self.alias} -> {self.tag_id}>"
