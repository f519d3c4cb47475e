from datetime import datetime

from sqlalchemy import Column, Integer, DateTime, ForeignKey
from sqlalchemy.orm import relationship

from database import Base


class FeedEntry(Base):
    """Delivery of a post into a user's feed, written at fan-out time."""
    __tablename__ = 'feeds'

    user_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), primary_key=True)
    post_id = Column(Integer, ForeignKey('posts.id', ondelete='CASCADE'), primary_key=True)
    delivered_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    user = relationship("User", back_populates="feed_entries")
    post = relationship("Post", back_populates="feed_entries")

    def __repr__(self):
        return f"<FeedEntry post {self.post_id} -> user {self.user_id}>"
