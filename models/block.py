from sqlalchemy import Column, Integer, ForeignKey, DateTime, UniqueConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from database import Base

# Import User for type checking
from typing import TYPE_CHECKING
if TYPE_CHECKING:
    from .user import User


class Block(Base):
    """Model for tracking user blocks."""
    __tablename__ = "blocks"

    id = Column(Integer, primary_key=True, index=True)
    blocker_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    blocked_id = Column(Integer, ForeignKey('users.id', ondelete='CASCADE'), nullable=False, index=True)
    created_at = Column(DateTime, default=datetime.utcnow)

    blocker = relationship("User", foreign_keys=[blocker_id], back_populates="blocks_made")
    blocked = relationship("User", foreign_keys=[blocked_id], back_populates="blocks_received")

    __table_args__ = (UniqueConstraint('blocker_id', 'blocked_id', name='_blocker_blocked_uc'),)

    def __repr__(self):
        return f"<Block {self.blocker_id} -> {self.blocked_id}>"
