import logging
from typing import List, Optional, Tuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings
from core.exceptions import NotFoundError, ValidationError
from models.block import Block
from models.follower import Follower
from models.user import User
from services.auth_service import AuthorizationGate
from services.task_queue import task_queue
from tasks.block_tasks import block_user_task

logger = logging.getLogger(__name__)


def record_block(db: Session, blocker_id: int, blocked_id: int) -> bool:
    """
    Write a single blocker -> blocked row and commit it.

    Returns:
        bool: True if a new block was written, False if it already existed
    """
    existing = db.query(Block).filter(
        Block.blocker_id == blocker_id,
        Block.blocked_id == blocked_id
    ).first()
    if existing:
        return False

    db.add(Block(blocker_id=blocker_id, blocked_id=blocked_id))
    try:
        db.commit()
    except IntegrityError:
        # Written by a concurrent request in the meantime
        db.rollback()
        return False
    return True


class BlockService:
    """Service for handling user blocking functionality."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.gate = AuthorizationGate(db, settings)

    def _target(self, user_id: int, target_id: int) -> User:
        if user_id == target_id:
            raise ValidationError("Cannot block yourself")
        target = self.db.get(User, target_id)
        if target is None:
            raise NotFoundError("User not found")
        return target

    def block(self, user_id: int, token: Optional[str], target_id: int) -> bool:
        self.gate.authorize(user_id, token)
        self._target(user_id, target_id)
        created = record_block(self.db, user_id, target_id)
        if created:
            logger.info(f"User {user_id} blocked user {target_id}")
        return created

    def unblock(self, user_id: int, token: Optional[str], target_id: int) -> bool:
        """
        Unblock a user.

        Returns:
            bool: True if unblocked, False if no block existed
        """
        self.gate.authorize(user_id, token)
        block = self.db.query(Block).filter(
            Block.blocker_id == user_id,
            Block.blocked_id == target_id
        ).first()

        if not block:
            return False

        self.db.delete(block)
        self.db.commit()
        return True

    def nuclear_block(self, user_id: int, token: Optional[str], target_id: int) -> Tuple[bool, List[int]]:
        """
        Block a user and everyone currently following them.

        The direct block is written before returning. Each follower's block is
        its own task: the fan-out is one hop deep, not atomic, and may finish
        after this call returns. A follower who unfollows meanwhile may still
        end up blocked.

        Returns:
            Tuple[bool, List[int]]: whether the direct block is new, and the
            IDs of the followers whose blocks were handed off
        """
        self.gate.authorize(user_id, token)
        self._target(user_id, target_id)

        created = record_block(self.db, user_id, target_id)

        follower_ids = [
            follower_id for (follower_id,) in self.db.query(Follower.follower_id).filter(
                Follower.followed_id == target_id,
                Follower.follower_id != user_id
            )
        ]
        for follower_id in follower_ids:
            task_queue.submit(block_user_task, user_id, follower_id)

        logger.info(
            f"User {user_id} nuclear-blocked user {target_id}; "
            f"propagating to {len(follower_ids)} followers"
        )
        return created, follower_ids
