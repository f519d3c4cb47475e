import logging
from typing import Optional

from sqlalchemy.orm import Session

from config import Settings
from core.exceptions import ForbiddenError, NotFoundError
from core.security import TokenService
from models.post import Post
from models.user import User

logger = logging.getLogger(__name__)


class AuthorizationGate:
    """
    Checks that run before any mutation.

    ``authorize`` proves the caller is who they claim to be (and optionally an
    admin), ``check_ownership`` ties the caller to a post, and
    ``check_not_banned`` is kept separate so admin actions on banned accounts
    still go through ``authorize``.
    """

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.tokens = TokenService(settings)

    def authorize(self, user_id: int, token: Optional[str], require_admin: bool = False) -> User:
        """
        Authorize ``user_id`` using ``token``.

        Checks run in order and the first failure wins: the user must exist,
        must be an admin when ``require_admin`` is set, the token must verify,
        and its subject must be ``user_id``.

        Raises:
            NotFoundError: no such user
            ForbiddenError: not an admin, or the token belongs to someone else
            UnauthorizedError: missing, invalid or expired token
        """
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")

        if require_admin and not user.is_admin:
            raise ForbiddenError("Admin privileges required")

        subject = self.tokens.verify(token)
        if subject != str(user_id):
            logger.warning(f"Token subject {subject} used for user {user_id}")
            raise ForbiddenError("Not authorized")

        return user

    def check_ownership(self, user_id: int, post_id: int, allow_admin_override: bool = False) -> Post:
        post = self.db.get(Post, post_id)
        if post is None:
            raise NotFoundError("Post not found")

        if post.author_id != user_id:
            if not allow_admin_override:
                raise ForbiddenError("Not authorized")
            user = self.db.get(User, user_id)
            if user is None or not user.is_admin:
                raise ForbiddenError("Not authorized")

        return post

    @staticmethod
    def check_not_banned(user: User, action: str) -> None:
        if user.is_banned:
            raise ForbiddenError(f"Banned users may not {action}")
