import logging
from typing import Any, Dict, List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings
from core.exceptions import ConflictError, NotFoundError, UnauthorizedError, ValidationError
from core.security import TokenService, generate_salt, get_password_hash, verify_password
from models.follower import Follower
from models.user import User
from services.auth_service import AuthorizationGate
from services.feed_service import FeedService
from services.tag_service import TagService

logger = logging.getLogger(__name__)

INCORRECT_CREDENTIALS = "Incorrect credentials"


class UserService:
    """Service for handling user-related operations."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings
        self.gate = AuthorizationGate(db, settings)

    def _get(self, user_id: int) -> User:
        user = self.db.get(User, user_id)
        if user is None:
            raise NotFoundError("User not found")
        return user

    def _commit(self, conflict_message: str) -> None:
        try:
            self.db.commit()
        except IntegrityError:
            self.db.rollback()
            raise ConflictError(conflict_message)

    def create_user(self, name: str, email: str, password: str) -> User:
        """Register a user with a fresh per-user salt."""
        if not name or not name.strip():
            raise ValidationError("Name is required")
        if not password:
            raise ValidationError("Password is required")

        email = email.strip().lower()
        if self.db.query(User).filter(User.email == email).execution_options(include_deleted=True).first():
            raise ConflictError("Email already registered")

        salt = generate_salt(self.settings.SALT_BYTES)
        user = User(
            name=name.strip(),
            email=email,
            password=get_password_hash(password, salt),
            salt=salt,
        )
        self.db.add(user)
        self._commit("Email already registered")
        self.db.refresh(user)
        logger.info(f"Registered user {user.id}")
        return user

    def login(self, email: str, password: str) -> Dict[str, Any]:
        """Exchange email and password for a token; never reveals which one was wrong."""
        user = self.db.query(User).filter(User.email == email.strip().lower()).first()
        if user is None or not verify_password(password, user.salt, user.password):
            raise UnauthorizedError(INCORRECT_CREDENTIALS)

        token = TokenService(self.settings).create_access_token(user.id)
        return {"userId": user.id, "token": token}

    def get_public_profile(self, user_id: int) -> User:
        return self._get(user_id)

    def get_private_profile(self, user_id: int, token: Optional[str]) -> Dict[str, Any]:
        user = self.gate.authorize(user_id, token)
        feed = FeedService(self.db, self.settings).feed_for(user)
        return {
            "user": user,
            "feed": feed,
        }

    def search_users(self, name_contains: str = "", limit: int = 50, offset: int = 0) -> List[User]:
        query = self.db.query(User)
        if name_contains:
            query = query.filter(User.name.ilike(f"%{name_contains}%"))
        return query.order_by(User.name, User.id).offset(offset).limit(limit).all()

    def update_user(
        self,
        user_id: int,
        token: Optional[str],
        name: Optional[str] = None,
        email: Optional[str] = None,
        password: Optional[str] = None,
        profile: Optional[str] = None,
    ) -> User:
        user = self.gate.authorize(user_id, token)

        if name is not None:
            if not name.strip():
                raise ValidationError("Name cannot be empty")
            user.name = name.strip()
        if email is not None:
            user.email = email.strip().lower()
        if password:
            user.salt = generate_salt(self.settings.SALT_BYTES)
            user.password = get_password_hash(password, user.salt)
        if profile is not None:
            user.profile = profile

        self._commit("Email already registered")
        self.db.refresh(user)
        return user

    def delete_user(self, user_id: int, token: Optional[str]) -> None:
        """Soft-delete the account together with its posts."""
        user = self.gate.authorize(user_id, token)
        for post in user.posts:
            post.soft_delete()
        user.soft_delete()
        self.db.commit()
        logger.info(f"Deleted user {user_id}")

    def follow(self, user_id: int, token: Optional[str], target_id: int) -> bool:
        user = self.gate.authorize(user_id, token)
        self.gate.check_not_banned(user, "follow users")
        if user_id == target_id:
            raise ValidationError("You cannot follow yourself")
        self._get(target_id)

        existing = self.db.get(Follower, (user_id, target_id))
        if existing:
            return False
        self.db.add(Follower(follower_id=user_id, followed_id=target_id))
        self._commit("Already following")
        return True

    def unfollow(self, user_id: int, token: Optional[str], target_id: int) -> bool:
        self.gate.authorize(user_id, token)
        existing = self.db.get(Follower, (user_id, target_id))
        if not existing:
            return False
        self.db.delete(existing)
        self.db.commit()
        return True

    def set_banned(self, admin_id: int, token: Optional[str], target_id: int, banned: bool) -> User:
        self.gate.authorize(admin_id, token, require_admin=True)
        target = self._get(target_id)
        target.is_banned = banned
        self.db.commit()
        logger.info(f"Admin {admin_id} {'banned' if banned else 'unbanned'} user {target_id}")
        return target

    def ban(self, admin_id: int, token: Optional[str], target_id: int) -> User:
        return self.set_banned(admin_id, token, target_id, True)

    def unban(self, admin_id: int, token: Optional[str], target_id: int) -> User:
        return self.set_banned(admin_id, token, target_id, False)

    def _tag_for(self, tag_name: str):
        tags = TagService(self.db, self.settings).find_tags([tag_name])
        if not tags:
            raise NotFoundError(f"Tag '{tag_name}' not found")
        return tags[0]

    def follow_tag(self, user_id: int, token: Optional[str], tag_name: str) -> bool:
        user = self.gate.authorize(user_id, token)
        self.gate.check_not_banned(user, "follow tags")
        tag = self._tag_for(tag_name)
        if tag in user.followed_tags:
            return False
        user.followed_tags.append(tag)
        self.db.commit()
        return True

    def unfollow_tag(self, user_id: int, token: Optional[str], tag_name: str) -> bool:
        user = self.gate.authorize(user_id, token)
        tag = self._tag_for(tag_name)
        if tag not in user.followed_tags:
            return False
        user.followed_tags.remove(tag)
        self.db.commit()
        return True

    def block_tag(self, user_id: int, token: Optional[str], tag_name: str) -> bool:
        user = self.gate.authorize(user_id, token)
        tag = self._tag_for(tag_name)
        if tag in user.blocked_tags:
            return False
        user.blocked_tags.append(tag)
        self.db.commit()
        return True

    def unblock_tag(self, user_id: int, token: Optional[str], tag_name: str) -> bool:
        user = self.gate.authorize(user_id, token)
        tag = self._tag_for(tag_name)
        if tag not in user.blocked_tags:
            return False
        user.blocked_tags.remove(tag)
        self.db.commit()
        return True
