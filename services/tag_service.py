import logging
from typing import Iterable, List, Optional

from sqlalchemy import or_
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from config import Settings
from core.exceptions import ConflictError, NotFoundError, ValidationError
from models.post import Post, post_tags
from models.tag import Tag, TagAlias
from models.user import User, user_blocked_tags, user_followed_tags
from services.auth_service import AuthorizationGate

logger = logging.getLogger(__name__)


def split_tag_string(tag_string: Optional[str]) -> List[str]:
    """Lower-case, split on whitespace and de-duplicate, keeping first-seen order."""
    if not tag_string:
        return []
    return list(dict.fromkeys(tag_string.lower().split()))


def relink(collection, old: Tag, new: Tag) -> None:
    if new not in collection:
        collection.append(new)
    collection.remove(old)


class TagService:
    """Resolves tag strings to canonical tags and merges tags."""

    def __init__(self, db: Session, settings: Settings):
        self.db = db
        self.settings = settings

    def _lookup(self, token: str) -> Optional[Tag]:
        return (
            self.db.query(Tag)
            .outerjoin(TagAlias, TagAlias.tag_id == Tag.id)
            .filter(or_(Tag.name == token, TagAlias.alias == token))
            .first()
        )

    def get_by_name(self, name: str) -> Tag:
        tag = self.db.query(Tag).filter(Tag.name == name.lower()).first()
        if tag is None:
            raise NotFoundError(f"Tag '{name}' not found")
        return tag

    def find_tags(self, names: Iterable[str]) -> List[Tag]:
        """Resolve names through aliases without creating anything."""
        found = {}
        for token in dict.fromkeys(name.lower() for name in names if name):
            tag = self._lookup(token)
            if tag is not None:
                found[tag.id] = tag
        return list(found.values())

    def resolve_tags(self, tag_string: Optional[str]) -> List[Tag]:
        """
        Map a whitespace separated tag string to canonical tags.

        Each unique token resolves to the live tag with that name or alias;
        unknown tokens become new canonical tags. New tags are flushed, not
        committed, so they land in the caller's transaction.

        Raises:
            ConflictError: another request created one of the tags first
        """
        tags = {}
        for token in split_tag_string(tag_string):
            tag = self._lookup(token)
            if tag is None:
                tag = Tag(name=token)
                self.db.add(tag)
                try:
                    self.db.flush()
                except IntegrityError:
                    self.db.rollback()
                    logger.warning(f"Tag '{token}' was created concurrently")
                    raise ConflictError(f"Tag '{token}' is being created concurrently, retry the request")
                logger.info(f"Created tag '{token}'")
            tags[tag.id] = tag
        return list(tags.values())

    def _linked(self, model, link_table, owner_column, tag_id: int) -> list:
        """Rows linked to a tag, soft-deleted ones included."""
        return (
            self.db.query(model)
            .join(link_table, owner_column == model.id)
            .filter(link_table.c.tag_id == tag_id)
            .execution_options(include_deleted=True)
            .all()
        )

    def merge_tags(self, user_id: int, token: Optional[str], from_name: str, to_name: str) -> Tag:
        """
        Fold tag ``from_name`` into ``to_name``. Admin only.

        ``to`` gains ``from``'s name and aliases, posts and followers/blockers
        of ``from`` are moved over (soft-deleted ones included), and ``from`` is deleted, all
        in one transaction.
        """
        AuthorizationGate(self.db, self.settings).authorize(user_id, token, require_admin=True)

        merge_to = self.get_by_name(to_name)
        merge_from = self.get_by_name(from_name)
        if merge_to.id == merge_from.id:
            raise ValidationError("Cannot merge a tag into itself")

        try:
            for alias in list(merge_from.aliases):
                alias.tag = merge_to
            merge_to.aliases.append(TagAlias(alias=merge_from.name))

            for post in self._linked(Post, post_tags, post_tags.c.post_id, merge_from.id):
                relink(post.tags, merge_from, merge_to)
            for user in self._linked(User, user_followed_tags, user_followed_tags.c.user_id, merge_from.id):
                relink(user.followed_tags, merge_from, merge_to)
            for user in self._linked(User, user_blocked_tags, user_blocked_tags.c.user_id, merge_from.id):
                relink(user.blocked_tags, merge_from, merge_to)

            merge_from.soft_delete()
            self.db.commit()
        except Exception:
            self.db.rollback()
            raise

        self.db.refresh(merge_to)
        logger.info(f"Merged tag '{from_name}' into '{merge_to.name}'")
        return merge_to
