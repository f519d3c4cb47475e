from datetime import datetime
from typing import List, Optional

from pydantic import EmailStr, Field, field_validator

from .base import CamelModel, UserRef
from .post import PostResponse


class UserCreate(CamelModel):
    """Schema for creating a new user."""
    name: str = Field(..., min_length=1, max_length=100)
    email: EmailStr
    password: str = Field(..., min_length=1, max_length=200)


class UserUpdate(CamelModel):
    """Schema for updating user data."""
    name: Optional[str] = Field(None, min_length=1, max_length=100)
    email: Optional[EmailStr] = None
    password: Optional[str] = Field(None, min_length=1, max_length=200)
    profile: Optional[str] = Field(None, max_length=5000)


class TargetRequest(CamelModel):
    target_id: int = Field(..., description="ID of the user acted upon")


class TagRequest(CamelModel):
    tag_name: str = Field(..., min_length=1, max_length=100)


class PublicUserResponse(CamelModel):
    """Profile as anyone may see it."""
    id: int
    created_at: datetime
    name: str
    is_banned: bool
    profile: Optional[str] = None
    followed_by: List[UserRef] = []
    posts: List[PostResponse] = []


class PrivateUserResponse(CamelModel):
    """Profile as the owner sees it, feed included."""
    id: int
    created_at: datetime
    name: str
    email: str
    is_admin: bool
    is_banned: bool
    profile: Optional[str] = None
    blocked_users: List[UserRef] = []
    followed_by: List[UserRef] = []
    following: List[UserRef] = []
    followed_tags: List[str] = []
    blocked_tags: List[str] = []
    feed: List[PostResponse] = []
    posts: List[PostResponse] = []

    @field_validator("followed_tags", "blocked_tags", mode="before")
    @classmethod
    def tag_names(cls, v):
        return sorted(getattr(tag, "name", tag) for tag in v or [])


class UserSummary(CamelModel):
    id: int
    name: str
    is_banned: bool
    profile: Optional[str] = None


class BlockResponse(CamelModel):
    changed: bool
    propagated_to: List[int] = []
