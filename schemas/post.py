from datetime import datetime
from typing import List, Optional

from pydantic import Field, field_validator

from .base import CamelModel, UserRef


class PostCreate(CamelModel):
    """Schema for creating a post; a post that isn't a reply needs a title."""
    user_id: int
    title: Optional[str] = Field(None, max_length=300)
    text: Optional[str] = Field(None, max_length=10000)
    reply_to: Optional[int] = None
    tag_string: Optional[str] = Field(None, max_length=1000)


class PostUpdate(CamelModel):
    user_id: int
    title: Optional[str] = Field(None, max_length=300)
    text: Optional[str] = Field(None, max_length=10000)


class PostDelete(CamelModel):
    user_id: int


class AddTagsRequest(CamelModel):
    user_id: int
    tag_string: str = Field(..., max_length=1000)


class MergeTagsRequest(CamelModel):
    user_id: int
    merge_from_name: str = Field(..., min_length=1)
    merge_to_name: str = Field(..., min_length=1)


class PostRef(CamelModel):
    id: int


class ReplyResponse(CamelModel):
    id: int
    created_at: datetime
    title: Optional[str] = None
    author: Optional[UserRef] = None


class PostResponse(CamelModel):
    """Post with author, reply links and tag names."""
    id: int
    created_at: datetime
    updated_at: datetime
    title: Optional[str] = None
    text: Optional[str] = None
    author: Optional[UserRef] = None
    reply_to: Optional[PostRef] = None
    replies: List[ReplyResponse] = []
    tags: List[str] = []

    @field_validator("tags", mode="before")
    @classmethod
    def tag_names(cls, v):
        return sorted(getattr(tag, "name", tag) for tag in v or [])


class PostCreatedResponse(CamelModel):
    post_id: int
