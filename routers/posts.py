import logging
from datetime import datetime
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from config import Settings, get_settings
from core.security import get_token_from_header
from database import get_db
from schemas.post import (
    AddTagsRequest,
    MergeTagsRequest,
    PostCreate,
    PostCreatedResponse,
    PostDelete,
    PostResponse,
    PostUpdate,
)
from schemas.tag import TagResponse
from services.post_service import PostService
from services.tag_service import TagService

router = APIRouter(prefix="/api/posts", tags=["posts"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=PostCreatedResponse, status_code=status.HTTP_201_CREATED)
def create_post(
    post_data: PostCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Create a new post.

    - **userId**: author, must match the token
    - **title**: required unless the post is a reply
    - **text**: optional body
    - **replyTo**: ID of the post being replied to
    - **tagString**: whitespace separated tag names
    """
    try:
        post_id = PostService(db, settings).create_post(
            post_data.user_id,
            token,
            title=post_data.title,
            text=post_data.text,
            reply_to=post_data.reply_to,
            tag_string=post_data.tag_string,
        )
        return PostCreatedResponse(post_id=post_id)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error creating post: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while creating the post"
        )


@router.get("/search", response_model=List[PostResponse])
def search_posts(
    author_name: Optional[str] = Query(None, alias="authorName"),
    title_contains: str = Query("", alias="titleContains"),
    body_contains: str = Query("", alias="bodyContains"),
    include_tags: List[str] = Query([], alias="includeTags"),
    exclude_tags: List[str] = Query([], alias="excludeTags"),
    older_than: Optional[datetime] = Query(None, alias="olderThan"),
    newer_than: Optional[datetime] = Query(None, alias="newerThan"),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Search posts.

    - **includeTags**: every one of these must be on the post (repeat the parameter)
    - **excludeTags**: none of these may be on the post
    - **olderThan** / **newerThan**: ISO 8601 creation time bounds
    """
    return PostService(db, settings).search_posts(
        author_name=author_name,
        title_contains=title_contains,
        body_contains=body_contains,
        include_tags=include_tags,
        exclude_tags=exclude_tags,
        older_than=older_than,
        newer_than=newer_than,
    )


@router.post("/mergetags", response_model=TagResponse)
def merge_tags(
    body: MergeTagsRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Admin only: fold one tag into another.

    - **mergeFromName**: tag that disappears and becomes an alias
    - **mergeToName**: tag that survives
    """
    return TagService(db, settings).merge_tags(
        body.user_id, token, body.merge_from_name, body.merge_to_name
    )


@router.get("/{post_id}", response_model=PostResponse)
def get_post(
    post_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return PostService(db, settings).get_post(post_id)


@router.post("/{post_id}/tags", response_model=PostResponse)
def add_tags(
    post_id: int,
    body: AddTagsRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Add tags to one of your own posts.

    - **tagString**: whitespace separated tag names
    """
    return PostService(db, settings).add_tags(body.user_id, token, post_id, body.tag_string)


@router.patch("/{post_id}", response_model=PostResponse)
def edit_post(
    post_id: int,
    body: PostUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    return PostService(db, settings).edit_post(
        body.user_id, token, post_id, title=body.title, text=body.text
    )


@router.delete("/{post_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_post(
    post_id: int,
    body: PostDelete,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """Delete a post; admins may delete anyone's."""
    PostService(db, settings).delete_post(body.user_id, token, post_id)
    return None
