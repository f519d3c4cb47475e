import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy.orm import Session

from config import Settings, get_settings
from core.security import get_token_from_header
from database import get_db
from schemas.post import PostResponse
from schemas.token import LoginRequest, TokenResponse
from schemas.user import (
    BlockResponse,
    PrivateUserResponse,
    PublicUserResponse,
    TagRequest,
    TargetRequest,
    UserCreate,
    UserSummary,
    UserUpdate,
)
from services.block_service import BlockService
from services.feed_service import FeedService
from services.user_service import UserService

router = APIRouter(prefix="/api/users", tags=["users"])
logger = logging.getLogger(__name__)


@router.post("/", response_model=PublicUserResponse, status_code=status.HTTP_201_CREATED)
def register(
    user_data: UserCreate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Register a new user.

    - **name**: display name
    - **email**: unique email address
    - **password**: plaintext password, stored salted and hashed
    """
    service = UserService(db, settings)
    return service.create_user(user_data.name, user_data.email, user_data.password)


@router.post("/login", response_model=TokenResponse)
def login(
    credentials: LoginRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """Exchange email and password for an access token."""
    return UserService(db, settings).login(credentials.email, credentials.password)


@router.get("/search", response_model=List[UserSummary])
def search_users(
    name_contains: str = Query("", alias="nameContains"),
    limit: int = Query(50, ge=1, le=200),
    offset: int = Query(0, ge=0),
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    """
    Search users by name.

    - **nameContains**: case-insensitive substring of the name
    """
    return UserService(db, settings).search_users(name_contains, limit=limit, offset=offset)


@router.get("/{user_id}", response_model=PublicUserResponse)
def get_public_profile(
    user_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
):
    return UserService(db, settings).get_public_profile(user_id)


@router.post("/{user_id}", response_model=PrivateUserResponse)
def get_private_profile(
    user_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """Full profile of the authenticated user, feed included."""
    profile = UserService(db, settings).get_private_profile(user_id, token)
    response = PrivateUserResponse.model_validate(profile["user"])
    return response.model_copy(
        update={"feed": [PostResponse.model_validate(post) for post in profile["feed"]]}
    )


@router.patch("/{user_id}", response_model=PublicUserResponse)
def update_user(
    user_id: int,
    user_data: UserUpdate,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Update the authenticated user's account.

    - **name**, **email**, **password**, **profile**: all optional
    """
    return UserService(db, settings).update_user(
        user_id,
        token,
        name=user_data.name,
        email=user_data.email,
        password=user_data.password,
        profile=user_data.profile,
    )


@router.delete("/{user_id}", status_code=status.HTTP_204_NO_CONTENT)
def delete_user(
    user_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    UserService(db, settings).delete_user(user_id, token)
    return None


@router.get("/{user_id}/feed", response_model=List[PostResponse])
def get_feed(
    user_id: int,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """Posts delivered to the user, newest first."""
    return FeedService(db, settings).get_feed(user_id, token)


@router.post("/{user_id}/follow")
def follow_user(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Follow another user.

    - **targetId**: ID of the user to follow
    """
    changed = UserService(db, settings).follow(user_id, token, body.target_id)
    return {"changed": changed}


@router.post("/{user_id}/unfollow")
def unfollow_user(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    changed = UserService(db, settings).unfollow(user_id, token, body.target_id)
    return {"changed": changed}


@router.post("/{user_id}/block", response_model=BlockResponse)
def block_user(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Block a user.

    - **targetId**: ID of the user to block
    """
    changed = BlockService(db, settings).block(user_id, token, body.target_id)
    return BlockResponse(changed=changed)


@router.post("/{user_id}/unblock", response_model=BlockResponse)
def unblock_user(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    changed = BlockService(db, settings).unblock(user_id, token, body.target_id)
    return BlockResponse(changed=changed)


@router.post("/{user_id}/nukeblock", response_model=BlockResponse)
def nuclear_block(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Block a user and everyone following them.

    The direct block is in place when this returns; blocks on the followers
    are queued and land shortly after.

    - **targetId**: ID of the user to block
    """
    try:
        created, follower_ids = BlockService(db, settings).nuclear_block(user_id, token, body.target_id)
        return BlockResponse(changed=created, propagated_to=follower_ids)
    except HTTPException:
        raise
    except Exception as e:
        logger.error(f"Error nuclear-blocking user {body.target_id}: {str(e)}")
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="An error occurred while blocking the user"
        )


@router.post("/{user_id}/ban", response_model=UserSummary)
def ban_user(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """Admin only: ban **targetId**."""
    return UserService(db, settings).ban(user_id, token, body.target_id)


@router.post("/{user_id}/unban", response_model=UserSummary)
def unban_user(
    user_id: int,
    body: TargetRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """Admin only: lift the ban on **targetId**."""
    return UserService(db, settings).unban(user_id, token, body.target_id)


@router.post("/{user_id}/followtag")
def follow_tag(
    user_id: int,
    body: TagRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """
    Follow a tag; its posts are delivered to the user's feed.

    - **tagName**: canonical name or alias
    """
    changed = UserService(db, settings).follow_tag(user_id, token, body.tag_name)
    return {"changed": changed}


@router.post("/{user_id}/unfollowtag")
def unfollow_tag(
    user_id: int,
    body: TagRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    changed = UserService(db, settings).unfollow_tag(user_id, token, body.tag_name)
    return {"changed": changed}


@router.post("/{user_id}/blocktag")
def block_tag(
    user_id: int,
    body: TagRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    """Hide posts carrying **tagName** from the user's feed."""
    changed = UserService(db, settings).block_tag(user_id, token, body.tag_name)
    return {"changed": changed}


@router.post("/{user_id}/unblocktag")
def unblock_tag(
    user_id: int,
    body: TagRequest,
    db: Session = Depends(get_db),
    settings: Settings = Depends(get_settings),
    token: Optional[str] = Depends(get_token_from_header),
):
    changed = UserService(db, settings).unblock_tag(user_id, token, body.tag_name)
    return {"changed": changed}
