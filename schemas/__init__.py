from .base import CamelModel, UserRef
from .token import LoginRequest, TokenResponse
from .post import (
    PostCreate,
    PostUpdate,
    PostDelete,
    AddTagsRequest,
    MergeTagsRequest,
    PostResponse,
    PostCreatedResponse,
)
from .tag import TagResponse
from .user import (
    UserCreate,
    UserUpdate,
    TargetRequest,
    TagRequest,
    PublicUserResponse,
    PrivateUserResponse,
    UserSummary,
    BlockResponse,
)

__all__ = [
    'CamelModel',
    'UserRef',
    'LoginRequest',
    'TokenResponse',
    'PostCreate',
    'PostUpdate',
    'PostDelete',
    'AddTagsRequest',
    'MergeTagsRequest',
    'PostResponse',
    'PostCreatedResponse',
    'TagResponse',
    'UserCreate',
    'UserUpdate',
    'TargetRequest',
    'TagRequest',
    'PublicUserResponse',
    'PrivateUserResponse',
    'UserSummary',
    'BlockResponse',
]
