from pydantic import BaseModel, EmailStr

from .base import CamelModel


class LoginRequest(BaseModel):
    email: EmailStr
    password: str


class TokenResponse(CamelModel):
    """Token handed back on login; send it in the Authorization header."""
    user_id: int
    token: str
