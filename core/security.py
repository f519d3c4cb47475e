import secrets
from datetime import datetime, timedelta
from typing import Optional

from fastapi import Header
from jose import jwt
from jose.exceptions import ExpiredSignatureError, JWTError
from passlib.context import CryptContext

from config import Settings
from core.exceptions import UnauthorizedError

# Per-user salt is stored alongside the hash and mixed into the secret
pwd_context = CryptContext(schemes=["pbkdf2_sha256"], deprecated="auto")


def generate_salt(nbytes: int = 128) -> str:
    return secrets.token_hex(nbytes)


def get_password_hash(password: str, salt: str) -> str:
    """Generate a password hash"""
    return pwd_context.hash(password + salt)


def verify_password(plain_password: str, salt: str, hashed_password: str) -> bool:
    """Verify a password against a hash"""
    return pwd_context.verify(plain_password + salt, hashed_password)


class TokenService:
    """Issues and verifies signed access tokens whose subject is a user id."""

    def __init__(self, settings: Settings):
        self.secret_key = settings.SECRET_KEY
        self.algorithm = settings.ALGORITHM
        self.expires_delta = timedelta(minutes=settings.ACCESS_TOKEN_EXPIRE_MINUTES)

    def create_access_token(self, user_id: int, expires_delta: Optional[timedelta] = None) -> str:
        """Create a JWT access token"""
        expire = datetime.utcnow() + (expires_delta or self.expires_delta)
        to_encode = {"sub": str(user_id), "exp": expire}
        return jwt.encode(to_encode, self.secret_key, algorithm=self.algorithm)

    def verify(self, token: Optional[str]) -> str:
        """Verify signature and expiry; return the token subject."""
        if not token:
            raise UnauthorizedError("Missing token")
        try:
            payload = jwt.decode(token, self.secret_key, algorithms=[self.algorithm])
        except ExpiredSignatureError:
            raise UnauthorizedError("Token expired")
        except JWTError:
            raise UnauthorizedError("Invalid token")

        subject = payload.get("sub")
        if subject is None:
            raise UnauthorizedError("Invalid token")
        return subject


def get_token_from_header(authorization: Optional[str] = Header(default=None)) -> Optional[str]:
    """Accept either a raw token or ``Bearer <token>`` in the Authorization header."""
    if not authorization:
        return None
    scheme, _, credentials = authorization.partition(" ")
    if credentials and scheme.lower() == "bearer":
        return credentials.strip()
    return authorization.strip()
