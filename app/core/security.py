"""
Admin Authentication

Password hashing with bcrypt and admin session tokens as HS256 JWTs.
`require_admin` is the FastAPI dependency that gates every /admin route.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from jwt.exceptions import InvalidTokenError
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from app.core.config import get_settings
from app.core.exceptions import AuthenticationError

logger = logging.getLogger(__name__)

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass
class AdminIdentity:
    """Claims carried by a verified admin token."""
    id: int
    email: str

    def to_dict(self) -> dict:
        return {"id": self.id, "email": self.email}


def hash_password(password: str) -> str:
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(password: str, password_hash: str) -> bool:
    try:
        return bcrypt.checkpw(password.encode("utf-8"), password_hash.encode("utf-8"))
    except ValueError:
        # Stored hash is not a bcrypt hash
        return False


def create_access_token(admin_id: int, email: str, now: Optional[datetime] = None) -> str:
    """Sign a token for the given admin, valid for `jwt_expire_days`."""
    settings = get_settings()
    now = now or datetime.now(timezone.utc)
    payload = {
        "id": admin_id,
        "email": email,
        "iat": now,
        "exp": now + timedelta(days=settings.jwt_expire_days),
    }
    return jwt.encode(payload, settings.jwt_secret, algorithm=settings.jwt_algorithm)


def decode_access_token(token: str) -> AdminIdentity:
    """
    Verify signature and expiry of an admin token.

    Raises:
        AuthenticationError: token is malformed, expired or signed with another key
    """
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.jwt_secret, algorithms=[settings.jwt_algorithm])
    except InvalidTokenError as e:
        logger.info(f"Rejected admin token: {e}")
        raise AuthenticationError("Invalid token")

    if "id" not in payload or "email" not in payload:
        raise AuthenticationError("Invalid token")

    return AdminIdentity(id=payload["id"], email=payload["email"])


async def require_admin(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
) -> AdminIdentity:
    """FastAPI dependency: 401 unless a valid Bearer token is presented."""
    if credentials is None or not credentials.credentials:
        raise AuthenticationError("Unauthorized")
    return decode_access_token(credentials.credentials)
