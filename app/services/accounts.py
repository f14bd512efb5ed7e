"""
Admin Accounts

Credential checks for the back-office login and creation of the
bootstrap admin account at startup.
"""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.core.config import get_settings
from app.core.exceptions import AuthenticationError, ValidationError
from app.core.security import create_access_token, hash_password, verify_password
from app.models import AdminUser

logger = logging.getLogger(__name__)


async def get_admin_by_email(session: AsyncSession, email: str) -> Optional[AdminUser]:
    result = await session.execute(select(AdminUser).where(AdminUser.email == email))
    return result.scalar_one_or_none()


async def login(session: AsyncSession, email: Optional[str], password: Optional[str]) -> tuple[str, AdminUser]:
    """
    Check credentials and issue a token.

    Unknown email and wrong password produce the same error.
    """
    if not email or not password:
        raise ValidationError("email and password required")

    admin = await get_admin_by_email(session, email.strip().lower())
    if admin is None or not verify_password(password, admin.password_hash):
        logger.warning(f"Failed admin login for {email}")
        raise AuthenticationError("Invalid credentials")

    return create_access_token(admin.id, admin.email), admin


async def ensure_admin_user(session: AsyncSession, email: Optional[str] = None, password: Optional[str] = None) -> AdminUser:
    """Create the admin account if it does not exist yet; never resets a password."""
    settings = get_settings()
    email = (email or settings.admin_email).strip().lower()

    admin = await get_admin_by_email(session, email)
    if admin is not None:
        return admin

    admin = AdminUser(email=email, password_hash=hash_password(password or settings.admin_password))
    session.add(admin)
    await session.commit()
    await session.refresh(admin)
    logger.info(f"Created admin user {email}")
    return admin
