"""Credential checks and token issue."""

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.exceptions import AuthenticationError
from ..core.security import Principal, create_access_token, verify_password
from ..models import PlatformUser, User
from ..models.states import UserRole
from ..schemas.auth import Me, TokenResponse

logger = logging.getLogger(__name__)

_INVALID_CREDENTIALS = "Invalid email or password"


def issue_token(principal: Principal) -> TokenResponse:
    return TokenResponse(
        access_token=create_access_token(principal),
        expires_in=settings.access_token_expire_minutes * 60,
        user=describe(principal),
    )


def describe(principal: Principal) -> Me:
    return Me(
        id=principal.id,
        role=principal.role,
        company_id=principal.tenant_id,
        name=principal.name,
    )


class AuthService:
    """Authenticates users against a company or the platform database."""

    def __init__(self, db: AsyncSession):
        self.db = db

    async def login_company_user(self, tenant_id: str, email: str, password: str) -> TokenResponse:
        """
        Check a company user's credentials.

        Raises:
            AuthenticationError: If the email is unknown, the account is
                inactive, or the password does not match
        """
        result = await self.db.execute(select(User).where(User.email == email))
        user: Optional[User] = result.scalar_one_or_none()

        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info("Login failed", extra={"tenant_id": tenant_id, "email": email})
            raise AuthenticationError(detail=_INVALID_CREDENTIALS)

        principal = Principal(id=user.id, role=UserRole(user.role), tenant_id=tenant_id, name=user.name)
        logger.info("Login succeeded", extra={"tenant_id": tenant_id, "user_id": user.id})
        return issue_token(principal)

    async def login_platform_user(self, email: str, password: str) -> TokenResponse:
        """Check a super admin's credentials against the platform registry."""
        result = await self.db.execute(select(PlatformUser).where(PlatformUser.email == email))
        user: Optional[PlatformUser] = result.scalar_one_or_none()

        if user is None or not user.is_active or not verify_password(password, user.password_hash):
            logger.info("Platform login failed", extra={"email": email})
            raise AuthenticationError(detail=_INVALID_CREDENTIALS)

        principal = Principal(id=user.id, role=UserRole.SUPER_ADMIN, name=user.name)
        logger.info("Platform login succeeded", extra={"user_id": user.id})
        return issue_token(principal)
