"""Authentication schemas."""

from typing import Optional

from pydantic import Field

from ..models.states import UserRole
from .common import ApiModel, Email, ObjectId


class LoginRequest(ApiModel):
    """Company user login. The company comes from the body or the company header."""

    email: Email
    password: str = Field(..., min_length=1, max_length=128)
    company_id: Optional[ObjectId] = None


class PlatformLoginRequest(ApiModel):
    """Super admin login against the platform registry."""

    email: Email
    password: str = Field(..., min_length=1, max_length=128)


class Me(ApiModel):
    """The authenticated principal."""

    id: str
    role: UserRole
    company_id: Optional[str] = None
    name: Optional[str] = None


class TokenResponse(ApiModel):
    """Issued bearer token."""

    access_token: str
    token_type: str = "bearer"
    expires_in: int = Field(..., description="Lifetime in seconds")
    user: Me
