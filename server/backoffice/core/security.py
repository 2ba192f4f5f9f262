"""Principals, password hashing and bearer tokens."""

from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Optional

import bcrypt
import jwt
from jwt import PyJWTError

from ..models.states import UserRole
from .config import settings
from .exceptions import AuthenticationError
from .identifiers import is_object_id

ALGORITHM = "HS256"


@dataclass(frozen=True)
class Principal:
    """An authenticated actor."""

    id: str
    role: UserRole
    tenant_id: Optional[str] = None
    name: Optional[str] = None

    @property
    def is_admin(self) -> bool:
        return self.role in (UserRole.ADMIN, UserRole.SUPER_ADMIN)

    @property
    def is_super_admin(self) -> bool:
        return self.role is UserRole.SUPER_ADMIN


def hash_password(password: str) -> str:
    """Hash a password."""
    return bcrypt.hashpw(password.encode("utf-8"), bcrypt.gensalt()).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Verify a password against its hash."""
    try:
        return bcrypt.checkpw(plain_password.encode("utf-8"), hashed_password.encode("utf-8"))
    except ValueError:
        return False


def create_access_token(principal: Principal, expires_delta: Optional[timedelta] = None) -> str:
    """Issue a signed bearer token for a principal."""
    expire = datetime.now(timezone.utc) + (
        expires_delta or timedelta(minutes=settings.access_token_expire_minutes)
    )
    payload = {
        "sub": principal.id,
        "role": principal.role.value,
        "tenant_id": principal.tenant_id,
        "name": principal.name,
        "exp": expire,
    }
    return jwt.encode(payload, settings.bearer_token_secret, algorithm=ALGORITHM)


def decode_access_token(token: str) -> Principal:
    """
    Validate a bearer token and rebuild the principal it was issued for.

    Raises:
        AuthenticationError: If the token is invalid, expired or malformed
    """
    try:
        payload = jwt.decode(token, settings.bearer_token_secret, algorithms=[ALGORITHM])
    except PyJWTError as e:
        raise AuthenticationError(detail=f"Token validation failed: {str(e)}")

    user_id = payload.get("sub")
    tenant_id = payload.get("tenant_id")
    try:
        role = UserRole(payload.get("role"))
    except ValueError:
        raise AuthenticationError(detail="Invalid token payload")

    if not is_object_id(user_id):
        raise AuthenticationError(detail="Invalid token payload")
    if role is not UserRole.SUPER_ADMIN and not is_object_id(tenant_id):
        raise AuthenticationError(detail="Invalid token payload")

    return Principal(id=user_id, role=role, tenant_id=tenant_id, name=payload.get("name"))


def principal_from_header(authorization: Optional[str]) -> Principal:
    """
    Parse an Authorization header into a principal.

    Raises:
        AuthenticationError: If the header is missing or malformed
    """
    if not authorization:
        raise AuthenticationError(detail="Authorization header missing")

    try:
        scheme, token = authorization.split()
    except ValueError:
        raise AuthenticationError(detail="Invalid authorization header format")

    if scheme.lower() != "bearer":
        raise AuthenticationError(detail="Invalid authentication scheme")

    return decode_access_token(token)
