"""FastAPI dependencies for authentication, tenant resolution and tenant sessions."""

from typing import AsyncGenerator, Optional

from fastapi import Depends, Header, Query, Request
from sqlalchemy.ext.asyncio import AsyncSession

from ..models import PlatformUser, User
from ..models.states import UserRole
from .config import settings
from .exceptions import AuthenticationError, TenantNotFoundError
from .security import Principal, principal_from_header
from .tenancy import TenantHandle, TenantRegistry, resolve_tenant


def get_registry(request: Request) -> TenantRegistry:
    """The tenant registry created at startup."""
    return request.app.state.registry


def get_dispatcher(request: Request):
    """The notification dispatcher created at startup."""
    return request.app.state.dispatcher


async def load_principal(claims: Principal, registry: TenantRegistry, platform_sessions) -> Principal:
    """
    Reload the account a token was issued for.

    Role and name come from the stored account, so a demotion takes effect on
    the next request.

    Raises:
        AuthenticationError: If the account no longer exists or is inactive
    """
    if claims.is_super_admin:
        async with platform_sessions() as session:
            user = await session.get(PlatformUser, claims.id)
    else:
        try:
            handle = await registry.resolve(claims.tenant_id)
        except TenantNotFoundError:
            raise AuthenticationError(detail="Company is no longer active")
        async with handle.session() as session:
            user = await session.get(User, claims.id)

    if user is None or not user.is_active:
        raise AuthenticationError(detail="User not found")

    return Principal(id=user.id, role=UserRole(user.role), tenant_id=claims.tenant_id, name=user.name)


async def get_optional_user(
    request: Request,
    authorization: Optional[str] = Header(None, alias="Authorization"),
) -> Optional[Principal]:
    """Like get_current_user, but anonymous requests get None. A bad token still fails."""
    if not authorization:
        return None
    claims = principal_from_header(authorization)
    return await load_principal(claims, get_registry(request), request.app.state.platform_sessions)


async def get_current_user(
    principal: Optional[Principal] = Depends(get_optional_user),
) -> Principal:
    """
    Authentication dependency that validates Bearer tokens.

    Returns:
        Principal: The authenticated actor, as currently stored

    Raises:
        AuthenticationError: If token is invalid or missing, or its account is gone
    """
    if principal is None:
        raise AuthenticationError(detail="Authorization header missing")
    return principal


def _tenant_header(request: Request) -> Optional[str]:
    return request.headers.get(settings.tenant_header)


async def get_tenant_id(
    request: Request,
    company_id: Optional[str] = Query(None, alias="companyId"),
    principal: Optional[Principal] = Depends(get_optional_user),
) -> str:
    """
    The company the request targets.

    Raises:
        ValidationError: If no company is named
        AuthorizationError: If the principal belongs to another company
    """
    return resolve_tenant(_tenant_header(request), company_id, principal)


async def get_tenant_handle(
    tenant_id: str = Depends(get_tenant_id),
    registry: TenantRegistry = Depends(get_registry),
) -> TenantHandle:
    """
    Resolve the company's database handle.

    Raises:
        TenantNotFoundError: If the company is unknown or inactive
        TenantConnectionError: If its database cannot be opened
    """
    return await registry.resolve(tenant_id)


async def get_tenant_db(
    handle: TenantHandle = Depends(get_tenant_handle),
) -> AsyncGenerator[AsyncSession, None]:
    """
    Dependency that yields a session on the company's database.

    Yields:
        AsyncSession: Tenant database session
    """
    async with handle.session() as session:
        try:
            yield session
        except Exception:
            await session.rollback()
            raise
