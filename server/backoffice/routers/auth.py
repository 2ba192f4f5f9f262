"""Authentication router."""

import logging
from typing import Optional

from fastapi import APIRouter, Depends, Query, Request
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.config import settings
from ..core.database import get_platform_db
from ..core.dependencies import get_current_user, get_registry
from ..core.security import Principal
from ..core.tenancy import TenantRegistry, resolve_tenant
from ..schemas.auth import LoginRequest, Me, PlatformLoginRequest, TokenResponse
from ..schemas.common import json_response
from ..services.auth_service import AuthService, describe

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/auth", tags=["auth"])

PRINCIPAL_DEPENDENCY = Depends(get_current_user)
PLATFORM_DB_DEPENDENCY = Depends(get_platform_db)
REGISTRY_DEPENDENCY = Depends(get_registry)
COMPANY_QUERY = Query(None, alias="companyId")


@router.post("/login", response_model=TokenResponse)
async def login(
    request: LoginRequest,
    http_request: Request,
    company_id: Optional[str] = COMPANY_QUERY,
    registry: TenantRegistry = REGISTRY_DEPENDENCY,
) -> JSONResponse:
    """
    Log in a company user.

    The company is taken from the company header, then the request body,
    then the companyId query parameter.
    """
    tenant_id = resolve_tenant(
        http_request.headers.get(settings.tenant_header),
        request.company_id or company_id,
    )
    handle = await registry.resolve(tenant_id)

    async with handle.session() as db:
        token = await AuthService(db).login_company_user(tenant_id, request.email, request.password)

    return json_response(token)


@router.post("/platform-login", response_model=TokenResponse)
async def platform_login(
    request: PlatformLoginRequest,
    db: AsyncSession = PLATFORM_DB_DEPENDENCY,
) -> JSONResponse:
    """Log in a super admin."""
    token = await AuthService(db).login_platform_user(request.email, request.password)
    return json_response(token)


@router.post("/me", response_model=Me)
async def me(principal: Principal = PRINCIPAL_DEPENDENCY) -> JSONResponse:
    """Describe the authenticated principal."""
    return json_response(describe(principal))
