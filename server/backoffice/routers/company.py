"""Company router: super admin management of tenants."""

import logging

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.database import get_platform_db
from ..core.dependencies import get_current_user, get_registry
from ..core.security import Principal
from ..core.tenancy import TenantRegistry
from ..schemas.common import IdRequest, json_response
from ..schemas.company import Company, CompanyCreated, CreateCompanyRequest
from ..services.company_service import CompanyService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/v1/company", tags=["company"])

PRINCIPAL_DEPENDENCY = Depends(get_current_user)
PLATFORM_DB_DEPENDENCY = Depends(get_platform_db)
REGISTRY_DEPENDENCY = Depends(get_registry)


@router.post("/create", response_model=CompanyCreated, status_code=201)
async def create_company(
    request: CreateCompanyRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    db: AsyncSession = PLATFORM_DB_DEPENDENCY,
    registry: TenantRegistry = REGISTRY_DEPENDENCY,
) -> JSONResponse:
    """
    Provision a company.

    Registers it, opens its database, creates its tables and seeds its first
    admin user.
    """
    company_service = CompanyService(db, registry, principal)
    company, admin = await company_service.create_company(request)

    response_data = CompanyCreated(
        company=Company.model_validate(company),
        admin_id=admin.id,
        admin_email=admin.email,
    )
    return json_response(response_data, status_code=201)


@router.post("/list", response_model=list[Company])
async def list_companies(
    principal: Principal = PRINCIPAL_DEPENDENCY,
    db: AsyncSession = PLATFORM_DB_DEPENDENCY,
    registry: TenantRegistry = REGISTRY_DEPENDENCY,
) -> JSONResponse:
    company_service = CompanyService(db, registry, principal)
    companies = await company_service.list_companies()
    return json_response([Company.model_validate(company) for company in companies])


@router.post("/get", response_model=Company)
async def get_company(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    db: AsyncSession = PLATFORM_DB_DEPENDENCY,
    registry: TenantRegistry = REGISTRY_DEPENDENCY,
) -> JSONResponse:
    company_service = CompanyService(db, registry, principal)
    company = await company_service.get_company(request.id)
    return json_response(Company.model_validate(company))


@router.post("/deactivate", response_model=Company)
async def deactivate_company(
    request: IdRequest,
    principal: Principal = PRINCIPAL_DEPENDENCY,
    db: AsyncSession = PLATFORM_DB_DEPENDENCY,
    registry: TenantRegistry = REGISTRY_DEPENDENCY,
) -> JSONResponse:
    """Soft-deactivate a company; its users can no longer reach it."""
    company_service = CompanyService(db, registry, principal)
    company = await company_service.deactivate_company(request.id)
    return json_response(Company.model_validate(company))
