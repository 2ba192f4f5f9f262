"""Company provisioning in the platform registry."""

import logging
import re
from typing import List, Tuple

from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.authorization import Operation, authorize
from ..core.config import settings
from ..core.exceptions import ConflictError, NotFoundError, TenantConnectionError, ValidationError
from ..core.identifiers import new_object_id
from ..core.security import Principal, hash_password
from ..core.tenancy import TenantRegistry
from ..models import Company, User
from ..models.states import UserRole
from ..schemas.company import CreateCompanyRequest

logger = logging.getLogger(__name__)


def slugify(name: str) -> str:
    """Lowercase, collapse runs of non-alphanumerics to '-', trim the ends."""
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def database_name_for(name: str) -> str:
    return "company_" + re.sub(r"[^a-z0-9]", "_", name.lower())


class CompanyService:
    """Service for company operations; runs on the platform database."""

    def __init__(self, db: AsyncSession, registry: TenantRegistry, principal: Principal):
        self.db = db
        self.registry = registry
        self.principal = principal

    async def create_company(self, request: CreateCompanyRequest) -> Tuple[Company, User]:
        """
        Register a company, provision its database and seed its first admin.

        If the company database cannot be opened the registration is rolled
        back, so a retry starts clean.

        Raises:
            ValidationError: If the name yields an empty slug
            ConflictError: If the name or slug is taken
            TenantConnectionError: If the company database cannot be opened
        """
        authorize(self.principal, Operation.COMPANY_CREATE)

        slug = slugify(request.name)
        if not slug:
            raise ValidationError(
                detail="Company name must contain letters or digits",
                errors={"name": ["cannot be turned into a slug"]},
            )

        existing = await self.db.execute(
            select(Company.id).where(or_(Company.name == request.name, Company.slug == slug))
        )
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(detail=f"A company named '{request.name}' already exists")

        company = Company(
            id=new_object_id(),
            name=request.name,
            slug=slug,
            description=request.description,
            primary_color=request.primary_color,
            contact_email=request.contact_email,
            contact_phone=request.contact_phone,
            contact_address=request.contact_address,
            storage_uri=request.storage_uri or settings.tenant_storage_uri,
            db_name=database_name_for(request.name),
            is_active=True,
        )
        self.db.add(company)
        await self.db.commit()
        await self.db.refresh(company)

        try:
            handle = await self.registry.resolve(company.id)
        except TenantConnectionError:
            logger.error(
                "Company provisioning failed; removing registration",
                extra={"tenant_id": company.id, "db_name": company.db_name}
            )
            await self.db.delete(company)
            await self.db.commit()
            raise

        async with handle.session() as session:
            admin = User(
                name=request.admin_name.strip(),
                email=request.admin_email,
                password_hash=hash_password(request.admin_password),
                role=UserRole.ADMIN.value,
            )
            session.add(admin)
            await session.commit()
            await session.refresh(admin)

        logger.info(
            "Company created",
            extra={
                "tenant_id": company.id,
                "slug": company.slug,
                "db_name": company.db_name,
                "admin_id": admin.id,
            }
        )
        return company, admin

    async def list_companies(self) -> List[Company]:
        authorize(self.principal, Operation.COMPANY_LIST)
        result = await self.db.execute(select(Company).order_by(Company.created_at))
        return list(result.scalars().all())

    async def get_company(self, company_id: str) -> Company:
        authorize(self.principal, Operation.COMPANY_READ)
        result = await self.db.execute(select(Company).where(Company.id == company_id))
        company = result.scalar_one_or_none()
        if not company:
            raise NotFoundError("company", company_id)
        return company

    async def deactivate_company(self, company_id: str) -> Company:
        """Soft-deactivate a company and drop its cached connection."""
        authorize(self.principal, Operation.COMPANY_DEACTIVATE)
        company = await self.get_company(company_id)

        company.is_active = False
        await self.db.commit()
        await self.db.refresh(company)

        await self.registry.evict(company.id)

        logger.info("Company deactivated", extra={"tenant_id": company.id})
        return company
