"""Tenant resolution and the per-company connection registry.

Each company keeps its records in its own logical database. A request names
its company (header, query parameter or the principal's own company), and the
registry hands back a handle bound to that company's database, opening and
caching it on first use.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Optional

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker

from ..models import Company
from .database import TenantBase, build_tenant_url, create_engine_for, session_factory_for
from .exceptions import AuthorizationError, TenantConnectionError, TenantNotFoundError, ValidationError
from .identifiers import parse_object_id
from .observability import metrics_collector
from .security import Principal

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class TenantDescriptor:
    """Where a company's data lives."""

    tenant_id: str
    storage_uri: str
    db_name: str

    @property
    def url(self) -> str:
        return build_tenant_url(self.storage_uri, self.db_name)


@dataclass
class TenantHandle:
    """A live connection to one company's database."""

    tenant_id: str
    engine: AsyncEngine
    session_factory: async_sessionmaker[AsyncSession]

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        async with self.session_factory() as session:
            yield session


TenantLookup = Callable[[str], Awaitable[TenantDescriptor]]
EngineFactory = Callable[[TenantDescriptor], AsyncEngine]


def default_engine_factory(descriptor: TenantDescriptor) -> AsyncEngine:
    return create_engine_for(descriptor.url)


class CompanyDirectory:
    """Looks up connection descriptors in the platform registry."""

    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self.session_factory = session_factory

    async def __call__(self, tenant_id: str) -> TenantDescriptor:
        try:
            async with self.session_factory() as session:
                result = await session.execute(
                    select(Company).where(Company.id == tenant_id, Company.is_active.is_(True))
                )
                company = result.scalar_one_or_none()
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Company lookup failed",
                extra={"tenant_id": tenant_id, "error": str(e)}
            )
            raise TenantConnectionError(tenant_id) from e

        if company is None:
            raise TenantNotFoundError(tenant_id)

        return TenantDescriptor(
            tenant_id=company.id,
            storage_uri=company.storage_uri,
            db_name=company.db_name,
        )


class TenantRegistry:
    """
    Maps company identifiers to live database handles.

    Handles are opened lazily and cached for the lifetime of the process.
    Concurrent first resolutions of the same company wait on a per-company
    lock, so exactly one connection is opened and every caller receives it.
    A failed open caches nothing.
    """

    def __init__(self, lookup: TenantLookup, engine_factory: EngineFactory = default_engine_factory):
        self._lookup = lookup
        self._engine_factory = engine_factory
        self._handles: dict[str, TenantHandle] = {}
        self._locks: dict[str, asyncio.Lock] = {}

    def __contains__(self, tenant_id: str) -> bool:
        return tenant_id in self._handles

    def __len__(self) -> int:
        return len(self._handles)

    async def resolve(self, tenant_id: str) -> TenantHandle:
        """
        Get or open the handle for a company.

        Raises:
            ValidationError: If the identifier is malformed
            TenantNotFoundError: If no active company has the identifier
            TenantConnectionError: If the database could not be opened
        """
        tenant_id = parse_object_id(tenant_id, field="companyId")

        handle = self._handles.get(tenant_id)
        if handle is not None:
            return handle

        lock = self._locks.setdefault(tenant_id, asyncio.Lock())
        async with lock:
            handle = self._handles.get(tenant_id)
            if handle is not None:
                return handle

            descriptor = await self._lookup(tenant_id)
            handle = await self._open(descriptor)
            self._handles[tenant_id] = handle
            metrics_collector.set_tenant_connections(len(self._handles))

            logger.info("Tenant connection opened", extra={"tenant_id": tenant_id})
            return handle

    async def _open(self, descriptor: TenantDescriptor) -> TenantHandle:
        engine: Optional[AsyncEngine] = None
        try:
            engine = self._engine_factory(descriptor)
            async with engine.begin() as conn:
                await conn.run_sync(TenantBase.metadata.create_all)
        except (SQLAlchemyError, OSError) as e:
            logger.error(
                "Tenant connection failed",
                extra={"tenant_id": descriptor.tenant_id, "db_name": descriptor.db_name, "error": str(e)}
            )
            if engine is not None:
                await engine.dispose()
            raise TenantConnectionError(descriptor.tenant_id) from e

        return TenantHandle(
            tenant_id=descriptor.tenant_id,
            engine=engine,
            session_factory=session_factory_for(engine),
        )

    async def evict(self, tenant_id: str) -> bool:
        """Close and forget a company's handle; used when a company is deactivated."""
        # Serialized with resolve of the same company
        async with self._locks.setdefault(tenant_id, asyncio.Lock()):
            handle = self._handles.pop(tenant_id, None)
            if handle is None:
                return False
            await handle.engine.dispose()
        metrics_collector.set_tenant_connections(len(self._handles))
        logger.info("Tenant connection evicted", extra={"tenant_id": tenant_id})
        return True

    async def close(self) -> None:
        """Dispose every open handle."""
        handles = list(self._handles.values())
        self._handles.clear()
        for handle in handles:
            await handle.engine.dispose()
        metrics_collector.set_tenant_connections(0)


def resolve_tenant(
    header_value: Optional[str],
    query_value: Optional[str] = None,
    principal: Optional[Principal] = None,
) -> str:
    """
    Work out which company a request targets.

    The header wins over the query parameter, which wins over the
    principal's own company. A company-bound principal may only target its
    own company.

    Raises:
        ValidationError: If no company is named or the identifier is malformed
        AuthorizationError: If the principal belongs to a different company
    """
    candidate = header_value or query_value or (principal.tenant_id if principal else None)
    if not candidate:
        raise ValidationError(
            detail=(
                "Company context missing. Send the company header, a companyId "
                "query parameter, or authenticate as a company user."
            ),
            errors={"companyId": ["required"]},
        )

    tenant_id = parse_object_id(candidate, field="companyId")

    if principal is not None and not principal.is_super_admin and principal.tenant_id != tenant_id:
        logger.warning(
            "Cross-company request rejected",
            extra={"principal_id": principal.id, "requested_tenant": tenant_id}
        )
        raise AuthorizationError(detail="Not authorized for this company")

    return tenant_id
