"""Agent management and performance reporting."""

import logging
from collections import defaultdict
from datetime import datetime
from decimal import Decimal
from typing import Iterable, List, Optional

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from ..core.authorization import Operation, OwnedResource, authorize
from ..core.database import utcnow
from ..core.exceptions import AuthorizationError, ConflictError, NotFoundError
from ..core.security import Principal, hash_password
from ..models import Booking, User
from ..models.states import UserRole
from ..schemas.agent import (
    AgentPerformance,
    PerformanceOverview,
    RegisterAgentRequest,
    UpdateAgentRequest,
)
from ..schemas.booking import BookingSummary

logger = logging.getLogger(__name__)

RECENT_BOOKINGS_LIMIT = 5

_ZERO = Decimal("0")


def _in_month(moment: datetime, as_of: datetime) -> bool:
    return moment.year == as_of.year and moment.month == as_of.month


def compute_performance(
    agent_id: str,
    bookings: Iterable[Booking],
    as_of: datetime,
    agent: Optional[User] = None,
) -> AgentPerformance:
    """
    Aggregate an agent's bookings.

    Pure function of its inputs: the same bookings and reference time always
    give the same figures. Bookings belonging to other agents are ignored.
    The agent record is optional so reports survive deleted agents.

    Args:
        agent_id: Whose bookings to count
        bookings: Candidate bookings
        as_of: Reference time; "monthly" means the calendar month of as_of
        agent: The agent record, if it still exists
    """
    owned = [booking for booking in bookings if booking.agent_id == agent_id]
    monthly = [booking for booking in owned if _in_month(booking.created_at, as_of)]

    total_revenue = sum((Decimal(booking.total_amount) for booking in owned), _ZERO)
    monthly_revenue = sum((Decimal(booking.total_amount) for booking in monthly), _ZERO)

    recent = sorted(owned, key=lambda booking: (booking.created_at, booking.id), reverse=True)
    recent = recent[:RECENT_BOOKINGS_LIMIT]

    monthly_target = Decimal(agent.monthly_target) if agent is not None else None
    target_progress = None
    if monthly_target:
        target_progress = (monthly_revenue * 100 / monthly_target).quantize(Decimal("0.01"))

    return AgentPerformance(
        agent_id=agent_id,
        agent_name=agent.name if agent is not None else None,
        total_bookings=len(owned),
        total_revenue=total_revenue,
        monthly_bookings=len(monthly),
        monthly_revenue=monthly_revenue,
        monthly_target=monthly_target,
        target_progress=target_progress,
        recent_bookings=[BookingSummary.model_validate(booking) for booking in recent],
    )


class AgentService:
    """Service for agent-related operations inside one company."""

    def __init__(self, db: AsyncSession, tenant_id: str, principal: Principal):
        self.db = db
        self.tenant_id = tenant_id
        self.principal = principal

    async def register_agent(self, request: RegisterAgentRequest) -> User:
        """
        Create a company user.

        Raises:
            ConflictError: If the email is already registered in this company
        """
        authorize(self.principal, Operation.AGENT_REGISTER)

        existing = await self.db.execute(select(User.id).where(User.email == request.email))
        if existing.scalar_one_or_none() is not None:
            raise ConflictError(detail=f"An agent with email '{request.email}' already exists")

        user = User(
            name=request.name.strip(),
            email=request.email,
            password_hash=hash_password(request.password),
            phone=request.phone,
            role=request.role.value,
            monthly_target=request.monthly_target,
            commission_rate=request.commission_rate,
            department=request.department,
        )
        self.db.add(user)
        await self.db.commit()
        await self.db.refresh(user)

        logger.info(
            "Agent registered",
            extra={"agent_id": user.id, "tenant_id": self.tenant_id, "role": user.role}
        )
        return user

    async def list_agents(self) -> List[User]:
        authorize(self.principal, Operation.AGENT_LIST)
        result = await self.db.execute(select(User).order_by(User.created_at))
        return list(result.scalars().all())

    async def _get(self, agent_id: str) -> User:
        result = await self.db.execute(select(User).where(User.id == agent_id))
        user = result.scalar_one_or_none()
        if not user:
            raise NotFoundError("agent", agent_id)
        return user

    async def get_agent(self, agent_id: str) -> User:
        user = await self._get(agent_id)
        authorize(self.principal, Operation.AGENT_READ, user)
        return user

    async def update_agent(self, request: UpdateAgentRequest) -> User:
        """
        Update a profile.

        Raises:
            AuthorizationError: If a non-admin touches an admin-only field
        """
        user = await self._get(request.id)
        authorize(self.principal, Operation.AGENT_UPDATE, user)

        if request.admin_fields_set() and not self.principal.is_admin:
            raise AuthorizationError(detail="Only admins may change these fields")

        if request.name is not None:
            user.name = request.name.strip()
        if request.phone is not None:
            user.phone = request.phone
        if request.password is not None:
            user.password_hash = hash_password(request.password)
        if request.role is not None:
            user.role = request.role.value
        if request.is_active is not None:
            user.is_active = request.is_active
        if request.monthly_target is not None:
            user.monthly_target = request.monthly_target
        if request.commission_rate is not None:
            user.commission_rate = request.commission_rate
        if request.department is not None:
            user.department = request.department

        await self.db.commit()
        await self.db.refresh(user)

        logger.info("Agent updated", extra={"agent_id": user.id, "tenant_id": self.tenant_id})
        return user

    async def delete_agent(self, agent_id: str) -> None:
        """
        Remove an agent. Their bookings keep the dangling agent reference.

        Raises:
            ConflictError: If an admin tries to delete their own account
        """
        authorize(self.principal, Operation.AGENT_DELETE)
        user = await self._get(agent_id)
        if user.id == self.principal.id:
            raise ConflictError(detail="You cannot delete your own account")

        await self.db.delete(user)
        await self.db.commit()

        logger.info("Agent deleted", extra={"agent_id": agent_id, "tenant_id": self.tenant_id})

    async def performance(self, agent_id: Optional[str] = None) -> AgentPerformance:
        """
        Performance of one agent, the caller by default.

        Raises:
            NotFoundError: If the agent neither exists nor owns any booking
        """
        agent_id = agent_id or self.principal.id
        authorize(self.principal, Operation.AGENT_PERFORMANCE, OwnedResource(agent_id))

        result = await self.db.execute(select(User).where(User.id == agent_id))
        agent = result.scalar_one_or_none()

        result = await self.db.execute(select(Booking).where(Booking.agent_id == agent_id))
        bookings = list(result.scalars().all())

        if agent is None and not bookings:
            raise NotFoundError("agent", agent_id)

        return compute_performance(agent_id, bookings, utcnow(), agent)

    async def performance_overview(self) -> PerformanceOverview:
        """
        Company-wide performance: every agent plus every other booking owner.

        Owners that no longer exist still get an entry, without a name.
        """
        authorize(self.principal, Operation.AGENT_PERFORMANCE_OVERVIEW)

        result = await self.db.execute(select(User))
        users = {user.id: user for user in result.scalars().all()}

        result = await self.db.execute(select(Booking))
        bookings = list(result.scalars().all())

        by_owner: dict[str, list[Booking]] = defaultdict(list)
        for booking in bookings:
            by_owner[booking.agent_id].append(booking)

        owner_ids = set(by_owner) | {
            user_id for user_id, user in users.items() if user.role == UserRole.AGENT.value
        }

        as_of = utcnow()
        agents = [
            compute_performance(owner_id, by_owner.get(owner_id, []), as_of, users.get(owner_id))
            for owner_id in owner_ids
        ]
        agents.sort(key=lambda perf: (-perf.total_revenue, perf.agent_id))

        return PerformanceOverview(
            total_bookings=sum(perf.total_bookings for perf in agents),
            total_revenue=sum((perf.total_revenue for perf in agents), _ZERO),
            monthly_bookings=sum(perf.monthly_bookings for perf in agents),
            monthly_revenue=sum((perf.monthly_revenue for perf in agents), _ZERO),
            agents=agents,
        )
