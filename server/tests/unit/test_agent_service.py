"""Unit tests for agent management and performance reports."""

from datetime import datetime
from decimal import Decimal
from types import SimpleNamespace

import pytest

from backoffice.core.exceptions import AuthorizationError, ConflictError, NotFoundError
from backoffice.models.states import BookingStatus
from backoffice.schemas.agent import RegisterAgentRequest, UpdateAgentRequest
from backoffice.schemas.booking import CreateBookingRequest
from backoffice.services.agent_service import RECENT_BOOKINGS_LIMIT, AgentService, compute_performance
from backoffice.services.booking_service import BookingService

from conftest import COMPANY_A

AS_OF = datetime(2026, 3, 15, 12, 0, 0)


def make_booking(booking_id, agent_id, amount, created_at):
    return SimpleNamespace(
        id=booking_id,
        agent_id=agent_id,
        customer_name="Customer",
        package="Package",
        total_amount=Decimal(amount),
        status=BookingStatus.PENDING,
        created_at=created_at,
    )


class TestComputePerformance:
    """Aggregation over an agent's bookings."""

    def test_totals_and_monthly_window(self):
        bookings = [
            make_booking("b1", "agent-1", "100.00", datetime(2026, 3, 1)),
            make_booking("b2", "agent-1", "250.50", datetime(2026, 3, 14)),
            make_booking("b3", "agent-1", "1000.00", datetime(2026, 2, 28)),
            make_booking("b4", "agent-2", "999.00", datetime(2026, 3, 2)),
        ]
        agent = SimpleNamespace(name="Bob", monthly_target=Decimal("1000"))

        perf = compute_performance("agent-1", bookings, AS_OF, agent)

        assert perf.total_bookings == 3
        assert perf.total_revenue == Decimal("1350.50")
        assert perf.monthly_bookings == 2
        assert perf.monthly_revenue == Decimal("350.50")
        assert perf.target_progress == Decimal("35.05")
        assert perf.agent_name == "Bob"
        assert [summary.id for summary in perf.recent_bookings] == ["b2", "b1", "b3"]

    def test_missing_agent_record(self):
        bookings = [make_booking("b1", "gone", "80.00", datetime(2026, 3, 3))]

        perf = compute_performance("gone", bookings, AS_OF)

        assert perf.agent_name is None
        assert perf.monthly_target is None
        assert perf.target_progress is None
        assert perf.total_revenue == Decimal("80.00")

    def test_recent_bookings_are_capped(self):
        bookings = [
            make_booking(f"b{day:02d}", "agent-1", "10.00", datetime(2026, 3, day))
            for day in range(1, 10)
        ]

        perf = compute_performance("agent-1", bookings, AS_OF)

        assert len(perf.recent_bookings) == RECENT_BOOKINGS_LIMIT
        assert perf.recent_bookings[0].id == "b09"

    def test_no_bookings(self):
        perf = compute_performance("agent-1", [], AS_OF, SimpleNamespace(name="Bob", monthly_target=Decimal("0")))

        assert perf.total_bookings == 0
        assert perf.total_revenue == Decimal("0")
        assert perf.target_progress is None
        assert perf.recent_bookings == []


def _booking_request(amount: str) -> CreateBookingRequest:
    return CreateBookingRequest(
        customer_name="Jane Traveller",
        customer_email="jane@example.com",
        contact_number="+1 555 0100",
        passengers=1,
        adults=1,
        package="City Break",
        package_price=amount,
        total_amount=amount,
        departure_date="2026-05-01",
        return_date="2026-05-05",
    )


@pytest.mark.asyncio
async def test_register_agent(tenant_session, admin_a):
    service = AgentService(tenant_session, COMPANY_A, admin_a)

    agent = await service.register_agent(
        RegisterAgentRequest(name="Erin Agent", email="ERIN@acme.test", password="long-enough-pw")
    )

    assert agent.email == "erin@acme.test"
    assert agent.password_hash != "long-enough-pw"
    assert agent.role == "agent"

    with pytest.raises(ConflictError):
        await service.register_agent(
            RegisterAgentRequest(name="Erin Again", email="erin@acme.test", password="long-enough-pw")
        )


@pytest.mark.asyncio
async def test_agents_cannot_register_agents(tenant_session, agent_a):
    with pytest.raises(AuthorizationError):
        await AgentService(tenant_session, COMPANY_A, agent_a).register_agent(
            RegisterAgentRequest(name="Erin Agent", email="erin@acme.test", password="long-enough-pw")
        )


@pytest.mark.asyncio
async def test_agent_updates_own_profile(tenant_session, agent_a, agent_a2):
    service = AgentService(tenant_session, COMPANY_A, agent_a)

    updated = await service.update_agent(UpdateAgentRequest(id=agent_a.id, phone="+1 555 0199"))
    assert updated.phone == "+1 555 0199"

    with pytest.raises(AuthorizationError):
        await service.update_agent(UpdateAgentRequest(id=agent_a.id, monthly_target=Decimal("1")))

    with pytest.raises(AuthorizationError):
        await service.update_agent(UpdateAgentRequest(id=agent_a2.id, phone="+1 555 0100"))


@pytest.mark.asyncio
async def test_admin_cannot_delete_self(tenant_session, admin_a, agent_a2):
    service = AgentService(tenant_session, COMPANY_A, admin_a)

    with pytest.raises(ConflictError):
        await service.delete_agent(admin_a.id)

    await service.delete_agent(agent_a2.id)
    with pytest.raises(NotFoundError):
        await service.get_agent(agent_a2.id)


@pytest.mark.asyncio
async def test_performance_survives_deleted_agent(tenant_session, admin_a, agent_a2):
    await BookingService(tenant_session, COMPANY_A, agent_a2).create_booking(_booking_request("300.00"))
    service = AgentService(tenant_session, COMPANY_A, admin_a)
    await service.delete_agent(agent_a2.id)

    perf = await service.performance(agent_a2.id)

    assert perf.agent_name is None
    assert perf.total_bookings == 1
    assert perf.total_revenue == Decimal("300.00")


@pytest.mark.asyncio
async def test_performance_unknown_agent(tenant_session, admin_a):
    with pytest.raises(NotFoundError):
        await AgentService(tenant_session, COMPANY_A, admin_a).performance("ffffffffffffffffffffffff")


@pytest.mark.asyncio
async def test_agent_sees_only_own_performance(tenant_session, agent_a, agent_a2):
    service = AgentService(tenant_session, COMPANY_A, agent_a)

    own = await service.performance()
    assert own.agent_id == agent_a.id

    with pytest.raises(AuthorizationError):
        await service.performance(agent_a2.id)


@pytest.mark.asyncio
async def test_overview_ranks_by_revenue(tenant_session, admin_a, agent_a, agent_a2):
    await BookingService(tenant_session, COMPANY_A, agent_a).create_booking(_booking_request("100.00"))
    await BookingService(tenant_session, COMPANY_A, agent_a2).create_booking(_booking_request("400.00"))
    await BookingService(tenant_session, COMPANY_A, agent_a2).create_booking(_booking_request("50.00"))

    overview = await AgentService(tenant_session, COMPANY_A, admin_a).performance_overview()

    assert [perf.agent_id for perf in overview.agents] == [agent_a2.id, agent_a.id]
    assert overview.total_bookings == 3
    assert overview.total_revenue == Decimal("550.00")
    assert overview.monthly_bookings == 3
