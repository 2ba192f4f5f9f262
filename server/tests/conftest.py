"""Test configuration and fixtures."""

from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient

from backoffice.core.database import create_engine_for, init_platform_db, session_factory_for
from backoffice.core.exceptions import NotificationError
from backoffice.core.security import Principal, create_access_token, hash_password
from backoffice.core.tenancy import CompanyDirectory, TenantDescriptor, TenantRegistry
from backoffice.models import Company, PlatformUser, User
from backoffice.models.states import UserRole
from backoffice.services.notification_service import EmailMessage
from backoffice.workers.notification_worker import NotificationDispatcher

# Test database URL (in-memory SQLite for speed)
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

COMPANY_A = "507f1f77bcf86cd799439011"
COMPANY_B = "507f191e810c19729de860ea"
INACTIVE_COMPANY = "507f191e810c19729de86999"
UNKNOWN_COMPANY = "0123456789abcdef01234567"

ADMIN_A_ID = "64b000000000000000000a01"
AGENT_A_ID = "64b000000000000000000a02"
AGENT_A2_ID = "64b000000000000000000a03"
ADMIN_B_ID = "64b000000000000000000b01"
SUPER_ADMIN_ID = "64b000000000000000000f01"

ADMIN_PASSWORD = "correct-horse-battery"
SUPER_ADMIN_PASSWORD = "platform-secret-42"

# Hashed once; bcrypt is deliberately slow
_ADMIN_PASSWORD_HASH = hash_password(ADMIN_PASSWORD)
_SUPER_ADMIN_PASSWORD_HASH = hash_password(SUPER_ADMIN_PASSWORD)

ADMIN_EMAIL = "ops@acme.test"


class CountingEngineFactory:
    """Opens an in-memory database per company and records every open."""

    def __init__(self):
        self.opened: list[str] = []
        self.failures_left = 0

    def __call__(self, descriptor: TenantDescriptor):
        self.opened.append(descriptor.tenant_id)
        if self.failures_left:
            self.failures_left -= 1
            raise OSError("storage unreachable")
        return create_engine_for(TEST_DATABASE_URL)


class RecordingTransport:
    """Keeps sent messages in memory; can be switched to fail."""

    def __init__(self):
        self.sent: list[EmailMessage] = []
        self.fail = False

    async def send(self, message: EmailMessage) -> None:
        if self.fail:
            raise NotificationError("email", "relay unavailable")
        self.sent.append(message)


@pytest_asyncio.fixture(scope="function")
async def platform_engine():
    """Create the platform registry engine."""
    engine = create_engine_for(TEST_DATABASE_URL)
    await init_platform_db(engine)

    yield engine

    await engine.dispose()


@pytest.fixture
def platform_sessions(platform_engine):
    return session_factory_for(platform_engine)


@pytest_asyncio.fixture(scope="function")
async def companies(platform_sessions):
    """Register two active companies and one deactivated company."""
    async with platform_sessions() as session:
        session.add_all([
            Company(
                id=COMPANY_A,
                name="Acme Travel",
                slug="acme-travel",
                storage_uri="sqlite+aiosqlite://",
                db_name="company_acme_travel",
            ),
            Company(
                id=COMPANY_B,
                name="Globe Tours",
                slug="globe-tours",
                storage_uri="sqlite+aiosqlite://",
                db_name="company_globe_tours",
            ),
            Company(
                id=INACTIVE_COMPANY,
                name="Closed Agency",
                slug="closed-agency",
                storage_uri="sqlite+aiosqlite://",
                db_name="company_closed_agency",
                is_active=False,
            ),
            PlatformUser(
                id=SUPER_ADMIN_ID,
                name="Root",
                email="root@platform.test",
                password_hash=_SUPER_ADMIN_PASSWORD_HASH,
            ),
        ])
        await session.commit()

    return [COMPANY_A, COMPANY_B]


@pytest.fixture
def engine_factory():
    return CountingEngineFactory()


@pytest_asyncio.fixture(scope="function")
async def registry(platform_sessions, companies, engine_factory):
    """Tenant registry backed by the platform registry and in-memory company databases."""
    tenant_registry = TenantRegistry(CompanyDirectory(platform_sessions), engine_factory=engine_factory)

    yield tenant_registry

    await tenant_registry.close()


@pytest.fixture
def admin_a():
    return Principal(id=ADMIN_A_ID, role=UserRole.ADMIN, tenant_id=COMPANY_A, name="Alice Admin")


@pytest.fixture
def agent_a():
    return Principal(id=AGENT_A_ID, role=UserRole.AGENT, tenant_id=COMPANY_A, name="Bob Agent")


@pytest.fixture
def agent_a2():
    return Principal(id=AGENT_A2_ID, role=UserRole.AGENT, tenant_id=COMPANY_A, name="Carol Agent")


@pytest.fixture
def admin_b():
    return Principal(id=ADMIN_B_ID, role=UserRole.ADMIN, tenant_id=COMPANY_B, name="Dan Admin")


@pytest.fixture
def super_admin():
    return Principal(id=SUPER_ADMIN_ID, role=UserRole.SUPER_ADMIN, name="Root")


@pytest_asyncio.fixture(scope="function")
async def company_users(registry, admin_a, agent_a, agent_a2, admin_b):
    """Seed the users of both companies."""
    seeds = {
        COMPANY_A: [
            User(id=admin_a.id, name=admin_a.name, email="alice@acme.test",
                 password_hash=_ADMIN_PASSWORD_HASH, role=UserRole.ADMIN.value),
            User(id=agent_a.id, name=agent_a.name, email="bob@acme.test",
                 password_hash=_ADMIN_PASSWORD_HASH, role=UserRole.AGENT.value),
            User(id=agent_a2.id, name=agent_a2.name, email="carol@acme.test",
                 password_hash=_ADMIN_PASSWORD_HASH, role=UserRole.AGENT.value),
        ],
        COMPANY_B: [
            User(id=admin_b.id, name=admin_b.name, email="dan@globe.test",
                 password_hash=_ADMIN_PASSWORD_HASH, role=UserRole.ADMIN.value),
        ],
    }

    for company_id, users in seeds.items():
        handle = await registry.resolve(company_id)
        async with handle.session() as session:
            session.add_all(users)
            await session.commit()

    return {
        "admin_a": admin_a,
        "agent_a": agent_a,
        "agent_a2": agent_a2,
        "admin_b": admin_b,
    }


@pytest_asyncio.fixture(scope="function")
async def tenant_session(registry, company_users):
    """A session on company A's database."""
    handle = await registry.resolve(COMPANY_A)
    async with handle.session() as session:
        yield session


@pytest.fixture
def transport():
    return RecordingTransport()


@pytest_asyncio.fixture(scope="function")
async def dispatcher(transport):
    """A running notification dispatcher over the recording transport."""
    notification_dispatcher = NotificationDispatcher(
        transport=transport,
        admin_email=ADMIN_EMAIL,
        timeout_seconds=1.0,
        max_queue_size=100,
    )
    await notification_dispatcher.start()

    yield notification_dispatcher

    if notification_dispatcher.running:
        await notification_dispatcher.stop(drain_timeout=1.0)


@pytest_asyncio.fixture(scope="function")
async def test_app(platform_engine, platform_sessions, registry, dispatcher, company_users):
    """Create a test FastAPI application with its startup state wired by hand."""
    from backoffice.main import create_app

    # ASGITransport does not run the lifespan
    app = create_app()
    app.state.platform_engine = platform_engine
    app.state.platform_sessions = platform_sessions
    app.state.registry = registry
    app.state.dispatcher = dispatcher

    yield app


@pytest_asyncio.fixture(scope="function")
async def test_client(test_app):
    """Create a test HTTP client."""
    transport = ASGITransport(app=test_app)
    async with AsyncClient(transport=transport, base_url="http://test") as client:
        yield client


@pytest.fixture
def headers_for():
    """Build Authorization and company headers for a principal."""

    def _headers(principal: Optional[Principal] = None, company_id: Optional[str] = None) -> dict:
        headers = {}
        if principal is not None:
            headers["Authorization"] = f"Bearer {create_access_token(principal)}"
        company_id = company_id or (principal.tenant_id if principal else None)
        if company_id:
            headers["X-Company-Id"] = company_id
        return headers

    return _headers


@pytest.fixture
def sample_booking_data():
    """Sample booking payload as a client sends it."""
    return {
        "customerName": "Jane Traveller",
        "customerEmail": "Jane@Example.com",
        "contactNumber": "+1 555 0100",
        "passengers": 3,
        "adults": 2,
        "children": 1,
        "package": "Umrah Premium 14 Nights",
        "packagePrice": "2500.00",
        "totalAmount": "7500.00",
        "additionalServices": ["airport-transfer"],
        "paymentMethod": "credit_card",
        "bookingDate": "2026-03-01",
        "departureDate": "2026-04-10",
        "returnDate": "2026-04-24",
        "flight": {"departureCity": "London", "arrivalCity": "Jeddah", "flightClass": "business"},
        "hotel": {"name": "Hilton Makkah", "roomType": "quad", "checkIn": "2026-04-10", "checkOut": "2026-04-24"},
        "payment": {
            "method": "credit_card",
            "cardNumber": "4111 1111 1111 1234",
            "cardholderName": "Jane Traveller",
            "expiryDate": "12/28",
            "cvv": "123",
        },
    }


@pytest.fixture
def sample_inquiry_data():
    """Sample public inquiry payload."""
    return {
        "name": "Sam Customer",
        "email": "sam@example.com",
        "phone": "+44 20 7946 0000",
        "subject": "Family package availability",
        "message": "Do you have family rooms for the April departure?",
        "priority": "high",
    }
