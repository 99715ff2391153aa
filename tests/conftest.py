"""
Pytest configuration and fixtures.

WHY: Fixtures provide reusable test setup/teardown logic, reducing
duplication and ensuring consistent test environments.
"""

import pytest
import pytest_asyncio
from typing import AsyncGenerator
from sqlalchemy import event
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker
from httpx import AsyncClient, ASGITransport

from offercraft.main import app
from offercraft.models.base import Base
from offercraft.db.session import get_db
from offercraft.core.auth import create_access_token
from offercraft.core.context import TenantContext
from offercraft.models.user import UserRole
from offercraft.services import email as email_module
from offercraft.services.email import EmailService, MockEmailProvider

from tests.factories import ClientFactory, TenantFactory, UserFactory


# Test database URL
# WHY: Using SQLite for tests eliminates external database dependencies
# and makes tests faster. For integration tests, use PostgreSQL.
TEST_ASYNC_DATABASE_URL = "sqlite+aiosqlite:///:memory:"


@pytest_asyncio.fixture(scope="function")
async def db_engine():
    """
    Create a test database engine.

    WHY: Function scope ensures each test gets a fresh database state,
    preventing test pollution and ensuring test isolation.
    """
    engine = create_async_engine(TEST_ASYNC_DATABASE_URL, echo=False)

    # pysqlite's implicit transaction handling breaks SAVEPOINT; emit BEGIN
    # ourselves so begin_nested() works as it does on PostgreSQL
    @event.listens_for(engine.sync_engine, "connect")
    def _disable_implicit_begin(dbapi_connection, connection_record):
        dbapi_connection.isolation_level = None

    @event.listens_for(engine.sync_engine, "begin")
    def _emit_begin(conn):
        conn.exec_driver_sql("BEGIN")

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)

    await engine.dispose()


@pytest_asyncio.fixture
async def db_session(db_engine) -> AsyncGenerator[AsyncSession, None]:
    """
    Create a test database session.

    WHY: Mirrors AsyncSessionLocal (no expiry on commit, no autoflush) and
    rolls back at the end so nothing leaks between tests.

    Yields:
        AsyncSession: Database session for the test
    """
    async_session = async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )

    async with async_session() as session:
        yield session
        await session.rollback()


@pytest.fixture(autouse=True)
def mock_email():
    """
    Route every notification to the mock provider.

    WHY: Tests must never call Resend; the mock records what would have
    been sent so tests can assert on it.
    """
    MockEmailProvider.clear_sent_emails()
    email_module._email_service = EmailService(provider=MockEmailProvider())
    yield MockEmailProvider
    MockEmailProvider.clear_sent_emails()
    email_module._email_service = None


@pytest_asyncio.fixture
async def client(db_session: AsyncSession) -> AsyncGenerator[AsyncClient, None]:
    """
    Create a test HTTP client.

    WHY: AsyncClient allows testing FastAPI endpoints without running
    a real server, making tests faster and more reliable.

    Yields:
        AsyncClient: HTTP client for making test requests
    """

    async def override_get_db():
        """Override database dependency with test session."""
        yield db_session

    app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac

    app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def test_tenant(db_session: AsyncSession):
    """
    Create a test tenant.

    WHY: Every offer, client and version belongs to a tenant.
    """
    return await TenantFactory.create(db_session, name="Acme Consulting")


@pytest_asyncio.fixture
async def other_tenant(db_session: AsyncSession):
    """Second tenant for cross-tenant isolation tests."""
    return await TenantFactory.create(db_session, name="Other Corp")


@pytest_asyncio.fixture
async def test_user(db_session: AsyncSession, test_tenant):
    """Create a member of test_tenant."""
    return await UserFactory.create(db_session, tenant=test_tenant, email="member@acme.example.com")


@pytest_asyncio.fixture
async def other_user(db_session: AsyncSession, other_tenant):
    """Create a member of other_tenant."""
    return await UserFactory.create(db_session, tenant=other_tenant, email="member@other.example.com")


@pytest_asyncio.fixture
async def test_customer(db_session: AsyncSession, test_tenant):
    """
    Create a client of test_tenant.

    Named test_customer so it doesn't shadow the HTTP `client` fixture.
    """
    return await ClientFactory.create(
        db_session,
        tenant=test_tenant,
        company_name="Globex GmbH",
        email="buyer@globex.example.com",
    )


@pytest.fixture
def ctx(test_tenant, test_user) -> TenantContext:
    """Caller context for test_user in test_tenant."""
    return TenantContext(user_id=test_user.id, tenant_id=test_tenant.id, role=UserRole.MEMBER)


@pytest.fixture
def other_ctx(other_tenant, other_user) -> TenantContext:
    """Caller context for a user of a different tenant."""
    return TenantContext(user_id=other_user.id, tenant_id=other_tenant.id, role=UserRole.MEMBER)


@pytest.fixture
def auth_headers(ctx: TenantContext) -> dict:
    """
    Bearer headers for test_user.

    WHY: Tokens are issued by the auth service in production; tests mint
    them with the same secret.
    """
    token = create_access_token(
        {"user_id": ctx.user_id, "tenant_id": ctx.tenant_id, "role": ctx.role.value}
    )
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def other_auth_headers(other_ctx: TenantContext) -> dict:
    """Bearer headers for other_user."""
    token = create_access_token(
        {"user_id": other_ctx.user_id, "tenant_id": other_ctx.tenant_id, "role": other_ctx.role.value}
    )
    return {"Authorization": f"Bearer {token}"}
