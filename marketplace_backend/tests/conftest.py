"""
Centralized Test Configuration.
"""

import pytest
from httpx import AsyncClient, ASGITransport
from sqlalchemy import event
from sqlalchemy.ext.asyncio import create_async_engine, async_sessionmaker, AsyncSession
from sqlalchemy.pool import StaticPool

from marketplace_backend.app.main import app
from marketplace_backend.app.db.session import get_db, get_session_factory, Base
from marketplace_backend.app.core.redis_client import get_redis
from marketplace_backend.app.core.jwt import create_access_token
from marketplace_backend.app.core.security import get_password_hash
from marketplace_backend.app.domain.finance import ledger_repository
from marketplace_backend.app.models.enums import UserRole
from marketplace_backend.app.models.finance_enums import FinanceType, OrderStatus
from marketplace_backend.app.models.merchant_account import MerchantAccount
from marketplace_backend.app.models.order import Order
from marketplace_backend.app.models.user import User

# Setup In-Memory Test Database
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

TEST_PASSWORD = "secret@123"
# Hashing once keeps bcrypt out of every fixture
TEST_PASSWORD_HASH = get_password_hash(TEST_PASSWORD)


# Mock Redis for reliability in CI/CD
class MockRedis:
    def __init__(self):
        self.store = {}

    async def ping(self):
        return True

    async def get(self, key):
        return self.store.get(key)

    async def set(self, key, value, ex=None):
        self.store[key] = value
        return True

    async def setex(self, key, ttl, value):
        self.store[key] = value
        return True

    async def delete(self, key):
        return 1 if self.store.pop(key, None) is not None else 0

    async def exists(self, key):
        return 1 if key in self.store else 0

    async def flushdb(self):
        self.store = {}


@pytest.fixture
async def engine():
    """Fresh in-memory database per test, created on the test's event loop."""
    test_engine = create_async_engine(
        TEST_DATABASE_URL,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    @event.listens_for(test_engine.sync_engine, "connect")
    def set_sqlite_pragma(dbapi_conn, connection_record):
        """Enable foreign key constraints for SQLite."""
        cursor = dbapi_conn.cursor()
        cursor.execute("PRAGMA foreign_keys=ON")
        cursor.close()

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield test_engine

    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine):
    return async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def mock_redis():
    return MockRedis()


@pytest.fixture(autouse=True)
def apply_overrides(session_factory, mock_redis):
    """Point the app's session, session factory and Redis at the test doubles."""

    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_session_factory] = lambda: session_factory
    app.dependency_overrides[get_redis] = lambda: mock_redis
    yield
    app.dependency_overrides = {}


@pytest.fixture
async def client():
    """Async client for testing."""
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


# Shared session for fixture data creation
@pytest.fixture
async def db_session(session_factory):
    async with session_factory() as session:
        yield session


@pytest.fixture
def make_user(db_session):
    async def _make_user(role: UserRole, username: str, is_active: bool = True) -> User:
        user = User(
            email=f"{username}@test.com",
            username=username,
            hashed_password=TEST_PASSWORD_HASH,
            role=role,
            is_active=is_active,
            is_superuser=role == UserRole.ADMIN,
        )
        db_session.add(user)
        await db_session.commit()
        await db_session.refresh(user)
        return user

    return _make_user


@pytest.fixture
def auth_headers():
    """Bearer headers for a fixture user."""

    def _auth_headers(user: User) -> dict:
        token = create_access_token(data={
            "sub": user.username,
            "user_id": user.id,
            "role": user.role.value,
        })
        return {"Authorization": f"Bearer {token}"}

    return _auth_headers


@pytest.fixture
async def admin(make_user):
    return await make_user(UserRole.ADMIN, "admin")


@pytest.fixture
async def merchant(make_user):
    return await make_user(UserRole.MERCHANT, "merchant")


@pytest.fixture
async def customer(make_user):
    return await make_user(UserRole.CUSTOMER, "johnlennon")


@pytest.fixture
async def merchant_account(db_session, merchant):
    account = MerchantAccount(
        user_id=merchant.id,
        name="Example Merchant",
        bank_name="BCA",
        bank_account_name="Example Merchant",
        bank_account_number="1234567890",
    )
    db_session.add(account)
    await db_session.commit()
    await db_session.refresh(account)
    return account


@pytest.fixture
async def paid_order(db_session, customer, merchant):
    """Order of two products (100000 + 200000), paid by the customer."""
    order = Order(
        invoice_number="test-123",
        customer_id=customer.id,
        merchant_id=merchant.id,
        total_price=300000,
        status=OrderStatus.PAID,
    )
    db_session.add(order)
    await db_session.commit()
    await db_session.refresh(order)
    return order


@pytest.fixture
async def funded_merchant(db_session, merchant, merchant_account):
    """Merchant whose ledger holds a single 300000 incoming-funds entry."""
    await ledger_repository.append_entry(
        db_session,
        owner_id=merchant.id,
        type=FinanceType.DEBIT,
        amount=300000,
        description="Incoming funds from #OrderId-test-123",
        order_reference="test-123",
    )
    await db_session.commit()
    return merchant
