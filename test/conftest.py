"""
Pytest configuration and fixtures for tracker tests

Each test gets its own file-backed SQLite database so that separate
sessions (and concurrent transactions) see each other's commits.
"""

import os

# Must be set before tracker.config is imported
os.environ.setdefault("BCRYPT_ROUNDS", "4")
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("SECRET_KEY", "test-secret-key")

from collections.abc import AsyncGenerator  # noqa: E402

import pytest  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402
from sqlalchemy import func, select  # noqa: E402
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker  # noqa: E402

import tracker.database as database_module  # noqa: E402
import tracker.models  # noqa: E402, F401
from tracker.auth import create_access_token, hash_password  # noqa: E402
from tracker.constants.plans import SubscriptionPlan, limits_for  # noqa: E402
from tracker.constants.roles import UserRole  # noqa: E402
from tracker.core.authorization import ActorContext  # noqa: E402
from tracker.database import Base, build_engine  # noqa: E402
from tracker.models.audit_log import AuditLog  # noqa: E402
from tracker.models.tenant import Tenant, TenantStatus  # noqa: E402
from tracker.models.user import User  # noqa: E402

PASSWORD = "correct-horse"


@pytest.fixture
async def engine(tmp_path):
    test_engine = build_engine(f"sqlite+aiosqlite:///{tmp_path / 'tracker_test.db'}")
    async with test_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield test_engine
    await test_engine.dispose()


@pytest.fixture
def session_factory(engine, monkeypatch):
    """Session maker bound to the test database, also patched into the app."""
    factory = async_sessionmaker(engine, class_=AsyncSession, autoflush=False, expire_on_commit=False)
    monkeypatch.setattr(database_module, "AsyncSessionLocal", factory)
    return factory


@pytest.fixture
async def db(session_factory) -> AsyncGenerator[AsyncSession, None]:
    async with session_factory() as session:
        yield session


async def make_tenant(
    db: AsyncSession,
    subdomain: str,
    plan: SubscriptionPlan = SubscriptionPlan.FREE,
    status: TenantStatus = TenantStatus.active,
) -> Tenant:
    tenant = Tenant(
        name=subdomain.capitalize(),
        subdomain=subdomain,
        status=status,
        subscription_plan=plan,
        **limits_for(plan),
    )
    db.add(tenant)
    await db.commit()
    return tenant


async def make_user(
    db: AsyncSession,
    tenant: Tenant | None,
    email: str,
    role: UserRole = UserRole.USER,
    is_active: bool = True,
) -> User:
    user = User(
        tenant_id=tenant.id if tenant is not None else None,
        email=email,
        credential_hash=hash_password(PASSWORD),
        full_name=email.split("@")[0].title(),
        role=role,
        is_active=is_active,
    )
    db.add(user)
    await db.commit()
    return user


def actor_for(user: User) -> ActorContext:
    return ActorContext(user_id=user.id, tenant_id=user.tenant_id, role=user.role)


async def audit_count(db: AsyncSession, **filters) -> int:
    query = select(func.count()).select_from(AuditLog)
    for field, value in filters.items():
        query = query.where(getattr(AuditLog, field) == value)
    result = await db.execute(query)
    return result.scalar_one()


# Seed rows are written through their own sessions so they stay detached and
# readable after a test's session rolls back.


@pytest.fixture
async def tenant(session_factory) -> Tenant:
    async with session_factory() as session:
        return await make_tenant(session, "acme")


@pytest.fixture
async def other_tenant(session_factory) -> Tenant:
    async with session_factory() as session:
        return await make_tenant(session, "globex")


@pytest.fixture
async def admin(session_factory, tenant) -> User:
    async with session_factory() as session:
        return await make_user(session, tenant, "admin@acme.com", UserRole.TENANT_ADMIN)


@pytest.fixture
async def member(session_factory, tenant) -> User:
    async with session_factory() as session:
        return await make_user(session, tenant, "member@acme.com", UserRole.USER)


@pytest.fixture
async def other_admin(session_factory, other_tenant) -> User:
    async with session_factory() as session:
        return await make_user(session, other_tenant, "admin@globex.com", UserRole.TENANT_ADMIN)


@pytest.fixture
async def super_admin(session_factory) -> User:
    async with session_factory() as session:
        return await make_user(session, None, "root@tracker.com", UserRole.SUPER_ADMIN)


@pytest.fixture
def admin_actor(admin) -> ActorContext:
    return actor_for(admin)


@pytest.fixture
def member_actor(member) -> ActorContext:
    return actor_for(member)


@pytest.fixture
def other_admin_actor(other_admin) -> ActorContext:
    return actor_for(other_admin)


@pytest.fixture
def super_actor(super_admin) -> ActorContext:
    return actor_for(super_admin)


@pytest.fixture
async def client(session_factory) -> AsyncGenerator[AsyncClient, None]:
    from main import app

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac


def auth_headers(user: User) -> dict[str, str]:
    return {"Authorization": f"Bearer {create_access_token(user)}"}
