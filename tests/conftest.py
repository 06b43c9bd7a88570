"""Pytest fixtures for livestock ops tests."""

from __future__ import annotations

from collections.abc import AsyncGenerator
from datetime import date
from decimal import Decimal

import pytest
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from livestock_ops.models import (
    Base,
    Batch,
    Farm,
    FarmGeofence,
    FarmMembership,
    User,
    WorkerProfile,
)
from livestock_ops.security import hash_password

# In-memory SQLite shared by every session of a test through one connection
TEST_DATABASE_URL = "sqlite+aiosqlite:///:memory:"

PASSWORD = "correct-horse-battery"


@pytest.fixture
async def engine():
    """Create a fresh test database engine per test."""
    engine = create_async_engine(
        TEST_DATABASE_URL,
        echo=False,
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def session(session_factory) -> AsyncGenerator[AsyncSession, None]:
    """Create a database session for each test."""
    async with session_factory() as session:
        yield session
        await session.rollback()


async def make_user(
    session: AsyncSession,
    email: str,
    name: str,
    role: str = "user",
) -> User:
    user = User(email=email, name=name, password_hash=hash_password(PASSWORD), role=role)
    session.add(user)
    await session.flush()
    return user


@pytest.fixture
async def admin_user(session: AsyncSession) -> User:
    user = await make_user(session, "admin@farm.test", "Ada Admin", role="admin")
    await session.commit()
    return user


@pytest.fixture
async def owner_user(session: AsyncSession) -> User:
    user = await make_user(session, "owner@farm.test", "Olu Owner")
    await session.commit()
    return user


@pytest.fixture
async def worker_user(session: AsyncSession) -> User:
    user = await make_user(session, "worker@farm.test", "Wanjiru Worker")
    await session.commit()
    return user


@pytest.fixture
async def outsider_user(session: AsyncSession) -> User:
    user = await make_user(session, "outsider@farm.test", "Oscar Outsider")
    await session.commit()
    return user


@pytest.fixture
async def farm(session: AsyncSession, owner_user: User) -> Farm:
    """A farm owned by ``owner_user``."""
    farm = Farm(name="Green Acres", location="Nakuru", farm_type="poultry")
    session.add(farm)
    await session.flush()
    session.add(FarmMembership(user_id=owner_user.user_id, farm_id=farm.farm_id, role="owner"))
    await session.commit()
    return farm


@pytest.fixture
async def worker_profile(session: AsyncSession, farm: Farm, worker_user: User) -> WorkerProfile:
    """An active hourly worker on ``farm``."""
    profile = WorkerProfile(
        user_id=worker_user.user_id,
        farm_id=farm.farm_id,
        phone="+254700000001",
        employment_status="active",
        employment_start_date=date(2024, 1, 1),
        wage_rate_amount=Decimal("10.00"),
        wage_rate_type="hourly",
        permissions=["egg:log", "task:complete"],
        structure_ids=[],
    )
    session.add(profile)
    session.add(FarmMembership(user_id=worker_user.user_id, farm_id=farm.farm_id, role="worker"))
    await session.commit()
    return profile


@pytest.fixture
async def geofence(session: AsyncSession, farm: Farm) -> FarmGeofence:
    """A 100 m circle at (0, 0) with 50 m tolerance."""
    geofence = FarmGeofence(
        farm_id=farm.farm_id,
        geofence_type="circle",
        center_lat=0.0,
        center_lng=0.0,
        radius_meters=100.0,
        tolerance_meters=50.0,
    )
    session.add(geofence)
    await session.commit()
    return geofence


@pytest.fixture
async def layer_batch(session: AsyncSession, farm: Farm) -> Batch:
    batch = Batch(
        farm_id=farm.farm_id,
        livestock_type="poultry",
        species="layer",
        initial_quantity=500,
        current_quantity=480,
        acquisition_date=date(2024, 1, 1),
        status="active",
    )
    session.add(batch)
    await session.commit()
    return batch
