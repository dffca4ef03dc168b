"""Pytest configuration and fixtures."""
import os

# Keep the app off PostgreSQL and the background sweeper off during tests
os.environ.setdefault("DATABASE_URL_OVERRIDE", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("EXPIRATION_ENABLED", "false")

from datetime import datetime, timedelta
from decimal import Decimal
from typing import Optional

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from terra.db.models import User, UserRole, Property, PropertyView
from terra.db.session import create_tables, get_db
from terra.main import app
from terra.services.access import Caller

T0 = datetime(2024, 3, 15, 12, 0, 0)


@pytest_asyncio.fixture
async def engine(tmp_path):
    engine = create_async_engine(f"sqlite+aiosqlite:///{tmp_path / 'terra-test.db'}")
    await create_tables(engine)
    yield engine
    await engine.dispose()


@pytest.fixture
def session_factory(engine) -> async_sessionmaker[AsyncSession]:
    return async_sessionmaker(
        bind=engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False
    )


@pytest_asyncio.fixture
async def test_db(session_factory) -> AsyncSession:
    async with session_factory() as session:
        yield session


@pytest_asyncio.fixture
async def client(session_factory) -> AsyncClient:
    async def override_get_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = override_get_db
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as ac:
        yield ac
    app.dependency_overrides.clear()


def as_caller(user: User) -> Caller:
    return Caller(id=user.id, role=UserRole(user.role))


def auth(user: User) -> dict:
    """Headers the authentication gateway forwards for ``user``."""
    return {"X-User-Id": str(user.id)}


@pytest.fixture
def make_user(test_db: AsyncSession):
    counter = {"n": 0}

    async def _make(role: UserRole = UserRole.SELLER, name: Optional[str] = None, is_active: bool = True) -> User:
        counter["n"] += 1
        user = User(
            name=name or f"{role.value.title()} {counter['n']}",
            email=f"{role.value.lower()}{counter['n']}@example.com",
            role=role.value,
            is_active=is_active
        )
        test_db.add(user)
        await test_db.commit()
        await test_db.refresh(user)
        return user

    return _make


@pytest.fixture
def make_property(test_db: AsyncSession):
    async def _make(
        owner: User,
        title: str = "Test Plot",
        duration_days: int = 30,
        created_at: datetime = T0,
        is_active: bool = True,
        **fields
    ) -> Property:
        prop = Property(
            owner_id=owner.id,
            title=title,
            price_kes=Decimal("2500000"),
            location=fields.pop("location", "Nairobi"),
            images=fields.pop("images", []),
            amenities=fields.pop("amenities", []),
            duration_days=duration_days,
            expires_at=fields.pop("expires_at", created_at + timedelta(days=duration_days)),
            created_at=created_at,
            is_active=is_active,
            **fields
        )
        test_db.add(prop)
        await test_db.commit()
        await test_db.refresh(prop)
        return prop

    return _make


@pytest.fixture
def make_view(test_db: AsyncSession):
    async def _make(prop: Property, at: datetime = T0, visitor_id: Optional[str] = None) -> PropertyView:
        view = PropertyView(property_id=prop.id, visitor_id=visitor_id, created_at=at)
        test_db.add(view)
        await test_db.commit()
        return view

    return _make


@pytest_asyncio.fixture
async def seller(make_user) -> User:
    return await make_user(UserRole.SELLER, name="Sarah Seller")


@pytest_asyncio.fixture
async def other_seller(make_user) -> User:
    return await make_user(UserRole.AGENT, name="Alex Agent")


@pytest_asyncio.fixture
async def admin(make_user) -> User:
    return await make_user(UserRole.ADMIN, name="Admin User")


@pytest_asyncio.fixture
async def buyer(make_user) -> User:
    return await make_user(UserRole.BUYER, name="Ben Buyer")
