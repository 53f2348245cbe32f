"""Pytest fixtures shared by the unit and API tests."""
import os

# Settings are read at import time, so they must be in place first
os.environ["JWT_SECRET_KEY"] = "test-secret-key"
os.environ["INTERNAL_API_KEY"] = "test-internal-key"
os.environ["DATABASE_URL"] = "sqlite+aiosqlite:///:memory:"
os.environ["TRACING_ENABLED"] = "false"
os.environ["RATE_LIMIT_ENABLED"] = "false"

from decimal import Decimal

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from main import app
from services.attribute_service.main import attribute_app
from services.identity_service.main import identity_app
from services.identity_service.models import User
from services.inventory_service.main import inventory_app
from services.order_service.main import order_app
from services.product_service.main import product_app
from services.product_service.models import Product
from shared.config.database import Base, get_db
from shared.security import create_access_token, hash_secret

SUB_APPS = (identity_app, attribute_app, product_app, order_app, inventory_app)


@pytest_asyncio.fixture
async def db():
    """In-memory SQLite database, one per test."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    session_factory = async_sessionmaker(engine, expire_on_commit=False)
    async with session_factory() as session:
        yield session
    await engine.dispose()


@pytest_asyncio.fixture
async def client(db):
    """HTTP client against the cluster app, wired to the test session."""
    async def override_get_db():
        yield db

    for sub_app in SUB_APPS:
        sub_app.dependency_overrides[get_db] = override_get_db

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    for sub_app in SUB_APPS:
        sub_app.dependency_overrides.clear()


@pytest_asyncio.fixture
async def admin_user(db):
    user = User(email="admin@eshop.com", name="admin", hashed_password=hash_secret("1q2w3E*"))
    db.add(user)
    await db.commit()
    return user


@pytest.fixture
def auth_headers(admin_user):
    token = create_access_token({"sub": str(admin_user.id), "client_id": "Eshop_Admin", "scope": "Eshop"})
    return {"Authorization": f"Bearer {token}"}


@pytest.fixture
def internal_headers():
    return {"X-Internal-API-Key": "test-internal-key"}


@pytest_asyncio.fixture
async def make_product(db):
    """Factory inserting products straight through the session."""
    counter = {"n": 0}

    async def _make(name="Widget", price="10.00", stock=10, is_active=True):
        counter["n"] += 1
        product = Product(
            name=name,
            code=f"P{counter['n']:03d}",
            sku=f"SKU-{counter['n']:03d}",
            slug=name.lower().replace(" ", "-"),
            sell_price=Decimal(price),
            stock_quantity=stock,
            is_active=is_active,
        )
        db.add(product)
        await db.commit()
        return product

    return _make
