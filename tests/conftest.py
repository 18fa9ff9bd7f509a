"""
Stockroom — Test Configuration (conftest.py)
==============================================

What:  Shared pytest fixtures for the entire test suite.
How:   pytest auto-discovers conftest.py and makes fixtures available to all tests.

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── mock_db_session: Mock database session (no real DB needed)
    ├── db_tables:       Real tables in a throwaway SQLite file
    ├── inventory_client / web_client / orders_client / users_client:
    │                    HTTPX AsyncClient bound to one service's app
    └── fake_producer:   Stand-in for the Event Hubs producer
"""

import os
import tempfile
from unittest.mock import AsyncMock, MagicMock

# Override settings for testing BEFORE any stockroom imports
# Why: settings and the engine are built at import time
_db_dir = tempfile.mkdtemp(prefix="stockroom_test_")
os.environ["DATABASE_URL"] = f"sqlite+aiosqlite:///{_db_dir}/test.db"
os.environ["SERVICE"] = "inventory"
os.environ["ENVIRONMENT"] = "development"
os.environ["EVENTHUB_CONNECTION_STRING"] = ""
os.environ["LOG_LEVEL"] = "WARNING"  # Reduce noise during tests

import pytest  # noqa: E402
import pytest_asyncio  # noqa: E402
from httpx import ASGITransport, AsyncClient  # noqa: E402

from stockroom.database import Base, engine  # noqa: E402
from stockroom.main import create_app  # noqa: E402

# Register the model on Base.metadata
from stockroom.models.inventory_item import InventoryItem  # noqa: E402,F401


@pytest.fixture
def mock_db_session():
    """
    Provides a mock async database session.

    Usage:
        async def test_list(mock_db_session):
            mock_db_session.execute.return_value.scalars.return_value.all.return_value = [item]
            result = await inventory_service.list_items(mock_db_session)
    """
    session = AsyncMock()
    session.execute = AsyncMock()
    session.flush = AsyncMock()
    session.commit = AsyncMock()
    session.rollback = AsyncMock()
    session.close = AsyncMock()
    session.add = MagicMock()
    return session


@pytest_asyncio.fixture
async def db_tables():
    """
    Creates the schema in the test database and drops it afterwards.

    The engine is disposed in the same event loop that used it, so no pooled
    connection outlives the test.
    """
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    yield
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)
    await engine.dispose()


async def _client_for(app):
    transport = ASGITransport(app=app)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest_asyncio.fixture
async def inventory_client(db_tables):
    """JSON inventory API backed by real tables. The lifespan is not run."""
    async with await _client_for(create_app("inventory")) as client:
        yield client


@pytest_asyncio.fixture
async def web_client(db_tables):
    async with await _client_for(create_app("web")) as client:
        yield client


@pytest.fixture
def fake_producer():
    """
    Minimal Event Hubs producer: create_batch returns a batch whose add()
    accepts the event unless a test says otherwise.
    """
    batch = MagicMock()
    batch.add = MagicMock()
    producer = MagicMock()
    producer.create_batch = AsyncMock(return_value=batch)
    producer.send_batch = AsyncMock()
    producer.close = AsyncMock()
    producer.batch = batch
    return producer


@pytest_asyncio.fixture
async def orders_client(fake_producer):
    from stockroom.routes.orders import get_order_publisher
    from stockroom.services.order_publisher import OrderEventPublisher

    app = create_app("orders")
    app.dependency_overrides[get_order_publisher] = lambda: OrderEventPublisher(fake_producer)
    async with await _client_for(app) as client:
        yield client
