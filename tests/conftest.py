"""
Test configuration and fixtures for Freight Pipeline Analytics
"""

import pytest
from datetime import datetime, timedelta
from httpx import AsyncClient, ASGITransport
from sqlalchemy.ext.asyncio import AsyncSession, create_async_engine, async_sessionmaker

from freightpipe.app.main import app
from freightpipe.app.core.database import Base, get_db
from freightpipe.app.models.deals import Deal
from freightpipe.app.services.deal_store import DealStore, get_deal_store


@pytest.fixture
async def test_engine(tmp_path):
    """Create a file-backed SQLite engine with the deal schema."""
    engine = create_async_engine(
        f"sqlite+aiosqlite:///{tmp_path / 'test.db'}",
        echo=False
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield engine

    await engine.dispose()


@pytest.fixture
def session_factory(test_engine):
    return async_sessionmaker(test_engine, class_=AsyncSession, expire_on_commit=False)


@pytest.fixture
def deal_store(session_factory) -> DealStore:
    return DealStore(session_factory)


@pytest.fixture
def deal_factory():
    """Build transient deals with sensible defaults."""
    def _make_deal(
        deal_id: str,
        stage: str = "prospect",
        value: float = 1000,
        probability: int = 50,
        transportation_mode: str = "ocean",
        sales_rep: str = "Jane Smith",
        created_date: datetime = None,
        days_ago: int = 10,
    ) -> Deal:
        return Deal(
            deal_id=deal_id,
            stage=stage,
            value=value,
            probability=probability,
            transportation_mode=transportation_mode,
            sales_rep=sales_rep,
            created_date=created_date or datetime.utcnow() - timedelta(days=days_ago),
        )

    return _make_deal


@pytest.fixture
def seed_deals(session_factory):
    """Persist deals into the test database."""
    async def _seed(deals):
        async with session_factory() as session:
            session.add_all(deals)
            await session.commit()
        return deals

    return _seed


@pytest.fixture
async def client(session_factory, deal_store):
    """Create an async test client with store and database overrides."""
    async def get_test_db():
        async with session_factory() as session:
            yield session

    app.dependency_overrides[get_db] = get_test_db
    app.dependency_overrides[get_deal_store] = lambda: deal_store

    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://test") as test_client:
        yield test_client

    app.dependency_overrides.clear()


@pytest.fixture
def sample_deal_data():
    """Sample deal payload for ingestion tests."""
    return {
        "deal_id": "DL-2024-0042",
        "stage": "negotiation",
        "value": 48000,
        "probability": 60,
        "transportation_mode": "ocean",
        "sales_rep": "Jane Smith",
        "created_date": "2024-05-14T09:30:00Z"
    }
