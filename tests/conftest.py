"""Pytest configuration and fixtures."""

from typing import AsyncGenerator

import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from fulfillment.infrastructure.db_schema import metadata
from fulfillment.infrastructure.unit_of_work import UnitOfWork
from tests.fakes import FakeUnitOfWork, InMemoryDatabase, RecordingCacheInvalidator


@pytest.fixture
def db() -> InMemoryDatabase:
    """Empty in-memory stores."""
    return InMemoryDatabase()


@pytest.fixture
def uow(db: InMemoryDatabase) -> FakeUnitOfWork:
    return FakeUnitOfWork(db)


@pytest.fixture
def cache() -> RecordingCacheInvalidator:
    return RecordingCacheInvalidator()


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """SQLite in-memory database with the service schema."""
    engine = create_async_engine("sqlite+aiosqlite://", poolclass=StaticPool)
    async with engine.begin() as conn:
        await conn.run_sync(metadata.create_all)
    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)
    await engine.dispose()


@pytest.fixture
def sql_uow(session_factory) -> UnitOfWork:
    return UnitOfWork(session_factory)
