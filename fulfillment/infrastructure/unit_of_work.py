from contextlib import asynccontextmanager
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from fulfillment.domain.exceptions import StoreFailureError
from fulfillment.infrastructure.repositories import (
    SQLAlchemyOrderRepository,
    SQLAlchemyProductRepository
)


class UnitOfWork:
    def __init__(self, session_factory: async_sessionmaker[AsyncSession]):
        self._session_factory = session_factory

    @asynccontextmanager
    async def __call__(self):
        async with self._session_factory() as session:
            try:
                yield _UnitOfWorkImpl(session)
                # Если commit не вызван — rollback
                await session.rollback()
            except SQLAlchemyError as e:
                await session.rollback()
                raise StoreFailureError(f"Ошибка хранилища: {e}") from e
            except Exception:
                await session.rollback()
                raise


class _UnitOfWorkImpl:
    def __init__(self, session: AsyncSession):
        self._session = session
        self.orders = SQLAlchemyOrderRepository(session)
        self.products = SQLAlchemyProductRepository(session)

    async def commit(self):
        await self._session.commit()
