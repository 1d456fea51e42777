from abc import ABC, abstractmethod
from typing import Optional, List, Sequence
from fulfillment.domain.models import CacheScope, Order, OrderStatus, Product


class OrderRepository(ABC):
    @abstractmethod
    async def get_by_id(self, order_id: int) -> Optional[Order]:
        pass

    @abstractmethod
    async def get_by_status(self, status: OrderStatus) -> List[Order]:
        pass

    @abstractmethod
    async def get_all(self) -> List[Order]:
        pass

    @abstractmethod
    async def create(self, order: Order) -> Order:
        pass

    @abstractmethod
    async def update_status(
        self, order_id: int, status: OrderStatus, expected_status: Optional[OrderStatus] = None
    ) -> None:
        pass

    @abstractmethod
    async def count_by_status(self, status: OrderStatus) -> int:
        pass

    @abstractmethod
    async def count(self) -> int:
        pass


class ProductRepository(ABC):
    @abstractmethod
    async def get_by_id(self, product_id: int) -> Optional[Product]:
        pass

    @abstractmethod
    async def create(self, product: Product) -> Product:
        pass

    @abstractmethod
    async def save(self, product: Product) -> Product:
        """Запись с проверкой версии, при несовпадении ConcurrencyConflictError"""
        pass


class CacheInvalidator(ABC):
    @abstractmethod
    async def invalidate(self, scope: CacheScope, keys: Sequence = ()) -> None:
        """Пустой keys — сбросить все записи scope"""
        pass
