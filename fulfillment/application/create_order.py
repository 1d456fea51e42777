import logging
from pydantic import BaseModel, Field
from datetime import datetime, timezone

from fulfillment.domain.models import CacheScope, Order, OrderItem, OrderStatus
from fulfillment.domain.exceptions import ProductNotFoundError, InsufficientStockError
from fulfillment.application.interfaces import CacheInvalidator


logger = logging.getLogger(__name__)


class CreateOrderItemDTO(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class CreateOrderDTO(BaseModel):
    items: list[CreateOrderItemDTO] = Field(min_length=1)


class CreateOrderUseCase:
    def __init__(self, unit_of_work, cache_invalidator: CacheInvalidator):
        self._uow = unit_of_work
        self._cache = cache_invalidator

    async def __call__(self, order_data: CreateOrderDTO) -> Order:
        logger.info(f"Создание заказа из {len(order_data.items)} позиций")

        async with self._uow() as uow:
            # Проверка каталога, склад здесь не списывается
            for item in order_data.items:
                product = await uow.products.get_by_id(item.product_id)
                if not product:
                    raise ProductNotFoundError(item.product_id)
                if not product.has_stock(item.quantity):
                    raise InsufficientStockError(product.id, product.stock_quantity, item.quantity)

            now = datetime.now(timezone.utc)
            order = Order(
                status=OrderStatus.PENDING,
                items=[
                    OrderItem(product_id=item.product_id, quantity=item.quantity)
                    for item in order_data.items
                ],
                created_at=now,
                updated_at=now
            )
            order = await uow.orders.create(order)
            await uow.commit()
        logger.info(f"Заказ создан: {order.id}")

        try:
            await self._cache.invalidate(CacheScope.ORDERS)
            await self._cache.invalidate(CacheScope.ORDERS_BY_STATUS, [OrderStatus.PENDING.value])
        except Exception as e:
            logger.warning(f"Не удалось сбросить кэш заказов: {e}")

        return order
