import logging
from typing import List, Tuple

from fulfillment.domain.models import OrderStatus, Order, Product, ReservationResult
from fulfillment.domain.exceptions import (
    ConcurrencyConflictError,
    InsufficientStockError,
    OrderNotFoundError,
    OrderNotPendingError,
    ProductNotFoundError,
    ReservationRejected,
    StoreFailureError,
)

logger = logging.getLogger(__name__)


class ReserveStockUseCase:
    """Резервирование склада под один заказ: всё или ничего.

    Каждая попытка идет в отдельной транзакции: заказ перечитывается,
    все позиции проверяются до первой записи, затем остатки списываются
    с проверкой версии товара. Конфликт версий повторяет попытку целиком.
    """

    def __init__(self, unit_of_work, max_attempts: int = 3):
        self._uow = unit_of_work
        self._max_attempts = max_attempts

    async def __call__(self, order_id: int) -> ReservationResult:
        for attempt in range(1, self._max_attempts + 1):
            try:
                return await self._reserve(order_id)
            except ConcurrencyConflictError as e:
                logger.warning(
                    f"Конфликт при резервировании заказа {order_id} "
                    f"(попытка {attempt}/{self._max_attempts}): {e}"
                )

        raise StoreFailureError(
            f"Заказ {order_id} не зарезервирован после {self._max_attempts} попыток"
        )

    async def _reserve(self, order_id: int) -> ReservationResult:
        async with self._uow() as uow:
            order = await uow.orders.get_by_id(order_id)
            if not order:
                raise OrderNotFoundError(f"Заказ {order_id} не найден")
            if not order.is_pending():
                raise OrderNotPendingError(order.id, order.status)

            # 1. Проверка всех позиций, ничего не пишем
            try:
                reservations = await self._validate(uow, order)
            except ReservationRejected as e:
                await uow.orders.update_status(
                    order.id, OrderStatus.CANCELLED, expected_status=OrderStatus.PENDING
                )
                await uow.commit()
                logger.warning(f"Заказ {order.id} отмечен CANCELLED: {e}")
                return ReservationResult.rejected(order.id, e.reason)

            # 2. Списание остатков
            for product, quantity in reservations:
                updated = product.model_copy(
                    update={"stock_quantity": product.stock_quantity - quantity}
                )
                await uow.products.save(updated)
                logger.debug(
                    f"Зарезервировано {quantity} шт. товара {product.id}, "
                    f"остаток {updated.stock_quantity}"
                )

            # 3. Статус заказа
            await uow.orders.update_status(
                order.id, OrderStatus.PROCESSING, expected_status=OrderStatus.PENDING
            )
            await uow.commit()

        logger.info(f"Заказ {order.id} отмечен PROCESSING, склад зарезервирован")
        return ReservationResult.accepted(order.id, [product.id for product, _ in reservations])

    async def _validate(self, uow, order: Order) -> List[Tuple[Product, int]]:
        reservations = []
        for product_id, quantity in order.required_quantities().items():
            product = await uow.products.get_by_id(product_id)
            if not product:
                raise ProductNotFoundError(product_id)
            if not product.has_stock(quantity):
                raise InsufficientStockError(product_id, product.stock_quantity, quantity)
            reservations.append((product, quantity))
        return reservations
