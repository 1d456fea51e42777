import asyncio
import logging

from fulfillment.domain.models import CacheScope, Order, OrderStatus, PassSummary, ReservationResult
from fulfillment.domain.exceptions import OrderNotPendingError
from fulfillment.application.interfaces import CacheInvalidator

logger = logging.getLogger(__name__)


class RunFulfillmentPassUseCase:
    def __init__(
        self,
        unit_of_work,
        reserve_stock,
        cache_invalidator: CacheInvalidator,
        concurrency: int = 1
    ):
        self._uow = unit_of_work
        self._reserve_stock = reserve_stock
        self._cache = cache_invalidator
        self._concurrency = concurrency

    async def __call__(self) -> PassSummary:
        """Один проход по PENDING заказам. Ошибка заказа не прерывает проход."""
        summary = PassSummary()

        async with self._uow() as uow:
            pending = await uow.orders.get_by_status(OrderStatus.PENDING)

        if not pending:
            logger.info("Нет PENDING заказов для обработки")
            return summary

        logger.info(f"Найдено {len(pending)} PENDING заказов")

        if self._concurrency <= 1:
            for order in pending:
                await self._process(order, summary)
        else:
            semaphore = asyncio.Semaphore(self._concurrency)

            async def guarded(order: Order):
                async with semaphore:
                    await self._process(order, summary)

            await asyncio.gather(*(guarded(order) for order in pending))

        logger.info(
            f"Проход завершен: {summary.processed_count} processed, "
            f"{summary.cancelled_count} cancelled ({summary.failed_count} с ошибкой), "
            f"{summary.skipped_count} пропущено"
        )
        return summary

    async def _process(self, order: Order, summary: PassSummary) -> None:
        try:
            result = await self._reserve_stock(order.id)
        except OrderNotPendingError as e:
            logger.info(f"Заказ {order.id} пропущен: {e}")
            summary.skipped_count += 1
            return
        except Exception as e:
            logger.error(f"Ошибка обработки заказа {order.id}: {e}", exc_info=True)
            summary.cancelled_count += 1
            summary.failed_count += 1
            return

        if result.reserved:
            summary.processed_count += 1
        else:
            summary.cancelled_count += 1

        await self._invalidate(result)

    async def _invalidate(self, result: ReservationResult) -> None:
        try:
            await self._cache.invalidate(CacheScope.ORDER_BY_ID, [result.order_id])
            await self._cache.invalidate(CacheScope.ORDERS)
            await self._cache.invalidate(
                CacheScope.ORDERS_BY_STATUS, [OrderStatus.PENDING.value, result.status.value]
            )
            if result.product_ids:
                await self._cache.invalidate(CacheScope.PRODUCT_BY_ID, result.product_ids)
                await self._cache.invalidate(CacheScope.PRODUCTS)
        except Exception as e:
            # Данные уже закоммичены, кэш истечет по TTL
            logger.warning(f"Не удалось сбросить кэш для заказа {result.order_id}: {e}")
