from typing import Dict

from fulfillment.domain.models import OrderStatus, SchedulerStatus


class GetOrderStatsUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self) -> Dict[str, int]:
        """Количество заказов по каждому статусу плюс TOTAL"""
        async with self._uow() as uow:
            stats = {status.value: await uow.orders.count_by_status(status) for status in OrderStatus}
            stats["TOTAL"] = await uow.orders.count()
        return stats


class GetSchedulerStatusUseCase:
    def __init__(self, unit_of_work, scheduler):
        self._uow = unit_of_work
        self._scheduler = scheduler

    async def __call__(self) -> SchedulerStatus:
        async with self._uow() as uow:
            pending = await uow.orders.count_by_status(OrderStatus.PENDING)
        return SchedulerStatus(
            active=self._scheduler.is_active,
            running=self._scheduler.is_running,
            interval_millis=self._scheduler.interval_ms,
            description=self._scheduler.describe(),
            current_pending_orders=pending,
            skipped_ticks=self._scheduler.skipped_ticks,
            last_run_at=self._scheduler.last_run_at,
            last_summary=self._scheduler.last_summary
        )
