from typing import List, Optional

from fulfillment.domain.models import Order, OrderStatus


class ListOrdersUseCase:
    def __init__(self, unit_of_work):
        self._uow = unit_of_work

    async def __call__(self, status: Optional[OrderStatus] = None) -> List[Order]:
        """Все заказы или только заказы в статусе status, старые первыми"""
        async with self._uow() as uow:
            if status is None:
                return await uow.orders.get_all()
            return await uow.orders.get_by_status(status)
