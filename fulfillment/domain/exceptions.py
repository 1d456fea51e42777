from typing import Optional

from fulfillment.domain.models import OrderStatus, RejectionReason


class DomainException(Exception):
    pass


class ReservationRejected(DomainException):
    reason: RejectionReason


class ProductNotFoundError(ReservationRejected):
    reason = RejectionReason.PRODUCT_NOT_FOUND

    def __init__(self, product_id: int):
        self.product_id = product_id
        super().__init__(f"Товар {product_id} не найден")


class InsufficientStockError(ReservationRejected):
    reason = RejectionReason.INSUFFICIENT_STOCK

    def __init__(self, product_id: int, available: int, required: int):
        self.product_id = product_id
        self.available = available
        self.required = required
        super().__init__(
            f"Недостаточно товара {product_id}. Доступно: {available}, требуется: {required}"
        )


class OrderNotFoundError(DomainException):
    pass


class OrderNotPendingError(DomainException):
    def __init__(self, order_id: int, status: Optional[OrderStatus]):
        self.order_id = order_id
        self.status = status
        super().__init__(f"Заказ {order_id} уже не PENDING (status: {status})")


class ConcurrencyConflictError(DomainException):
    pass


class StoreFailureError(DomainException):
    pass
