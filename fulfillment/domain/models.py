from datetime import datetime
from decimal import Decimal
from enum import Enum
from typing import Optional
from pydantic import BaseModel, Field


class OrderStatus(str, Enum):
    PENDING = "PENDING"
    PROCESSING = "PROCESSING"
    CONFIRMED = "CONFIRMED"
    SHIPPED = "SHIPPED"
    DELIVERED = "DELIVERED"
    COMPLETED = "COMPLETED"
    CANCELLED = "CANCELLED"


class RejectionReason(str, Enum):
    PRODUCT_NOT_FOUND = "ProductNotFound"
    INSUFFICIENT_STOCK = "InsufficientStock"


class CacheScope(str, Enum):
    ORDERS = "orders"
    ORDER_BY_ID = "order"
    ORDERS_BY_STATUS = "ordersByStatus"
    PRODUCTS = "products"
    PRODUCT_BY_ID = "product"


class Product(BaseModel):
    """Domain Entity — товар на складе"""
    id: Optional[int] = None
    name: str
    price: Decimal = Field(ge=0)
    stock_quantity: int = Field(ge=0)
    version: int = 1

    def has_stock(self, quantity: int) -> bool:
        return self.stock_quantity >= quantity


class OrderItem(BaseModel):
    """Value Object — позиция заказа, product_id только ключ для поиска товара"""
    id: Optional[int] = None
    product_id: int
    quantity: int = Field(gt=0)


class Order(BaseModel):
    """Domain Entity — заказ"""
    id: Optional[int] = None
    status: OrderStatus = OrderStatus.PENDING
    items: list[OrderItem] = Field(default_factory=list)
    created_at: datetime
    updated_at: datetime

    def is_pending(self) -> bool:
        """Бизнес-правило: резервировать можно только PENDING заказ"""
        return self.status == OrderStatus.PENDING

    def required_quantities(self) -> dict[int, int]:
        """Суммарное количество по каждому товару, в порядке первого появления"""
        required: dict[int, int] = {}
        for item in self.items:
            required[item.product_id] = required.get(item.product_id, 0) + item.quantity
        return required


class ReservationResult(BaseModel):
    order_id: int
    status: OrderStatus
    reason: Optional[RejectionReason] = None
    product_ids: list[int] = Field(default_factory=list)

    @property
    def reserved(self) -> bool:
        return self.status == OrderStatus.PROCESSING

    @classmethod
    def accepted(cls, order_id: int, product_ids: list[int]) -> "ReservationResult":
        return cls(order_id=order_id, status=OrderStatus.PROCESSING, product_ids=product_ids)

    @classmethod
    def rejected(cls, order_id: int, reason: RejectionReason) -> "ReservationResult":
        return cls(order_id=order_id, status=OrderStatus.CANCELLED, reason=reason)


class PassSummary(BaseModel):
    processed_count: int = 0
    cancelled_count: int = 0
    failed_count: int = 0
    skipped_count: int = 0

    @property
    def total(self) -> int:
        return self.processed_count + self.cancelled_count + self.skipped_count


class SchedulerStatus(BaseModel):
    active: bool
    running: bool
    interval_millis: int
    description: str
    current_pending_orders: int
    skipped_ticks: int = 0
    last_run_at: Optional[datetime] = None
    last_summary: Optional[PassSummary] = None
