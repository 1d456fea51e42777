from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel
from datetime import datetime
from typing import List, Optional

from fulfillment.domain.models import OrderStatus


class OrderItemRequest(BaseModel):
    product_id: int
    quantity: int = Field(gt=0)


class CreateOrderRequest(BaseModel):
    items: List[OrderItemRequest] = Field(min_length=1)


class OrderItemResponse(BaseModel):
    id: int
    product_id: int
    quantity: int


class OrderResponse(BaseModel):
    id: int
    status: OrderStatus
    items: List[OrderItemResponse]
    created_at: datetime
    updated_at: datetime

    @classmethod
    def from_domain(cls, order):
        return cls(
            id=order.id,
            status=order.status,
            items=[
                OrderItemResponse(id=item.id, product_id=item.product_id, quantity=item.quantity)
                for item in order.items
            ],
            created_at=order.created_at,
            updated_at=order.updated_at
        )


class PassSummaryResponse(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    processed_count: int
    cancelled_count: int
    failed_count: int
    skipped_count: int

    @classmethod
    def from_domain(cls, summary):
        return cls(**summary.model_dump())


class SchedulerInfoResponse(BaseModel):
    """Отдается в camelCase, как ждет панель мониторинга"""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    active: bool
    running: bool
    interval_millis: int
    description: str
    current_pending_orders: int
    skipped_ticks: int
    last_run_at: Optional[datetime] = None
    last_summary: Optional[PassSummaryResponse] = None

    @classmethod
    def from_domain(cls, status):
        return cls(**status.model_dump())


class ErrorResponse(BaseModel):
    detail: str
