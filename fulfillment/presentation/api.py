from typing import Dict, List

from fastapi import APIRouter, Depends, HTTPException, Request, status

from fulfillment.database import AsyncSessionLocal
from fulfillment.presentation.schemas import (
    CreateOrderRequest, OrderResponse, SchedulerInfoResponse, PassSummaryResponse, ErrorResponse
)
from fulfillment.presentation.scheduler import FulfillmentScheduler
from fulfillment.application.create_order import CreateOrderUseCase, CreateOrderDTO, CreateOrderItemDTO
from fulfillment.application.get_order import GetOrderUseCase
from fulfillment.application.list_orders import ListOrdersUseCase
from fulfillment.application.get_stats import GetOrderStatsUseCase, GetSchedulerStatusUseCase
from fulfillment.domain.models import OrderStatus
from fulfillment.domain.exceptions import (
    ProductNotFoundError, InsufficientStockError, OrderNotFoundError
)
from fulfillment.infrastructure.unit_of_work import UnitOfWork

router = APIRouter()


def get_unit_of_work():
    return UnitOfWork(AsyncSessionLocal)


def get_cache_invalidator(request: Request):
    return request.app.state.cache_invalidator


def get_scheduler(request: Request) -> FulfillmentScheduler:
    return request.app.state.scheduler


# Фабрики для создания use cases
def get_create_order_use_case(
    uow=Depends(get_unit_of_work),
    cache=Depends(get_cache_invalidator)
):
    return CreateOrderUseCase(uow, cache)


def get_get_order_use_case(uow=Depends(get_unit_of_work)):
    return GetOrderUseCase(uow)


def get_list_orders_use_case(uow=Depends(get_unit_of_work)):
    return ListOrdersUseCase(uow)


def get_order_stats_use_case(uow=Depends(get_unit_of_work)):
    return GetOrderStatsUseCase(uow)


def get_scheduler_status_use_case(
    uow=Depends(get_unit_of_work),
    scheduler: FulfillmentScheduler = Depends(get_scheduler)
):
    return GetSchedulerStatusUseCase(uow, scheduler)


@router.post(
    "/orders",
    response_model=OrderResponse,
    responses={400: {"model": ErrorResponse}},
    status_code=status.HTTP_201_CREATED
)
async def create_order(
    request: CreateOrderRequest,
    use_case: CreateOrderUseCase = Depends(get_create_order_use_case)
):
    """Создать новый заказ в статусе PENDING"""
    try:
        dto = CreateOrderDTO(
            items=[
                CreateOrderItemDTO(product_id=item.product_id, quantity=item.quantity)
                for item in request.items
            ]
        )
        order = await use_case(dto)
        return OrderResponse.from_domain(order)

    except (ProductNotFoundError, InsufficientStockError) as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.get("/orders", response_model=List[OrderResponse])
async def list_orders(use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)):
    """Все заказы"""
    orders = await use_case()
    return [OrderResponse.from_domain(order) for order in orders]


@router.get("/orders/status/{order_status}", response_model=List[OrderResponse])
async def list_orders_by_status(
    order_status: OrderStatus,
    use_case: ListOrdersUseCase = Depends(get_list_orders_use_case)
):
    """Заказы в указанном статусе"""
    orders = await use_case(order_status)
    return [OrderResponse.from_domain(order) for order in orders]


@router.get(
    "/orders/{order_id}",
    response_model=OrderResponse,
    responses={404: {"model": ErrorResponse}}
)
async def get_order(
    order_id: int,
    use_case: GetOrderUseCase = Depends(get_get_order_use_case)
):
    """Получить заказ по ID"""
    try:
        order = await use_case(order_id)
        return OrderResponse.from_domain(order)
    except OrderNotFoundError:
        raise HTTPException(status_code=404, detail="Заказ не найден")


@router.get("/scheduler/info", response_model=SchedulerInfoResponse)
async def scheduler_info(
    use_case: GetSchedulerStatusUseCase = Depends(get_scheduler_status_use_case)
):
    """Состояние планировщика для мониторинга"""
    return SchedulerInfoResponse.from_domain(await use_case())


@router.get("/scheduler/stats", response_model=Dict[str, int])
async def order_stats(use_case: GetOrderStatsUseCase = Depends(get_order_stats_use_case)):
    """Количество заказов по статусам"""
    return await use_case()


@router.post(
    "/scheduler/run",
    response_model=PassSummaryResponse,
    responses={409: {"model": ErrorResponse}, 500: {"model": ErrorResponse}}
)
async def run_pass(scheduler: FulfillmentScheduler = Depends(get_scheduler)):
    """Запустить проход вне расписания"""
    if scheduler.is_running:
        raise HTTPException(status_code=409, detail="Проход уже выполняется")
    summary = await scheduler.run_now()
    if summary is None:
        raise HTTPException(status_code=500, detail="Проход завершился с ошибкой, см. логи")
    return PassSummaryResponse.from_domain(summary)
