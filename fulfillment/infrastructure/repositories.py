from typing import Optional, List
from datetime import datetime, timezone
from sqlalchemy import select, insert, update, func
from sqlalchemy.ext.asyncio import AsyncSession

from fulfillment.domain.models import Order, OrderItem, OrderStatus, Product
from fulfillment.domain.exceptions import ConcurrencyConflictError, OrderNotFoundError
from fulfillment.infrastructure.db_schema import orders_tbl, order_items_tbl, products_tbl
from fulfillment.application.interfaces import OrderRepository, ProductRepository


class SQLAlchemyOrderRepository(OrderRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, order_id: int) -> Optional[Order]:
        result = await self._session.execute(
            select(orders_tbl).where(orders_tbl.c.id == order_id)
        )
        row = result.fetchone()
        if not row:
            return None
        items = await self._load_items([row.id])
        return self._to_domain(row, items.get(row.id, []))

    async def get_by_status(self, status: OrderStatus) -> List[Order]:
        return await self._fetch_orders(
            select(orders_tbl).where(orders_tbl.c.status == status)
        )

    async def get_all(self) -> List[Order]:
        return await self._fetch_orders(select(orders_tbl))

    async def _fetch_orders(self, stmt) -> List[Order]:
        result = await self._session.execute(
            stmt.order_by(orders_tbl.c.created_at.asc(), orders_tbl.c.id.asc())
        )
        rows = result.fetchall()
        if not rows:
            return []

        items = await self._load_items([row.id for row in rows])
        return [self._to_domain(row, items.get(row.id, [])) for row in rows]

    async def create(self, order: Order) -> Order:
        result = await self._session.execute(
            insert(orders_tbl).values(
                status=order.status,
                created_at=order.created_at,
                updated_at=order.updated_at
            )
        )
        order_id = result.inserted_primary_key[0]

        items = []
        for item in order.items:
            item_result = await self._session.execute(
                insert(order_items_tbl).values(
                    order_id=order_id,
                    product_id=item.product_id,
                    quantity=item.quantity
                )
            )
            items.append(item.model_copy(update={"id": item_result.inserted_primary_key[0]}))

        return order.model_copy(update={"id": order_id, "items": items})

    async def update_status(
        self, order_id: int, status: OrderStatus, expected_status: Optional[OrderStatus] = None
    ) -> None:
        stmt = (
            update(orders_tbl)
            .where(orders_tbl.c.id == order_id)
            .values(
                status=status,
                updated_at=datetime.now(timezone.utc)
            )
        )
        if expected_status is not None:
            stmt = stmt.where(orders_tbl.c.status == expected_status)

        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            if expected_status is not None:
                raise ConcurrencyConflictError(
                    f"Заказ {order_id} больше не в статусе {expected_status.value}"
                )
            raise OrderNotFoundError(f"Заказ {order_id} не найден")

    async def count_by_status(self, status: OrderStatus) -> int:
        result = await self._session.execute(
            select(func.count()).select_from(orders_tbl).where(orders_tbl.c.status == status)
        )
        return result.scalar_one()

    async def count(self) -> int:
        result = await self._session.execute(select(func.count()).select_from(orders_tbl))
        return result.scalar_one()

    async def _load_items(self, order_ids: List[int]) -> dict:
        result = await self._session.execute(
            select(order_items_tbl)
            .where(order_items_tbl.c.order_id.in_(order_ids))
            .order_by(order_items_tbl.c.id.asc())
        )
        items = {}
        for row in result.fetchall():
            items.setdefault(row.order_id, []).append(
                OrderItem(id=row.id, product_id=row.product_id, quantity=row.quantity)
            )
        return items

    def _to_domain(self, row, items: List[OrderItem]) -> Order:
        """Трансформация DB → Domain"""
        return Order(
            id=row.id,
            status=OrderStatus(row.status),
            items=items,
            created_at=row.created_at,
            updated_at=row.updated_at
        )


class SQLAlchemyProductRepository(ProductRepository):
    def __init__(self, session: AsyncSession):
        self._session = session

    async def get_by_id(self, product_id: int) -> Optional[Product]:
        result = await self._session.execute(
            select(products_tbl).where(products_tbl.c.id == product_id)
        )
        row = result.fetchone()
        return self._to_domain(row) if row else None

    async def create(self, product: Product) -> Product:
        result = await self._session.execute(
            insert(products_tbl).values(
                name=product.name,
                price=product.price,
                stock_quantity=product.stock_quantity,
                version=1
            )
        )
        return product.model_copy(update={"id": result.inserted_primary_key[0], "version": 1})

    async def save(self, product: Product) -> Product:
        # Пишем только если версия не изменилась с момента чтения
        stmt = (
            update(products_tbl)
            .where(
                products_tbl.c.id == product.id,
                products_tbl.c.version == product.version
            )
            .values(
                name=product.name,
                price=product.price,
                stock_quantity=product.stock_quantity,
                version=products_tbl.c.version + 1
            )
        )
        result = await self._session.execute(stmt)
        if result.rowcount == 0:
            raise ConcurrencyConflictError(
                f"Товар {product.id} изменен другой транзакцией (версия {product.version})"
            )
        return product.model_copy(update={"version": product.version + 1})

    def _to_domain(self, row) -> Product:
        return Product(
            id=row.id,
            name=row.name,
            price=row.price,
            stock_quantity=row.stock_quantity,
            version=row.version
        )
