from sqlalchemy import (
    Table, Column, String, Integer, Numeric, Enum, DateTime, ForeignKey, CheckConstraint, MetaData
)
from sqlalchemy.sql import func

from fulfillment.domain.models import OrderStatus

metadata = MetaData()


products_tbl = Table(
    "products",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("name", String, nullable=False),
    Column("price", Numeric(12, 2), nullable=False),
    Column("stock_quantity", Integer, nullable=False, default=0),
    Column("version", Integer, nullable=False, default=1),
    CheckConstraint("stock_quantity >= 0", name="ck_products_stock_nonneg"),
    CheckConstraint("price >= 0", name="ck_products_price_nonneg")
)


orders_tbl = Table(
    "orders",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("status", Enum(OrderStatus, name="order_status"), nullable=False, default=OrderStatus.PENDING, index=True),
    Column("created_at", DateTime(timezone=True), server_default=func.now()),
    Column("updated_at", DateTime(timezone=True), server_default=func.now(), onupdate=func.now())
)


# product_id без ForeignKey: товар может быть удален, заказ остается
order_items_tbl = Table(
    "order_items",
    metadata,
    Column("id", Integer, primary_key=True, autoincrement=True),
    Column("order_id", Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True),
    Column("product_id", Integer, nullable=False),
    Column("quantity", Integer, nullable=False),
    CheckConstraint("quantity > 0", name="ck_order_items_quantity_pos")
)
