"""
Module: customs_kernel.models.order
Responsibility: ORM persistence for purchase orders and their invoice lines
    (order items).
Architecture position: Kernel > Models.  May import from db/base.py only.

Invariants enforced:
    - Invoice line order is (position, created_at, id); the declaration
      engine allocates packing totals in that order.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from customs_kernel.db.base import TrackedBase, UUIDString


class Order(TrackedBase):
    """A purchase order placed with one supplier."""

    __tablename__ = "orders"

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    supplier_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("suppliers.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Order {self.name}>"


class OrderItem(TrackedBase):
    """
    One commercial invoice line of an order.

    ``product_id`` links to the catalog; lines without a product are not
    declared.
    """

    __tablename__ = "order_items"

    __table_args__ = (
        Index("idx_order_item_order", "order_id", "position"),
    )

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("orders.id"),
        nullable=False,
    )

    product_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=True,
    )

    quantity: Mapped[Decimal | None] = mapped_column(nullable=True)

    unit_price: Mapped[Decimal | None] = mapped_column(nullable=True)

    # Line number on the imported invoice
    position: Mapped[int] = mapped_column(nullable=False, default=0)
