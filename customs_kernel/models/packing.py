"""
Module: customs_kernel.models.packing
Responsibility: ORM persistence for supplier packing lists and their lines.
Architecture position: Kernel > Models.  May import from db/base.py only.

Packing lines have no foreign key to order items; the declaration engine
infers the correspondence from ``product_id`` or ``product_name_raw``.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from customs_kernel.db.base import TrackedBase, UUIDString


class PackingList(TrackedBase):
    """A supplier packing list shipped under an order."""

    __tablename__ = "packing_lists"

    order_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("orders.id"),
        nullable=False,
    )

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")


class PackingListLine(TrackedBase):
    """One physical line of a packing list."""

    __tablename__ = "packing_list_lines"

    __table_args__ = (
        Index("idx_packing_line_list", "packing_list_id", "line_no"),
    )

    packing_list_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("packing_lists.id"),
        nullable=False,
    )

    # Set when the imported name was matched to a catalog product
    product_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=True,
    )

    product_name_raw: Mapped[str | None] = mapped_column(String(500), nullable=True)

    # Row number on the imported packing list
    line_no: Mapped[int] = mapped_column(nullable=False, default=0)

    quantity: Mapped[Decimal | None] = mapped_column(nullable=True)

    net_weight: Mapped[Decimal | None] = mapped_column(nullable=True)

    gross_weight: Mapped[Decimal | None] = mapped_column(nullable=True)

    packages_count: Mapped[Decimal | None] = mapped_column(nullable=True)
