"""
Module: customs_kernel.models.product
Responsibility: ORM persistence for the product catalog: products, their
    regulatory product types and GTIP tariff codes.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from uuid import UUID

from sqlalchemy import ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column

from customs_kernel.db.base import TrackedBase, UUIDString


class ProductType(TrackedBase):
    """Regulatory product type ("tip") that compliance records attach to."""

    __tablename__ = "product_types"

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class Gtip(TrackedBase):
    """A national customs tariff position code."""

    __tablename__ = "gtips"

    __table_args__ = (
        UniqueConstraint("code", name="uq_gtip_code"),
    )

    code: Mapped[str] = mapped_column(String(32), nullable=False)

    description: Mapped[str | None] = mapped_column(String(500), nullable=True)


class Product(TrackedBase):
    """A catalog product."""

    __tablename__ = "products"

    code: Mapped[str] = mapped_column(String(100), nullable=False)

    name: Mapped[str] = mapped_column(String(255), nullable=False, default="")

    gtip_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("gtips.id"),
        nullable=True,
    )

    product_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_types.id"),
        nullable=True,
    )

    def __repr__(self) -> str:
        return f"<Product {self.code}: {self.name}>"
