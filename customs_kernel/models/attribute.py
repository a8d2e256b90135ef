"""
Module: customs_kernel.models.attribute
Responsibility: ORM persistence for product attributes: the attribute
    definitions, structured per-product values, and free-form extra
    name/value pairs.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from decimal import Decimal
from uuid import UUID

from sqlalchemy import ForeignKey, Index, String
from sqlalchemy.orm import Mapped, mapped_column

from customs_kernel.db.base import TrackedBase, UUIDString


class ProductAttribute(TrackedBase):
    """An attribute definition such as "Tip" or "Uzunluk (mm)"."""

    __tablename__ = "product_attributes"

    name: Mapped[str] = mapped_column(String(255), nullable=False)


class ProductAttributeValue(TrackedBase):
    """A product's value for a defined attribute."""

    __tablename__ = "product_attribute_values"

    __table_args__ = (
        Index("idx_attribute_value_product", "product_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    attribute_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("product_attributes.id"),
        nullable=False,
    )

    value_text: Mapped[str | None] = mapped_column(String(500), nullable=True)

    value_number: Mapped[Decimal | None] = mapped_column(nullable=True)


class ProductExtraAttribute(TrackedBase):
    """A free-form name/value pair attached to a product."""

    __tablename__ = "product_extra_attributes"

    __table_args__ = (
        Index("idx_extra_attribute_product", "product_id"),
    )

    product_id: Mapped[UUID] = mapped_column(
        UUIDString(),
        ForeignKey("products.id"),
        nullable=False,
    )

    name: Mapped[str | None] = mapped_column(String(255), nullable=True)

    value_text: Mapped[str | None] = mapped_column(String(500), nullable=True)

    value_number: Mapped[Decimal | None] = mapped_column(nullable=True)
