"""
Module: customs_kernel.models.compliance
Responsibility: ORM persistence for product type compliance records (TSE
    status, analysis validity, TAREKS and report numbers), optionally
    scoped to an origin country and a validity window.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from datetime import date
from uuid import UUID

from sqlalchemy import ForeignKey, String
from sqlalchemy.orm import Mapped, mapped_column

from customs_kernel.db.base import TrackedBase, UUIDString


class ProductTypeCompliance(TrackedBase):
    """A compliance record for one product type."""

    __tablename__ = "product_type_compliance"

    product_type_id: Mapped[UUID | None] = mapped_column(
        UUIDString(),
        ForeignKey("product_types.id"),
        nullable=True,
    )

    # Empty means the record applies to every origin country
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    tse_status: Mapped[str | None] = mapped_column(String(100), nullable=True)

    analysis_validity: Mapped[str | None] = mapped_column(String(100), nullable=True)

    tareks_no: Mapped[str | None] = mapped_column(String(100), nullable=True)

    report_no: Mapped[str | None] = mapped_column(String(100), nullable=True)

    valid_from: Mapped[date | None] = mapped_column(nullable=True)

    valid_to: Mapped[date | None] = mapped_column(nullable=True)
