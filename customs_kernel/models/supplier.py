"""
Module: customs_kernel.models.supplier
Responsibility: ORM persistence for suppliers.  The supplier's country is
    the origin country used for compliance selection.
Architecture position: Kernel > Models.  May import from db/base.py only.
"""

from sqlalchemy import String
from sqlalchemy.orm import Mapped, mapped_column

from customs_kernel.db.base import TrackedBase


class Supplier(TrackedBase):
    """A vendor that ships goods under a purchase order."""

    __tablename__ = "suppliers"

    name: Mapped[str] = mapped_column(String(255), nullable=False)

    # Country of origin as entered by users ("CN", "China", ...);
    # compared case-insensitively.
    country: Mapped[str | None] = mapped_column(String(100), nullable=True)

    def __repr__(self) -> str:
        return f"<Supplier {self.name} ({self.country})>"
