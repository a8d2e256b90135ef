"""
Declarative base classes for the declaration tables.

Every table has a uuid4 primary key stored as a 36 character string so
the same models work on PostgreSQL and SQLite.  Quantities, weights,
package counts and prices are ``Decimal`` mapped to Numeric(38, 9); no
measure is ever stored as float.

``TrackedBase`` adds ``created_at`` / ``updated_at``.  ``created_at`` is the
tie-breaker the selectors use to keep invoice, packing and attribute rows
in a stable order when position numbers collide.
"""

from datetime import date, datetime
from decimal import Decimal
from typing import ClassVar
from uuid import UUID, uuid4

from sqlalchemy import BigInteger, Date, DateTime, Numeric, String, func
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column
from sqlalchemy.types import TypeDecorator

MEASURE_TYPE = Numeric(38, 9)


class UUIDString(TypeDecorator):
    """UUID stored as its canonical lowercase string.

    Bind values may be UUID objects or strings in any case; both are
    written as ``str(UUID(value))``.  Results come back as UUID.
    """

    impl = String(36)
    cache_ok = True

    def process_bind_param(self, value, dialect):
        if value is None:
            return None
        if isinstance(value, UUID):
            return str(value)
        return str(UUID(str(value)))

    def process_result_value(self, value, dialect):
        if value is None:
            return None
        return UUID(str(value))


class Base(DeclarativeBase):
    """Root of every declaration model."""

    type_annotation_map: ClassVar[dict] = {
        Decimal: MEASURE_TYPE,
        datetime: DateTime(timezone=True),
        date: Date(),
        UUID: UUIDString(),
        int: BigInteger,
    }

    id: Mapped[UUID] = mapped_column(UUIDString(), primary_key=True, default=uuid4)


class TrackedBase(Base):
    __abstract__ = True

    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        nullable=False,
    )

    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True),
        server_default=func.now(),
        onupdate=func.now(),
        nullable=False,
    )
