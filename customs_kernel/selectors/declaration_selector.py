"""
Declaration input selector.

Fetches everything one declaration run needs for an order and returns it
as the frozen records in ``customs_kernel.domain.records``.

Key design decisions:
- Returns records, not ORM models
- Uses the caller's Session; never commits or flushes
- Product-id lookups are issued in chunks of at most ``chunk_size`` ids
- Every database failure surfaces as DeclarationSourceError naming the
  dataset, so the caller can decide what is fatal
- NULL numerics become Decimal("0"); NULL text becomes ""
"""

from collections.abc import Iterator, Sequence
from decimal import Decimal
from uuid import UUID

from sqlalchemy import select
from sqlalchemy.orm import Session

from customs_kernel.domain.records import (
    AttributeDefinition,
    ComplianceCandidate,
    ExtraAttributeValue,
    InvoiceLine,
    OrderHeader,
    PackingLine,
    StructuredAttributeValue,
)
from customs_kernel.logging_config import get_logger
from customs_kernel.models.attribute import (
    ProductAttribute,
    ProductAttributeValue,
    ProductExtraAttribute,
)
from customs_kernel.models.compliance import ProductTypeCompliance
from customs_kernel.models.order import Order, OrderItem
from customs_kernel.models.packing import PackingList, PackingListLine
from customs_kernel.models.product import Gtip, Product, ProductType
from customs_kernel.models.supplier import Supplier
from customs_kernel.selectors.base import BaseSelector

logger = get_logger("selectors.declaration")

DEFAULT_CHUNK_SIZE = 100

_ZERO = Decimal("0")


def _decimal(value: Decimal | None) -> Decimal:
    return _ZERO if value is None else Decimal(value)


def _id(value: UUID | None) -> str | None:
    return None if value is None else str(value)


def chunked(values: Sequence[str], size: int) -> Iterator[list[str]]:
    """Split ``values`` into consecutive lists of at most ``size`` items."""
    if size < 1:
        raise ValueError(f"chunk size must be positive, got {size}")
    for start in range(0, len(values), size):
        yield list(values[start:start + size])


class DeclarationSelector(BaseSelector):
    """
    Read-only source of declaration inputs.

    Satisfies the ``customs_services.DeclarationSource`` protocol.
    """

    def __init__(self, session: Session, chunk_size: int = DEFAULT_CHUNK_SIZE):
        super().__init__(session)
        if chunk_size < 1:
            raise ValueError(f"chunk_size must be positive, got {chunk_size}")
        self.chunk_size = chunk_size

    # =========================================================================
    # Order
    # =========================================================================

    def get_order_header(self, order_id: str) -> OrderHeader | None:
        """The order and its supplier's country, or None if unknown."""
        with self._fetching("order_header"):
            row = self.session.execute(
                select(Order.id, Order.name, Supplier.country)
                .outerjoin(Supplier, Order.supplier_id == Supplier.id)
                .where(Order.id == UUID(order_id))
            ).one_or_none()

        if row is None:
            return None
        return OrderHeader(
            order_id=str(row.id),
            supplier_country=row.country or None,
            order_name=row.name or "",
        )

    def get_invoice_lines(self, order_id: str) -> list[InvoiceLine]:
        """Catalog-linked invoice lines of the order, in invoice order."""
        stmt = (
            select(
                OrderItem.id,
                OrderItem.order_id,
                OrderItem.product_id,
                OrderItem.quantity,
                OrderItem.unit_price,
                Product.code.label("product_code"),
                Product.name.label("product_name"),
                Product.product_type_id,
                Gtip.code.label("gtip_code"),
                ProductType.name.label("product_type_name"),
            )
            .join(Product, OrderItem.product_id == Product.id)
            .outerjoin(Gtip, Product.gtip_id == Gtip.id)
            .outerjoin(ProductType, Product.product_type_id == ProductType.id)
            .where(OrderItem.order_id == UUID(order_id))
            .order_by(OrderItem.position, OrderItem.created_at, OrderItem.id)
        )
        with self._fetching("invoice_lines"):
            rows = self.session.execute(stmt).all()

        return [
            InvoiceLine(
                line_id=str(row.id),
                order_id=str(row.order_id),
                quantity=_decimal(row.quantity),
                unit_price=_decimal(row.unit_price),
                product_code=row.product_code or "",
                product_name=row.product_name or "",
                product_id=_id(row.product_id),
                gtip_code=row.gtip_code,
                product_type_id=_id(row.product_type_id),
                product_type_name=row.product_type_name,
            )
            for row in rows
        ]

    def get_packing_lines(self, order_id: str) -> list[PackingLine]:
        """Lines of every packing list under the order, list by list."""
        stmt = (
            select(PackingListLine)
            .join(PackingList, PackingListLine.packing_list_id == PackingList.id)
            .where(PackingList.order_id == UUID(order_id))
            .order_by(
                PackingList.created_at,
                PackingList.id,
                PackingListLine.line_no,
                PackingListLine.created_at,
                PackingListLine.id,
            )
        )
        with self._fetching("packing_lines"):
            lines = self.session.execute(stmt).scalars().all()

        return [
            PackingLine(
                packing_list_id=str(line.packing_list_id),
                product_name_raw=line.product_name_raw,
                quantity=_decimal(line.quantity),
                net_weight=_decimal(line.net_weight),
                gross_weight=_decimal(line.gross_weight),
                packages_count=_decimal(line.packages_count),
                product_id=_id(line.product_id),
            )
            for line in lines
        ]

    # =========================================================================
    # Attributes
    # =========================================================================

    def get_attribute_definitions(self) -> list[AttributeDefinition]:
        with self._fetching("attribute_definitions"):
            rows = self.session.execute(
                select(ProductAttribute.id, ProductAttribute.name)
                .order_by(ProductAttribute.created_at, ProductAttribute.id)
            ).all()
        return [AttributeDefinition(attribute_id=str(r.id), name=r.name or "") for r in rows]

    def get_structured_attribute_values(
        self, product_ids: Sequence[str],
    ) -> list[StructuredAttributeValue]:
        """Structured attribute values of the given products, chunked by id."""
        values: list[StructuredAttributeValue] = []
        for chunk in chunked(product_ids, self.chunk_size):
            stmt = (
                select(
                    ProductAttributeValue.product_id,
                    ProductAttributeValue.attribute_id,
                    ProductAttributeValue.value_text,
                    ProductAttributeValue.value_number,
                    ProductAttribute.name.label("attribute_name"),
                )
                .outerjoin(
                    ProductAttribute,
                    ProductAttributeValue.attribute_id == ProductAttribute.id,
                )
                .where(ProductAttributeValue.product_id.in_(chunk))
                .order_by(ProductAttributeValue.created_at, ProductAttributeValue.id)
            )
            with self._fetching("attribute_values"):
                rows = self.session.execute(stmt).all()
            values.extend(
                StructuredAttributeValue(
                    product_id=str(row.product_id),
                    attribute_id=str(row.attribute_id),
                    value_text=row.value_text,
                    value_number=row.value_number,
                    attribute_name=row.attribute_name,
                )
                for row in rows
            )

        logger.debug("attribute_values_fetched", extra={
            "product_count": len(product_ids),
            "value_count": len(values),
        })
        return values

    def get_extra_attribute_values(
        self, product_ids: Sequence[str],
    ) -> list[ExtraAttributeValue]:
        """Free-form extra attributes of the given products, chunked by id."""
        values: list[ExtraAttributeValue] = []
        for chunk in chunked(product_ids, self.chunk_size):
            stmt = (
                select(ProductExtraAttribute)
                .where(ProductExtraAttribute.product_id.in_(chunk))
                .order_by(ProductExtraAttribute.created_at, ProductExtraAttribute.id)
            )
            with self._fetching("extra_attributes"):
                rows = self.session.execute(stmt).scalars().all()
            values.extend(
                ExtraAttributeValue(
                    product_id=str(row.product_id),
                    name=row.name,
                    value_text=row.value_text,
                    value_number=row.value_number,
                )
                for row in rows
            )
        return values

    # =========================================================================
    # Compliance
    # =========================================================================

    def get_compliance_candidates(self) -> list[ComplianceCandidate]:
        """Every compliance record, joined with its product type name."""
        stmt = (
            select(ProductTypeCompliance, ProductType.name.label("type_name"))
            .outerjoin(ProductType, ProductTypeCompliance.product_type_id == ProductType.id)
            .order_by(ProductTypeCompliance.created_at, ProductTypeCompliance.id)
        )
        with self._fetching("compliance"):
            rows = self.session.execute(stmt).all()

        return [
            ComplianceCandidate(
                candidate_id=str(record.id),
                product_type_id=_id(record.product_type_id),
                product_type_name=type_name,
                country=record.country or None,
                tse_status=record.tse_status or "",
                analysis_validity=record.analysis_validity or "",
                tareks_no=record.tareks_no or "",
                report_no=record.report_no or "",
                valid_from=record.valid_from,
                valid_to=record.valid_to,
            )
            for record, type_name in rows
        ]
