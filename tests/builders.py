"""
Record builders shared by the engine, service and fuzzing tests.

Amounts are given as strings or ints and converted to Decimal so that test
tables stay readable.
"""

from datetime import date
from decimal import Decimal

from customs_kernel.domain.records import (
    AttributeDefinition,
    ComplianceCandidate,
    ExtraAttributeValue,
    InvoiceLine,
    OrderHeader,
    PackingLine,
    StructuredAttributeValue,
)

AS_OF = date(2024, 6, 1)


def d(value) -> Decimal:
    return Decimal(str(value))


def make_order(order_id: str = "order-1", country: str | None = "CN") -> OrderHeader:
    return OrderHeader(order_id=order_id, supplier_country=country, order_name="PO-2024-17")


def make_invoice_line(
    line_id: str,
    quantity="0",
    *,
    unit_price="0",
    product_id: str | None = None,
    product_code: str = "",
    product_name: str = "",
    gtip_code: str | None = "7604.10",
    product_type_id: str | None = None,
    product_type_name: str | None = None,
    order_id: str = "order-1",
) -> InvoiceLine:
    return InvoiceLine(
        line_id=line_id,
        order_id=order_id,
        quantity=d(quantity),
        unit_price=d(unit_price),
        product_code=product_code,
        product_name=product_name,
        product_id=product_id,
        gtip_code=gtip_code,
        product_type_id=product_type_id,
        product_type_name=product_type_name,
    )


def make_packing_line(
    quantity,
    net="0",
    gross="0",
    boxes="0",
    *,
    product_id: str | None = None,
    name: str | None = None,
    packing_list_id: str = "pl-1",
) -> PackingLine:
    return PackingLine(
        packing_list_id=packing_list_id,
        product_name_raw=name,
        quantity=d(quantity),
        net_weight=d(net),
        gross_weight=d(gross),
        packages_count=d(boxes),
        product_id=product_id,
    )


def make_candidate(
    candidate_id: str,
    *,
    product_type_id: str | None = "type-1",
    product_type_name: str | None = "Profil",
    country: str | None = None,
    valid_from: str | None = None,
    valid_to: str | None = None,
    tse_status: str = "",
    tareks_no: str = "",
) -> ComplianceCandidate:
    return ComplianceCandidate(
        candidate_id=candidate_id,
        product_type_id=product_type_id,
        product_type_name=product_type_name,
        country=country,
        tse_status=tse_status,
        tareks_no=tareks_no,
        valid_from=date.fromisoformat(valid_from) if valid_from else None,
        valid_to=date.fromisoformat(valid_to) if valid_to else None,
    )


def make_definition(attribute_id: str, name: str) -> AttributeDefinition:
    return AttributeDefinition(attribute_id=attribute_id, name=name)


def make_value(
    product_id: str,
    attribute_id: str,
    *,
    text: str | None = None,
    number=None,
    attribute_name: str | None = None,
) -> StructuredAttributeValue:
    return StructuredAttributeValue(
        product_id=product_id,
        attribute_id=attribute_id,
        value_text=text,
        value_number=None if number is None else d(number),
        attribute_name=attribute_name,
    )


def make_extra(
    product_id: str,
    name: str | None,
    *,
    text: str | None = None,
    number=None,
) -> ExtraAttributeValue:
    return ExtraAttributeValue(
        product_id=product_id,
        name=name,
        value_text=text,
        value_number=None if number is None else d(number),
    )
