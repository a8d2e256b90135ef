"""
Declaration input records.

Responsibility:
    Frozen value objects describing the already-fetched data one declaration
    run consumes: the order header, commercial invoice lines, packing-list
    lines, attribute definitions and values, and compliance candidates.

Architecture position:
    Kernel > Domain -- pure values, zero I/O.  Populated by
    ``customs_kernel.selectors.declaration_selector`` (or any other
    ``DeclarationSource``) and consumed read-only by ``customs_engines``.

Invariants enforced:
    - Quantities, weights and prices are ``Decimal``; the data layer converts
      NULL numerics to ``Decimal("0")`` before building a record.
    - Identifiers are plain strings so that engine keys ("pid:<id>") are
      stable regardless of the storage UUID type.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date
from decimal import Decimal


@dataclass(frozen=True)
class OrderHeader:
    """The order being declared and its supplier's country of origin."""

    order_id: str
    supplier_country: str | None = None
    order_name: str = ""


@dataclass(frozen=True)
class InvoiceLine:
    """
    One catalog-linked line of the commercial invoice.

    ``gtip_code``, ``product_type_id`` and ``product_type_name`` come from
    the linked catalog product and may be missing.
    """

    line_id: str
    order_id: str
    quantity: Decimal
    unit_price: Decimal
    product_code: str = ""
    product_name: str = ""
    product_id: str | None = None
    gtip_code: str | None = None
    product_type_id: str | None = None
    product_type_name: str | None = None


@dataclass(frozen=True)
class PackingLine:
    """
    One physical line of a supplier packing list.

    Carries no reference to an invoice line: correspondence is inferred
    from ``product_id`` or the free-text ``product_name_raw``.
    """

    packing_list_id: str
    product_name_raw: str | None = None
    quantity: Decimal = Decimal("0")
    net_weight: Decimal = Decimal("0")
    gross_weight: Decimal = Decimal("0")
    packages_count: Decimal = Decimal("0")
    product_id: str | None = None


@dataclass(frozen=True)
class AttributeDefinition:
    """A catalog attribute definition (e.g. "Tip", "Uzunluk (mm)")."""

    attribute_id: str
    name: str


@dataclass(frozen=True)
class StructuredAttributeValue:
    """A product's value for a defined catalog attribute."""

    product_id: str
    attribute_id: str
    value_text: str | None = None
    value_number: Decimal | None = None
    attribute_name: str | None = None

    @property
    def value(self) -> Decimal | str:
        """Numeric value when present, otherwise the text (``""`` if none)."""
        if self.value_number is not None:
            return self.value_number
        return self.value_text or ""


@dataclass(frozen=True)
class ExtraAttributeValue:
    """A free-form name/value pair attached to a product."""

    product_id: str
    name: str | None = None
    value_text: str | None = None
    value_number: Decimal | None = None

    @property
    def value(self) -> Decimal | str:
        """Text value when present, otherwise the number (``""`` if none)."""
        if self.value_text:
            return self.value_text
        if self.value_number is not None:
            return self.value_number
        return ""


@dataclass(frozen=True)
class ComplianceCandidate:
    """
    A regulatory compliance record for a product type, optionally scoped to
    an origin country and a validity window.
    """

    candidate_id: str
    product_type_id: str | None = None
    product_type_name: str | None = None
    country: str | None = None
    tse_status: str = ""
    analysis_validity: str = ""
    tareks_no: str = ""
    report_no: str = ""
    valid_from: date | None = None
    valid_to: date | None = None

    def is_effective(self, as_of: date) -> bool:
        """True if ``as_of`` falls inside the (open-ended) validity window."""
        if self.valid_from is not None and self.valid_from > as_of:
            return False
        if self.valid_to is not None and self.valid_to < as_of:
            return False
        return True

    def is_generic(self) -> bool:
        """True if the record is not scoped to any country."""
        return not self.country

    def matches_country(self, country: str | None) -> bool:
        """Case-insensitive country match; never matches a missing country."""
        if not country or not self.country:
            return False
        return self.country.strip().casefold() == country.strip().casefold()
