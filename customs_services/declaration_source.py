"""
customs_services.declaration_source -- Protocol for declaration input fetchers.

Responsibility:
    Names the read operations a declaration run needs, so the service can be
    driven by the SQLAlchemy selector in production and by in-memory fakes
    in tests.

Failure modes:
    - Implementations raise ``DeclarationSourceError`` (with ``dataset``)
      when a fetch fails.  The service decides which failures are fatal.
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import Protocol, runtime_checkable

from customs_kernel.domain.records import (
    AttributeDefinition,
    ComplianceCandidate,
    ExtraAttributeValue,
    InvoiceLine,
    OrderHeader,
    PackingLine,
    StructuredAttributeValue,
)


@runtime_checkable
class DeclarationSource(Protocol):
    """Read-only access to one order's declaration inputs."""

    def get_order_header(self, order_id: str) -> OrderHeader | None: ...

    def get_invoice_lines(self, order_id: str) -> Sequence[InvoiceLine]: ...

    def get_packing_lines(self, order_id: str) -> Sequence[PackingLine]: ...

    def get_attribute_definitions(self) -> Sequence[AttributeDefinition]: ...

    def get_structured_attribute_values(
        self, product_ids: Sequence[str],
    ) -> Sequence[StructuredAttributeValue]: ...

    def get_extra_attribute_values(
        self, product_ids: Sequence[str],
    ) -> Sequence[ExtraAttributeValue]: ...

    def get_compliance_candidates(self) -> Sequence[ComplianceCandidate]: ...
