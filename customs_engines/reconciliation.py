"""
Module: customs_engines.reconciliation
Responsibility:
    Run the whole declaration pipeline for one order: build the packing
    pool, resolve attributes, allocate buckets, resolve compliance and
    aggregate rows and summaries.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  Called by
    ``customs_services.declaration_service``, which fetches the inputs and
    supplies ``as_of`` from a Clock.

Invariants enforced:
    - One run owns its PackingPool; nothing survives between runs.
    - Packing weights win; the per-unit attribute weight only fills a line
      whose allocated net weight is zero (when enabled in settings).
    - Missing GTIP codes are declared under the GTIP placeholder.

Usage:
    from customs_engines.reconciliation import DeclarationEngine

    result = DeclarationEngine().run(
        order=header, invoice_lines=lines, packing_lines=packing,
        attribute_definitions=defs, structured_values=values,
        extra_values=extras, compliance_candidates=candidates,
        as_of=date(2024, 6, 1),
    )
"""

from __future__ import annotations

from collections.abc import Sequence
from datetime import date

from customs_engines.allocation import AllocationMatcher
from customs_engines.attributes import AttributeResolver, discover_role_map
from customs_engines.compliance import ComplianceResolver
from customs_engines.declaration import DeclarationAggregator
from customs_engines.packing import build_packing_pool
from customs_engines.tracer import traced_engine
from customs_engines.types import (
    ZERO,
    AttributeRoleMap,
    ComplianceSnapshot,
    DeclarationResult,
    DeclaredLine,
    EngineSettings,
    LineAllocation,
    Measures,
    ResolvedAttributes,
    WeightSource,
)
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

logger = get_logger("engines.reconciliation")


def apply_weight_fallback(
    allocation: LineAllocation,
    attributes: ResolvedAttributes,
    enabled: bool = True,
) -> tuple[Measures, WeightSource]:
    """Line measures after the per-unit weight fallback."""
    consumed = allocation.consumed
    if consumed.net_weight != ZERO:
        return consumed, WeightSource.PACKING
    if enabled and attributes.weight_per_unit is not None:
        return Measures(
            quantity=consumed.quantity,
            net_weight=consumed.quantity * attributes.weight_per_unit,
            gross_weight=consumed.gross_weight,
            packages_count=consumed.packages_count,
        ), WeightSource.ATTRIBUTE
    if allocation.is_matched:
        return consumed, WeightSource.PACKING
    return consumed, WeightSource.NONE


class DeclarationEngine:
    """
    Declaration pipeline over already-fetched order data.

    Contract:
        ``run`` is total: unmatched lines, missing attributes and empty
        compliance sets degrade the output, never raise.
    Guarantees:
        - Deterministic for identical inputs and ``as_of``.
        - Does not mutate any input record.
    """

    def __init__(self, settings: EngineSettings | None = None):
        self._settings = settings or EngineSettings()

    @property
    def settings(self) -> EngineSettings:
        return self._settings

    def resolve_role_map(
        self, attribute_definitions: Sequence[AttributeDefinition],
    ) -> AttributeRoleMap:
        return discover_role_map(
            definitions=attribute_definitions,
            rules=self._settings.name_rules,
        )

    @traced_engine(
        "declaration_pipeline", "1.0",
        fingerprint_fields=("order", "invoice_lines", "packing_lines", "as_of"),
    )
    def run(
        self,
        *,
        order: OrderHeader,
        invoice_lines: Sequence[InvoiceLine],
        packing_lines: Sequence[PackingLine] = (),
        attribute_definitions: Sequence[AttributeDefinition] = (),
        structured_values: Sequence[StructuredAttributeValue] = (),
        extra_values: Sequence[ExtraAttributeValue] = (),
        compliance_candidates: Sequence[ComplianceCandidate] = (),
        as_of: date,
        role_map: AttributeRoleMap | None = None,
    ) -> DeclarationResult:
        settings = self._settings
        logger.info("declaration_run_started", extra={
            "order_id": order.order_id,
            "invoice_line_count": len(invoice_lines),
            "packing_line_count": len(packing_lines),
            "as_of": as_of.isoformat(),
        })

        if role_map is None:
            role_map = self.resolve_role_map(attribute_definitions)

        pool = build_packing_pool(packing_lines=packing_lines)
        resolver = AttributeResolver(
            role_map,
            structured_values,
            extra_values,
            name_rules=settings.name_rules,
            type_placeholder=settings.type_placeholder,
        )
        attributes = [
            resolver.resolve(line.product_id, line.product_type_name)
            for line in invoice_lines
        ]

        allocations = AllocationMatcher(
            exhaustion_epsilon=settings.exhaustion_epsilon,
        ).allocate(invoice_lines=invoice_lines, pool=pool)

        compliance = ComplianceResolver(
            compliance_candidates, order.supplier_country, as_of,
        ).resolve_many(type_keys=[
            (line.product_type_id, resolved.product_type)
            for line, resolved in zip(invoice_lines, attributes)
        ])

        declared_lines = []
        for line, resolved, allocation, match in zip(
            invoice_lines, attributes, allocations, compliance,
        ):
            measures, weight_source = apply_weight_fallback(
                allocation, resolved, settings.weight_fallback,
            )
            declared_lines.append(DeclaredLine(
                line=line,
                attributes=resolved,
                allocation=allocation,
                measures=measures,
                weight_source=weight_source,
                gtip_code=(line.gtip_code or "").strip() or settings.gtip_placeholder,
                compliance=ComplianceSnapshot.from_candidate(match.candidate, match.rule),
            ))

        rows, summary = DeclarationAggregator().aggregate(declared_lines=declared_lines)
        result = DeclarationResult(
            order_id=order.order_id,
            as_of=as_of,
            rows=rows,
            summary=summary,
            allocations=allocations,
            settlements=pool.settlements(),
        )

        logger.info("declaration_run_completed", extra={
            "order_id": order.order_id,
            "row_count": len(rows),
            "unmatched_count": len(result.unmatched_line_ids),
            "leftover_bucket_count": len(pool),
        })
        return result
