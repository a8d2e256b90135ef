"""
Module: customs_engines.declaration
Responsibility:
    Group allocated invoice lines into declaration rows and accumulate the
    GTIP x type summary with per-GTIP totals and a grand total.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Group key: (product id or normalized code, type, length, GTIP).
    - Unit price and compliance are snapshotted on first insertion into a
      group and never re-summed.
    - Amount per line is ``consumed quantity * unit price``; row and summary
      amounts both sum those line amounts.
    - Grand total == sum over all declaration rows, whatever the grouping.
    - Ordering is deterministic: GTIP, type (Turkish collation), numeric
      length ascending with non-numeric/missing last, product code.

Usage:
    from customs_engines.declaration import DeclarationAggregator

    rows, summary = DeclarationAggregator().aggregate(declared_lines=lines)
"""

from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass, field, replace
from decimal import Decimal

from customs_engines.normalization import collation_key, normalize_key, parse_decimal
from customs_engines.tracer import traced_engine
from customs_engines.types import (
    ZERO,
    ComplianceSnapshot,
    DeclarationRow,
    DeclaredLine,
    GtipSummary,
    GtipTypeSummary,
    Measures,
    SummaryTotals,
    TypeSummary,
)
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.declaration")


@dataclass
class _RowAccumulator:
    product_id: str | None
    product_code: str
    product_name: str
    product_type: str
    length_value: Decimal | str | None
    gtip_code: str
    unit_price: Decimal
    compliance: ComplianceSnapshot
    measures: Measures = field(default_factory=Measures)
    amount: Decimal = ZERO
    line_ids: list[str] = field(default_factory=list)

    def to_row(self, sequence: int) -> DeclarationRow:
        return DeclarationRow(
            sequence=sequence,
            product_id=self.product_id,
            product_code=self.product_code,
            product_name=self.product_name,
            product_type=self.product_type,
            length_value=self.length_value,
            gtip_code=self.gtip_code,
            quantity=self.measures.quantity,
            unit_price=self.unit_price,
            net_weight=self.measures.net_weight,
            gross_weight=self.measures.gross_weight,
            packages_count=self.measures.packages_count,
            amount=self.amount,
            compliance=self.compliance,
            line_ids=tuple(self.line_ids),
        )


def _length_group_key(value: Decimal | str | None):
    if isinstance(value, str):
        return value.strip()
    return value


def group_key(declared: DeclaredLine) -> tuple:
    line = declared.line
    identity = line.product_id or normalize_key(line.product_code)
    return (
        identity,
        declared.attributes.product_type,
        _length_group_key(declared.attributes.length_value),
        declared.gtip_code,
    )


def _length_sort_key(value: Decimal | str | None) -> tuple[int, Decimal]:
    parsed = parse_decimal(value)
    if parsed is None:
        return (1, ZERO)
    return (0, parsed)


def row_sort_key(row: DeclarationRow) -> tuple:
    return (
        collation_key(row.gtip_code),
        collation_key(row.product_type),
        _length_sort_key(row.length_value),
        collation_key(row.product_code),
    )


def _line_totals(declared: DeclaredLine) -> SummaryTotals:
    measures = declared.measures
    return SummaryTotals(
        quantity=measures.quantity,
        amount=measures.quantity * declared.line.unit_price,
        net_weight=measures.net_weight,
        gross_weight=measures.gross_weight,
        packages_count=measures.packages_count,
    )


def build_summary(declared_lines: Sequence[DeclaredLine]) -> GtipTypeSummary:
    """Per-GTIP, per-type totals, sorted by GTIP then type."""
    by_gtip: dict[str, dict[str, SummaryTotals]] = {}
    for declared in declared_lines:
        types = by_gtip.setdefault(declared.gtip_code, {})
        product_type = declared.attributes.product_type
        types[product_type] = types.get(product_type, SummaryTotals()) + _line_totals(declared)

    groups = []
    grand_total = SummaryTotals()
    for gtip_code in sorted(by_gtip, key=collation_key):
        types = by_gtip[gtip_code]
        type_summaries = tuple(
            TypeSummary(product_type=t, totals=types[t])
            for t in sorted(types, key=collation_key)
        )
        total = SummaryTotals()
        for summary in type_summaries:
            total = total + summary.totals
        groups.append(GtipSummary(gtip_code=gtip_code, types=type_summaries, total=total))
        grand_total = grand_total + total

    return GtipTypeSummary(groups=tuple(groups), grand_total=grand_total)


class DeclarationAggregator:
    """
    Builds ordered declaration rows and the GTIP x type summary.

    Contract:
        ``aggregate`` takes declared lines in invoice order and returns
        ``(rows, summary)``.  Row ``sequence`` numbers are 1-based and
        follow the final sort order.
    """

    @traced_engine("declaration", "1.0", fingerprint_fields=("declared_lines",))
    def aggregate(
        self,
        *,
        declared_lines: Sequence[DeclaredLine],
    ) -> tuple[tuple[DeclarationRow, ...], GtipTypeSummary]:
        groups: dict[tuple, _RowAccumulator] = {}
        for declared in declared_lines:
            key = group_key(declared)
            acc = groups.get(key)
            if acc is None:
                line = declared.line
                acc = _RowAccumulator(
                    product_id=line.product_id,
                    product_code=line.product_code,
                    product_name=line.product_name,
                    product_type=declared.attributes.product_type,
                    length_value=declared.attributes.length_value,
                    gtip_code=declared.gtip_code,
                    unit_price=line.unit_price,
                    compliance=declared.compliance,
                )
                groups[key] = acc
            acc.measures = acc.measures + declared.measures
            acc.amount += _line_totals(declared).amount
            acc.line_ids.append(declared.line.line_id)

        ordered = sorted((acc.to_row(0) for acc in groups.values()), key=row_sort_key)
        rows = tuple(
            replace(row, sequence=index) for index, row in enumerate(ordered, start=1)
        )
        summary = build_summary(declared_lines)

        logger.info("declaration_aggregated", extra={
            "line_count": len(declared_lines),
            "row_count": len(rows),
            "gtip_count": len(summary.groups),
            "grand_total_quantity": str(summary.grand_total.quantity),
        })
        return rows, summary
