"""
Declaration engine domain types.

Intermediate and output value objects of the reconciliation pipeline:
packing buckets, attribute roles, line allocations, compliance snapshots,
declaration rows and GTIP x type summaries.

Architecture: customs_engines -- pure domain, zero I/O.  Inputs are the
frozen records in ``customs_kernel.domain.records``.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
from decimal import Decimal
from enum import Enum

from customs_kernel.domain.records import ComplianceCandidate, InvoiceLine

ZERO = Decimal("0")


# =============================================================================
# Measures
# =============================================================================


@dataclass(frozen=True)
class Measures:
    """Quantity, weights and package count moved as one unit."""

    quantity: Decimal = ZERO
    net_weight: Decimal = ZERO
    gross_weight: Decimal = ZERO
    packages_count: Decimal = ZERO

    def __add__(self, other: Measures) -> Measures:
        return Measures(
            quantity=self.quantity + other.quantity,
            net_weight=self.net_weight + other.net_weight,
            gross_weight=self.gross_weight + other.gross_weight,
            packages_count=self.packages_count + other.packages_count,
        )


@dataclass
class PackingBucket:
    """
    Mutable pool of packing-list totals sharing one resolved key.

    Contract:
        Created by the bucket builder, drawn down in place by the
        allocation matcher, discarded at the end of the run.
    Guarantees:
        - All numeric fields are non-negative.
    """

    key: str
    quantity: Decimal = ZERO
    net_weight: Decimal = ZERO
    gross_weight: Decimal = ZERO
    packages_count: Decimal = ZERO
    line_count: int = 0

    def add(self, measures: Measures) -> None:
        self.quantity += measures.quantity
        self.net_weight += measures.net_weight
        self.gross_weight += measures.gross_weight
        self.packages_count += measures.packages_count
        self.line_count += 1

    def subtract(self, measures: Measures) -> None:
        self.quantity -= measures.quantity
        self.net_weight -= measures.net_weight
        self.gross_weight -= measures.gross_weight
        self.packages_count -= measures.packages_count

    def snapshot(self) -> Measures:
        return Measures(
            quantity=self.quantity,
            net_weight=self.net_weight,
            gross_weight=self.gross_weight,
            packages_count=self.packages_count,
        )


@dataclass(frozen=True)
class BucketSettlement:
    """How one packing bucket was used over a run.

    ``original == consumed + leftover`` for every bucket.
    """

    key: str
    original: Measures
    consumed: Measures
    leftover: Measures
    exhausted: bool


# =============================================================================
# Attribute roles
# =============================================================================


class AttributeRole(str, Enum):
    """Regulatory role an attribute plays for declaration purposes."""

    TYPE = "type"
    LENGTH = "length"
    WEIGHT = "weight"


@dataclass(frozen=True)
class AttributeNameRules:
    """
    Name tests that classify attribute names into roles.

    Tokens are matched against ``fold_name`` output (lowercase, no
    diacritics), so "Ağırlık" and "AGIRLIK" both contain "agirlik".
    """

    type_contains: tuple[str, ...] = ("tip",)
    length_prefixes: tuple[str, ...] = ("uzunluk",)
    weight_contains: tuple[str, ...] = ("weight", "agirlik", "kg")


@dataclass(frozen=True)
class AttributeRoleMap:
    """
    Explicit mapping from attribute definition ids to roles.

    ``fallback_rules`` classifies structured values whose attribute id is
    not in ``classified_ids`` (for example when the definitions could not
    be fetched) by their joined attribute name instead.
    """

    type_ids: frozenset[str] = frozenset()
    length_ids: frozenset[str] = frozenset()
    weight_ids: frozenset[str] = frozenset()
    classified_ids: frozenset[str] = frozenset()
    fallback_rules: AttributeNameRules | None = None

    def roles_for_id(self, attribute_id: str) -> frozenset[AttributeRole]:
        roles = set()
        if attribute_id in self.type_ids:
            roles.add(AttributeRole.TYPE)
        if attribute_id in self.length_ids:
            roles.add(AttributeRole.LENGTH)
        if attribute_id in self.weight_ids:
            roles.add(AttributeRole.WEIGHT)
        return frozenset(roles)


class TypeSource(str, Enum):
    """Where a line's product type came from."""

    STRUCTURED = "structured"
    EXTRA = "extra"
    PRODUCT_TYPE = "product_type"
    PLACEHOLDER = "placeholder"


@dataclass(frozen=True)
class ResolvedAttributes:
    """Regulatory type and physical attributes resolved for one product."""

    product_type: str
    type_source: TypeSource
    length_value: Decimal | str | None = None
    weight_per_unit: Decimal | None = None


# =============================================================================
# Allocation
# =============================================================================


class MatchRule(str, Enum):
    """Which bucket-key rule matched an invoice line."""

    PRODUCT_ID = "product_id"
    ALIAS = "alias"
    CODE = "code"
    UNMATCHED = "unmatched"


@dataclass(frozen=True)
class LineAllocation:
    """
    Packing totals allocated to one invoice line.

    ``available_quantity`` is the bucket quantity at the moment of
    consumption; ``consumed.quantity <= available_quantity`` always holds
    for matched lines.
    """

    line_id: str
    rule: MatchRule
    bucket_key: str | None
    available_quantity: Decimal
    consumed: Measures
    bucket_exhausted: bool = False

    @property
    def is_matched(self) -> bool:
        return self.rule != MatchRule.UNMATCHED


# =============================================================================
# Compliance
# =============================================================================


@dataclass(frozen=True)
class ComplianceSnapshot:
    """Compliance fields copied onto a declaration row.  Blank when none."""

    candidate_id: str | None = None
    tse_status: str = ""
    analysis_validity: str = ""
    tareks_no: str = ""
    report_no: str = ""
    rule: str | None = None

    @classmethod
    def from_candidate(
        cls, candidate: ComplianceCandidate | None, rule: str | None = None,
    ) -> ComplianceSnapshot:
        if candidate is None:
            return cls()
        return cls(
            candidate_id=candidate.candidate_id,
            tse_status=candidate.tse_status or "",
            analysis_validity=candidate.analysis_validity or "",
            tareks_no=candidate.tareks_no or "",
            report_no=candidate.report_no or "",
            rule=rule,
        )

    @property
    def is_blank(self) -> bool:
        return self.candidate_id is None


# =============================================================================
# Declaration output
# =============================================================================


class WeightSource(str, Enum):
    """Where a declared line's net weight came from."""

    PACKING = "packing"
    ATTRIBUTE = "attribute"
    NONE = "none"


@dataclass(frozen=True)
class DeclaredLine:
    """One invoice line after allocation, attribute and compliance resolution."""

    line: InvoiceLine
    attributes: ResolvedAttributes
    allocation: LineAllocation
    measures: Measures
    weight_source: WeightSource
    gtip_code: str
    compliance: ComplianceSnapshot


@dataclass(frozen=True)
class DeclarationRow:
    """
    One grouped declaration row.

    Unit price and compliance are representative values snapshotted from
    the first line merged into the group.  ``amount`` sums each merged
    line's own quantity times price, so it can differ from
    ``quantity * unit_price``.
    """

    sequence: int
    product_id: str | None
    product_code: str
    product_name: str
    product_type: str
    length_value: Decimal | str | None
    gtip_code: str
    quantity: Decimal
    unit_price: Decimal
    net_weight: Decimal
    gross_weight: Decimal
    packages_count: Decimal
    amount: Decimal
    compliance: ComplianceSnapshot
    line_ids: tuple[str, ...] = ()


@dataclass(frozen=True)
class SummaryTotals:
    """Summed quantity, amount, weights and packages."""

    quantity: Decimal = ZERO
    amount: Decimal = ZERO
    net_weight: Decimal = ZERO
    gross_weight: Decimal = ZERO
    packages_count: Decimal = ZERO

    def __add__(self, other: SummaryTotals) -> SummaryTotals:
        return SummaryTotals(
            quantity=self.quantity + other.quantity,
            amount=self.amount + other.amount,
            net_weight=self.net_weight + other.net_weight,
            gross_weight=self.gross_weight + other.gross_weight,
            packages_count=self.packages_count + other.packages_count,
        )


@dataclass(frozen=True)
class TypeSummary:
    product_type: str
    totals: SummaryTotals


@dataclass(frozen=True)
class GtipSummary:
    gtip_code: str
    types: tuple[TypeSummary, ...]
    total: SummaryTotals


@dataclass(frozen=True)
class GtipTypeSummary:
    """Per-GTIP, per-type totals plus one grand total."""

    groups: tuple[GtipSummary, ...] = ()
    grand_total: SummaryTotals = field(default_factory=SummaryTotals)

    def find(self, gtip_code: str, product_type: str) -> SummaryTotals | None:
        for group in self.groups:
            if group.gtip_code != gtip_code:
                continue
            for type_summary in group.types:
                if type_summary.product_type == product_type:
                    return type_summary.totals
        return None


# =============================================================================
# Engine settings and result
# =============================================================================


@dataclass(frozen=True)
class EngineSettings:
    """Tunable behavior of one declaration run."""

    type_placeholder: str = "Belirtilecek"
    gtip_placeholder: str = "Belirlenmedi"
    exhaustion_epsilon: Decimal = Decimal("0.0001")
    weight_fallback: bool = True
    name_rules: AttributeNameRules = field(default_factory=AttributeNameRules)


@dataclass(frozen=True)
class DeclarationResult:
    """Complete output of one declaration run."""

    order_id: str
    as_of: date
    rows: tuple[DeclarationRow, ...]
    summary: GtipTypeSummary
    allocations: tuple[LineAllocation, ...]
    settlements: tuple[BucketSettlement, ...]
    degraded_datasets: tuple[str, ...] = ()

    @property
    def unmatched_line_ids(self) -> tuple[str, ...]:
        return tuple(a.line_id for a in self.allocations if not a.is_matched)

    @property
    def is_degraded(self) -> bool:
        return bool(self.degraded_datasets)
