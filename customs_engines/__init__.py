"""
Module: customs_engines
Responsibility:
    Package entrypoint that re-exports the public symbols of the pure
    declaration engines.  This is the canonical import surface for
    customs_services.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import customs_kernel domain records, logging and sibling
    engine modules.  MUST NOT import customs_services, customs_config or
    the ORM.

Invariants enforced:
    - Purity: engines NEVER call ``datetime.now()`` or ``date.today()``.
      The as-of date is passed in by the caller.
    - Decimal-only arithmetic for quantities, weights and prices.
    - Determinism: identical inputs always produce identical outputs.

Audit relevance:
    Every engine entrypoint is traced via ``@traced_engine`` (see
    ``customs_engines.tracer``), emitting CUSTOMS_ENGINE_TRACE records.

Usage:
    from customs_engines import DeclarationEngine, EngineSettings

    result = DeclarationEngine(EngineSettings()).run(order=..., ..., as_of=...)
"""

from customs_kernel.logging_config import get_logger

logger = get_logger("engines")

from customs_engines.allocation import (
    AllocationMatcher,
    proportional_share,
    resolve_bucket_key,
)
from customs_engines.attributes import (
    AttributeResolver,
    discover_role_map,
    roles_for_name,
)
from customs_engines.compliance import (
    ComplianceMatch,
    ComplianceResolver,
    match_compliance,
    select_compliance,
)
from customs_engines.declaration import DeclarationAggregator, build_summary
from customs_engines.normalization import (
    collation_key,
    fold_name,
    normalize_key,
    parse_decimal,
)
from customs_engines.packing import PackingPool, build_packing_pool
from customs_engines.reconciliation import DeclarationEngine, apply_weight_fallback
from customs_engines.types import (
    AttributeNameRules,
    AttributeRole,
    AttributeRoleMap,
    BucketSettlement,
    ComplianceSnapshot,
    DeclarationResult,
    DeclarationRow,
    DeclaredLine,
    EngineSettings,
    GtipSummary,
    GtipTypeSummary,
    LineAllocation,
    MatchRule,
    Measures,
    PackingBucket,
    ResolvedAttributes,
    SummaryTotals,
    TypeSource,
    TypeSummary,
    WeightSource,
)

__all__ = [
    # Normalization
    "normalize_key",
    "fold_name",
    "parse_decimal",
    "collation_key",
    # Packing
    "PackingBucket",
    "PackingPool",
    "build_packing_pool",
    "BucketSettlement",
    # Attributes
    "AttributeRole",
    "AttributeNameRules",
    "AttributeRoleMap",
    "AttributeResolver",
    "ResolvedAttributes",
    "TypeSource",
    "discover_role_map",
    "roles_for_name",
    # Allocation
    "AllocationMatcher",
    "LineAllocation",
    "MatchRule",
    "Measures",
    "proportional_share",
    "resolve_bucket_key",
    # Compliance
    "ComplianceMatch",
    "ComplianceResolver",
    "ComplianceSnapshot",
    "match_compliance",
    "select_compliance",
    # Declaration
    "DeclarationAggregator",
    "DeclarationRow",
    "DeclaredLine",
    "GtipSummary",
    "GtipTypeSummary",
    "SummaryTotals",
    "TypeSummary",
    "WeightSource",
    "build_summary",
    # Pipeline
    "DeclarationEngine",
    "DeclarationResult",
    "EngineSettings",
    "apply_weight_fallback",
]
