"""
Module: customs_engines.compliance
Responsibility:
    Select the single applicable compliance record (TSE status, analysis
    validity, TAREKS and report numbers) for a product type, origin
    country and as-of date.

Architecture position:
    Engines -- pure calculation layer, zero I/O.  The as-of date is an
    explicit parameter; this module never reads the clock.

Invariants enforced:
    - ``select_compliance`` is a pure function of its five inputs.
    - Candidate set: records with the line's type id; only when the line
      has no type id, records whose joined type name equals the resolved
      type name (case-insensitive).
    - Selection ladder, first hit wins:
        1. country match and date fit
        2. generic (no country) and date fit
        3. country match, ignoring date
        4. first candidate in input order
        5. None for an empty candidate set

Usage:
    from customs_engines.compliance import select_compliance

    record = select_compliance(
        product_type_id="t1", product_type_name=None,
        supplier_country="CN", as_of=date(2024, 6, 1),
        candidates=candidates,
    )
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from dataclasses import dataclass
from datetime import date

from customs_engines.tracer import traced_engine
from customs_kernel.domain.records import ComplianceCandidate
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.compliance")

SelectionRule = Callable[
    [Sequence[ComplianceCandidate], "str | None", date],
    "ComplianceCandidate | None",
]


def _first(candidates, predicate) -> ComplianceCandidate | None:
    return next((c for c in candidates if predicate(c)), None)


def country_and_date(candidates, country, as_of):
    return _first(candidates, lambda c: c.matches_country(country) and c.is_effective(as_of))


def generic_and_date(candidates, country, as_of):
    return _first(candidates, lambda c: c.is_generic() and c.is_effective(as_of))


def country_any_date(candidates, country, as_of):
    return _first(candidates, lambda c: c.matches_country(country))


def first_candidate(candidates, country, as_of):
    return candidates[0] if candidates else None


SELECTION_RULES: tuple[tuple[str, SelectionRule], ...] = (
    ("country_and_date", country_and_date),
    ("generic_and_date", generic_and_date),
    ("country_any_date", country_any_date),
    ("first_candidate", first_candidate),
)


@dataclass(frozen=True)
class ComplianceMatch:
    """The selected record and the ladder rule that selected it."""

    candidate: ComplianceCandidate | None
    rule: str | None


def _same_type_name(left: str | None, right: str | None) -> bool:
    if not left or not right:
        return False
    return left.strip().casefold() == right.strip().casefold()


def candidate_set(
    product_type_id: str | None,
    product_type_name: str | None,
    candidates: Sequence[ComplianceCandidate],
) -> list[ComplianceCandidate]:
    """Records applicable to the line's type, in input order."""
    if product_type_id:
        return [c for c in candidates if c.product_type_id == product_type_id]
    return [c for c in candidates if _same_type_name(c.product_type_name, product_type_name)]


def match_compliance(
    *,
    product_type_id: str | None,
    product_type_name: str | None,
    supplier_country: str | None,
    as_of: date,
    candidates: Sequence[ComplianceCandidate],
) -> ComplianceMatch:
    """Run the selection ladder and report which rule matched."""
    pool = candidate_set(product_type_id, product_type_name, candidates)
    for name, rule in SELECTION_RULES:
        selected = rule(pool, supplier_country, as_of)
        if selected is not None:
            return ComplianceMatch(candidate=selected, rule=name)
    return ComplianceMatch(candidate=None, rule=None)


def select_compliance(
    *,
    product_type_id: str | None,
    product_type_name: str | None,
    supplier_country: str | None,
    as_of: date,
    candidates: Sequence[ComplianceCandidate],
) -> ComplianceCandidate | None:
    """The applicable compliance record, or None when no candidate exists."""
    return match_compliance(
        product_type_id=product_type_id,
        product_type_name=product_type_name,
        supplier_country=supplier_country,
        as_of=as_of,
        candidates=candidates,
    ).candidate


class ComplianceResolver:
    """Resolves compliance for every line of one order.

    Binds the supplier country, as-of date and candidate list once; each
    ``resolve`` call is still a pure ladder evaluation.
    """

    def __init__(
        self,
        candidates: Sequence[ComplianceCandidate],
        supplier_country: str | None,
        as_of: date,
    ):
        self._candidates = tuple(candidates)
        self._supplier_country = supplier_country
        self._as_of = as_of

    def resolve(
        self, product_type_id: str | None, product_type_name: str | None,
    ) -> ComplianceMatch:
        match = match_compliance(
            product_type_id=product_type_id,
            product_type_name=product_type_name,
            supplier_country=self._supplier_country,
            as_of=self._as_of,
            candidates=self._candidates,
        )
        if match.candidate is None:
            logger.debug("compliance_no_candidate", extra={
                "product_type_id": product_type_id,
                "product_type_name": product_type_name,
            })
        return match

    @traced_engine("compliance", "1.0", fingerprint_fields=("type_keys",))
    def resolve_many(
        self,
        *,
        type_keys: Sequence[tuple[str | None, str | None]],
    ) -> tuple[ComplianceMatch, ...]:
        """Resolve a batch of ``(type_id, type_name)`` pairs in order."""
        matches = tuple(self.resolve(type_id, type_name) for type_id, type_name in type_keys)
        logger.info("compliance_resolved", extra={
            "line_count": len(matches),
            "blank_count": sum(1 for m in matches if m.candidate is None),
        })
        return matches
