"""
Module: customs_engines.allocation
Responsibility:
    Match each invoice line to a packing bucket and draw the bucket down
    proportionally, so that N invoice lines can split one packing total.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Key resolution is an ordered rule chain (product id, alias, code);
      the first rule that yields a live bucket wins.
    - No over-consumption: ``consumed.quantity <= available_quantity`` at
      every step.
    - Conservation: for every bucket, the consumed totals plus the leftover
      equal the bucket's original totals.
    - A bucket whose quantity falls to the exhaustion epsilon or below is
      removed together with every alias that targets it.
    - Unmatched lines are not errors: they keep their invoice quantity with
      zero weights and packages.

Failure modes:
    - None raised.  Unmatched lines are logged at INFO.

Usage:
    from customs_engines.allocation import AllocationMatcher

    matcher = AllocationMatcher()
    allocations = matcher.allocate(invoice_lines=lines, pool=pool)
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from decimal import Decimal

from customs_engines.normalization import normalize_key
from customs_engines.packing import PackingPool, code_key, product_key
from customs_engines.tracer import traced_engine
from customs_engines.types import (
    ZERO,
    LineAllocation,
    MatchRule,
    Measures,
    PackingBucket,
)
from customs_kernel.domain.records import InvoiceLine
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.allocation")

DEFAULT_EXHAUSTION_EPSILON = Decimal("0.0001")

KeyRule = Callable[[InvoiceLine, PackingPool], "str | None"]


# ---------------------------------------------------------------------------
# Bucket key rules
# ---------------------------------------------------------------------------


def match_by_product_id(line: InvoiceLine, pool: PackingPool) -> str | None:
    if not line.product_id:
        return None
    key = product_key(line.product_id)
    return key if key in pool else None


def match_by_alias(line: InvoiceLine, pool: PackingPool) -> str | None:
    return pool.resolve_alias(normalize_key(line.product_code))


def match_by_code(line: InvoiceLine, pool: PackingPool) -> str | None:
    normalized = normalize_key(line.product_code)
    if not normalized:
        return None
    key = code_key(normalized)
    return key if key in pool else None


KEY_RULES: tuple[tuple[MatchRule, KeyRule], ...] = (
    (MatchRule.PRODUCT_ID, match_by_product_id),
    (MatchRule.ALIAS, match_by_alias),
    (MatchRule.CODE, match_by_code),
)


def resolve_bucket_key(
    line: InvoiceLine,
    pool: PackingPool,
    rules: Sequence[tuple[MatchRule, KeyRule]] = KEY_RULES,
) -> tuple[MatchRule, str | None]:
    """First rule that yields a live bucket key, or (UNMATCHED, None)."""
    for rule, matcher in rules:
        key = matcher(line, pool)
        if key is not None:
            return rule, key
    return MatchRule.UNMATCHED, None


# ---------------------------------------------------------------------------
# Consumption
# ---------------------------------------------------------------------------


def proportional_share(bucket: PackingBucket, need: Decimal) -> Measures:
    """
    Portion of ``bucket`` an invoice line needing ``need`` takes.

    ``need <= 0`` takes everything available.  Weights and packages follow
    the quantity ratio ``used / available``; a full draw takes the bucket's
    totals exactly.
    """
    available = bucket.quantity
    if available <= ZERO:
        return Measures()
    if need <= ZERO or need >= available:
        return bucket.snapshot()
    return Measures(
        quantity=need,
        net_weight=bucket.net_weight * need / available,
        gross_weight=bucket.gross_weight * need / available,
        packages_count=bucket.packages_count * need / available,
    )


class AllocationMatcher:
    """
    Allocates packing buckets to invoice lines in invoice order.

    Contract:
        ``allocate`` mutates the given ``PackingPool`` in place and returns
        one ``LineAllocation`` per invoice line, in input order.
    Guarantees:
        - Deterministic: same lines and pool give the same allocations.
    """

    def __init__(
        self,
        exhaustion_epsilon: Decimal = DEFAULT_EXHAUSTION_EPSILON,
        rules: Sequence[tuple[MatchRule, KeyRule]] = KEY_RULES,
    ):
        self._epsilon = exhaustion_epsilon
        self._rules = tuple(rules)

    @traced_engine("allocation", "1.0", fingerprint_fields=("invoice_lines",))
    def allocate(
        self,
        *,
        invoice_lines: Sequence[InvoiceLine],
        pool: PackingPool,
    ) -> tuple[LineAllocation, ...]:
        logger.info("allocation_started", extra={
            "line_count": len(invoice_lines),
            "bucket_count": len(pool),
        })

        allocations = tuple(self._allocate_line(line, pool) for line in invoice_lines)

        unmatched = [a.line_id for a in allocations if not a.is_matched]
        if unmatched:
            logger.info("allocation_unmatched_lines", extra={
                "unmatched_count": len(unmatched),
                "line_ids": unmatched,
            })
        logger.info("allocation_completed", extra={
            "line_count": len(allocations),
            "matched_count": len(allocations) - len(unmatched),
            "remaining_buckets": len(pool),
        })
        return allocations

    def _allocate_line(self, line: InvoiceLine, pool: PackingPool) -> LineAllocation:
        rule, key = resolve_bucket_key(line, pool, self._rules)
        if key is None:
            return LineAllocation(
                line_id=line.line_id,
                rule=MatchRule.UNMATCHED,
                bucket_key=None,
                available_quantity=ZERO,
                consumed=Measures(quantity=line.quantity),
            )

        bucket = pool.buckets[key]
        available = bucket.quantity
        consumed = proportional_share(bucket, line.quantity)
        pool.record_consumption(key, consumed)

        exhausted = bucket.quantity <= self._epsilon
        if exhausted:
            pool.remove(key)

        logger.debug("allocation_line_matched", extra={
            "line_id": line.line_id,
            "rule": rule.value,
            "bucket_key": key,
            "available_quantity": str(available),
            "used_quantity": str(consumed.quantity),
        })
        return LineAllocation(
            line_id=line.line_id,
            rule=rule,
            bucket_key=key,
            available_quantity=available,
            consumed=consumed,
            bucket_exhausted=exhausted,
        )
