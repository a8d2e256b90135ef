"""
Module: customs_engines.packing
Responsibility:
    Aggregate raw packing-list lines into a pool of keyed buckets, and
    record the code aliases that let catalog codes find name-keyed buckets.

Architecture position:
    Engines -- pure calculation layer, zero I/O.
    May only import customs_kernel/domain records and sibling engine modules.

Invariants enforced:
    - Bucket keys carry a prefix: ``pid:<product_id>`` for catalog-linked
      lines, ``code:<normalized name>`` for free-text lines.
    - A bucket accumulates the exact sum of every line routed to it.
    - Every line with a non-empty normalized name records the alias
      ``name -> bucket key``; a later line with the same name re-points it.
    - Removing a bucket prunes every alias that targets it.
    - The pool reports, per bucket, ``original == consumed + leftover``.
    - Negative numerics are treated as zero; packing totals never go
      negative.

Failure modes:
    - Lines with neither a product id nor a usable name are skipped and
      logged (``packing_line_unkeyed``).

Usage:
    from customs_engines.packing import build_packing_pool

    pool = build_packing_pool(packing_lines=lines)
    bucket = pool.get("pid:42")
"""

from __future__ import annotations

from collections.abc import Iterator, Sequence
from dataclasses import dataclass, field
from decimal import Decimal

from customs_engines.normalization import normalize_key
from customs_engines.tracer import traced_engine
from customs_engines.types import ZERO, BucketSettlement, Measures, PackingBucket
from customs_kernel.domain.records import PackingLine
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.packing")

PRODUCT_KEY_PREFIX = "pid:"
CODE_KEY_PREFIX = "code:"


def product_key(product_id: str) -> str:
    return f"{PRODUCT_KEY_PREFIX}{product_id}"


def code_key(normalized_code: str) -> str:
    return f"{CODE_KEY_PREFIX}{normalized_code}"


def _non_negative(value: Decimal | None) -> Decimal:
    if value is None or value < ZERO:
        return ZERO
    return value


@dataclass
class PackingPool:
    """
    Keyed packing buckets for one declaration run.

    Contract:
        Built by ``build_packing_pool``; the allocation matcher draws it
        down through ``record_consumption``.  Not shared between runs.
    Guarantees:
        - Every alias targets a live bucket.
        - ``settlements()`` covers every bucket that was ever built,
          including those removed as exhausted.
    """

    buckets: dict[str, PackingBucket] = field(default_factory=dict)
    aliases: dict[str, str] = field(default_factory=dict)
    _originals: dict[str, Measures] = field(default_factory=dict)
    _consumed: dict[str, Measures] = field(default_factory=dict)
    _residue: dict[str, Measures] = field(default_factory=dict)

    def __contains__(self, key: str) -> bool:
        return key in self.buckets

    def __len__(self) -> int:
        return len(self.buckets)

    def __iter__(self) -> Iterator[PackingBucket]:
        return iter(self.buckets.values())

    def get(self, key: str) -> PackingBucket | None:
        return self.buckets.get(key)

    def resolve_alias(self, normalized_code: str) -> str | None:
        """The bucket key a normalized code is aliased to, if still live."""
        if not normalized_code:
            return None
        target = self.aliases.get(normalized_code)
        if target is None or target not in self.buckets:
            return None
        return target

    def record_consumption(self, key: str, consumed: Measures) -> None:
        bucket = self.buckets[key]
        bucket.subtract(consumed)
        self._consumed[key] = self._consumed.get(key, Measures()) + consumed

    def remove(self, key: str) -> None:
        """Drop an exhausted bucket, keeping its residue for settlement."""
        bucket = self.buckets.pop(key)
        self._residue[key] = bucket.snapshot()
        self.aliases = {
            code: target for code, target in self.aliases.items() if target != key
        }
        logger.debug("packing_bucket_exhausted", extra={
            "bucket_key": key,
            "residual_quantity": str(bucket.quantity),
        })

    def settlements(self) -> tuple[BucketSettlement, ...]:
        result = []
        for key, original in self._originals.items():
            live = self.buckets.get(key)
            leftover = live.snapshot() if live is not None else self._residue[key]
            result.append(BucketSettlement(
                key=key,
                original=original,
                consumed=self._consumed.get(key, Measures()),
                leftover=leftover,
                exhausted=live is None,
            ))
        return tuple(result)


def _route(line: PackingLine) -> tuple[str | None, str]:
    """Bucket key for a packing line, plus its normalized name."""
    normalized_name = normalize_key(line.product_name_raw)
    if line.product_id:
        return product_key(line.product_id), normalized_name
    if normalized_name:
        return code_key(normalized_name), normalized_name
    return None, normalized_name


@traced_engine("packing", "1.0", fingerprint_fields=("packing_lines",))
def build_packing_pool(*, packing_lines: Sequence[PackingLine]) -> PackingPool:
    """
    Aggregate packing lines into keyed buckets.

    Preconditions:
        ``packing_lines`` is in source order; the last line naming a code
        decides where its alias points.
    Postconditions:
        Every keyed line contributes to exactly one bucket.  Buckets with a
        zero quantity after aggregation are removed at once and reported
        as exhausted in the settlement.
    """
    pool = PackingPool()
    skipped = 0

    for line in packing_lines:
        key, normalized_name = _route(line)
        if key is None:
            skipped += 1
            logger.warning("packing_line_unkeyed", extra={
                "packing_list_id": line.packing_list_id,
            })
            continue

        bucket = pool.buckets.get(key)
        if bucket is None:
            bucket = PackingBucket(key=key)
            pool.buckets[key] = bucket
        bucket.add(Measures(
            quantity=_non_negative(line.quantity),
            net_weight=_non_negative(line.net_weight),
            gross_weight=_non_negative(line.gross_weight),
            packages_count=_non_negative(line.packages_count),
        ))

        if normalized_name:
            pool.aliases[normalized_name] = key

    pool._originals = {key: b.snapshot() for key, b in pool.buckets.items()}
    for key in [k for k, b in pool.buckets.items() if b.quantity <= ZERO]:
        pool.remove(key)

    logger.info("packing_pool_built", extra={
        "line_count": len(packing_lines),
        "bucket_count": len(pool.buckets),
        "alias_count": len(pool.aliases),
        "skipped_count": skipped,
    })
    return pool
