"""
customs_services.declaration_service -- Build a customs declaration for one order.

Responsibility:
    Validates the order identifier, fetches the order's declaration inputs
    through a ``DeclarationSource``, takes the as-of date from the injected
    Clock, and runs the pure ``DeclarationEngine``.

Architecture position:
    Services -- stateful orchestration over engines + kernel.
    The only layer that reads the clock and talks to a data source.

Invariants enforced:
    - An invalid identifier is rejected before anything is fetched.
    - The invoice-line set is the primary input: its failure aborts the run.
    - Secondary sets (packing lines, attribute definitions and values,
      compliance records) degrade to empty collections on failure; the
      result names every degraded dataset.
    - Every log record emitted during a request carries ``order_id``.

Failure modes:
    - InvalidOrderIdentifierError: missing or malformed order id.
    - OrderNotFoundError: no order header for the id.
    - InvoiceLinesUnavailableError: invoice lines could not be fetched.
    - DeclarationSourceError: the order header fetch itself failed.

Usage:
    from customs_kernel.db import read_only_session
    from customs_services import DeclarationService

    with read_only_session() as session:
        service = DeclarationService.for_session(session, config, clock)
        result = service.build_declaration("6f1c...")
"""

from __future__ import annotations

import time
from collections.abc import Callable, Sequence
from dataclasses import replace
from typing import TypeVar
from uuid import UUID

from sqlalchemy.orm import Session

from customs_config import get_active_config
from customs_config.bridges import build_engine_settings
from customs_config.schema import DeclarationConfig
from customs_engines.reconciliation import DeclarationEngine
from customs_engines.types import AttributeRoleMap, DeclarationResult
from customs_kernel.domain.clock import Clock, SystemClock
from customs_kernel.exceptions import (
    DeclarationSourceError,
    InvalidOrderIdentifierError,
    InvoiceLinesUnavailableError,
    OrderNotFoundError,
)
from customs_kernel.logging_config import LogContext, get_logger
from customs_kernel.selectors import DeclarationSelector
from customs_services.declaration_source import DeclarationSource

logger = get_logger("services.declaration")

T = TypeVar("T")


def validate_order_id(raw_value: object) -> str:
    """Canonical string form of an order UUID.

    Raises:
        InvalidOrderIdentifierError: if the value is missing or not a UUID.
    """
    if isinstance(raw_value, UUID):
        return str(raw_value)
    if not isinstance(raw_value, str) or not raw_value.strip():
        raise InvalidOrderIdentifierError(raw_value)
    try:
        return str(UUID(raw_value.strip()))
    except ValueError:
        raise InvalidOrderIdentifierError(raw_value) from None


def unique_product_ids(lines: Sequence) -> list[str]:
    """Product ids of ``lines`` in first-seen order, without repeats."""
    seen: dict[str, None] = {}
    for line in lines:
        if line.product_id:
            seen.setdefault(line.product_id, None)
    return list(seen)


class DeclarationService:
    """
    Builds declarations over a data source.

    Contract:
        ``build_declaration`` is independent per call; the service holds no
        per-order state.

    Non-goals:
        - Does NOT render spreadsheets or format numbers.
        - Does NOT write anything back to the data source.
    """

    def __init__(
        self,
        source: DeclarationSource,
        config: DeclarationConfig | None = None,
        clock: Clock | None = None,
        role_map: AttributeRoleMap | None = None,
    ):
        self._source = source
        self._config = config or get_active_config()
        self._clock = clock or SystemClock()
        self._role_map = role_map
        self._engine = DeclarationEngine(build_engine_settings(self._config))

    @classmethod
    def for_session(
        cls,
        session: Session,
        config: DeclarationConfig | None = None,
        clock: Clock | None = None,
    ) -> DeclarationService:
        """Service reading from the database through ``session``.

        Product-id lookups are chunked by the configured ``fetch.chunk_size``.
        """
        config = config or get_active_config()
        selector = DeclarationSelector(session, chunk_size=config.fetch.chunk_size)
        return cls(selector, config, clock)

    @property
    def config(self) -> DeclarationConfig:
        return self._config

    def build_declaration(self, order_id: object) -> DeclarationResult:
        """
        Build the declaration for one order.

        Raises:
            InvalidOrderIdentifierError, OrderNotFoundError,
            InvoiceLinesUnavailableError, DeclarationSourceError.
        """
        canonical_id = validate_order_id(order_id)

        with LogContext.bind(order_id=canonical_id):
            t0 = time.monotonic()
            logger.info("declaration_requested", extra={
                "config_id": self._config.config_id,
                "config_checksum": self._config.checksum,
            })

            header = self._source.get_order_header(canonical_id)
            if header is None:
                logger.warning("declaration_order_not_found")
                raise OrderNotFoundError(canonical_id)

            try:
                invoice_lines = list(self._source.get_invoice_lines(canonical_id))
            except DeclarationSourceError as exc:
                logger.error("declaration_invoice_lines_unavailable", extra={
                    "reason": exc.reason,
                })
                raise InvoiceLinesUnavailableError(canonical_id, exc.reason) from exc

            degraded: list[str] = []
            product_ids = unique_product_ids(invoice_lines)

            packing_lines = self._fetch_secondary(
                "packing_lines", lambda: self._source.get_packing_lines(canonical_id), degraded,
            )
            definitions = self._fetch_secondary(
                "attribute_definitions", self._source.get_attribute_definitions, degraded,
            )
            structured_values = self._fetch_secondary(
                "attribute_values",
                lambda: self._source.get_structured_attribute_values(product_ids),
                degraded,
            ) if product_ids else []
            extra_values = self._fetch_secondary(
                "extra_attributes",
                lambda: self._source.get_extra_attribute_values(product_ids),
                degraded,
            ) if product_ids else []
            candidates = self._fetch_secondary(
                "compliance", self._source.get_compliance_candidates, degraded,
            )

            role_map = self._role_map or self._engine.resolve_role_map(definitions)
            as_of = self._clock.today()

            result = self._engine.run(
                order=header,
                invoice_lines=invoice_lines,
                packing_lines=packing_lines,
                attribute_definitions=definitions,
                structured_values=structured_values,
                extra_values=extra_values,
                compliance_candidates=candidates,
                as_of=as_of,
                role_map=role_map,
            )
            result = replace(result, degraded_datasets=tuple(degraded))

            duration_ms = round((time.monotonic() - t0) * 1000, 2)
            logger.info("declaration_completed", extra={
                "row_count": len(result.rows),
                "unmatched_count": len(result.unmatched_line_ids),
                "degraded_datasets": list(result.degraded_datasets),
                "as_of": as_of.isoformat(),
                "duration_ms": duration_ms,
            })
            return result

    def _fetch_secondary(
        self,
        dataset: str,
        fetch: Callable[[], Sequence[T]],
        degraded: list[str],
    ) -> list[T]:
        try:
            return list(fetch())
        except DeclarationSourceError as exc:
            logger.warning("declaration_dataset_degraded", extra={
                "dataset": dataset,
                "reason": exc.reason,
            })
            degraded.append(dataset)
            return []
