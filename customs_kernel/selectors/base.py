"""
Base class for read-only selectors.

A selector runs queries on a Session it does not own and returns frozen
records from ``customs_kernel.domain.records``, never ORM instances.  It
never adds, deletes, flushes or commits.

Database errors are reported per dataset: the ``_fetching`` block turns
any SQLAlchemyError into DeclarationSourceError so callers can tell a
missing packing list apart from a lost connection on invoice lines.

Each fetch runs inside its own SAVEPOINT.  A failed statement is rolled
back to that savepoint, so on PostgreSQL the enclosing transaction stays
usable and the datasets fetched after it still load.
"""

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from customs_kernel.exceptions import DeclarationSourceError
from customs_kernel.logging_config import get_logger

logger = get_logger("selectors")


class BaseSelector:
    """Holds the caller's Session and wraps query failures."""

    def __init__(self, session: Session):
        self.session = session

    @contextmanager
    def _fetching(self, dataset: str) -> Iterator[None]:
        try:
            with self.session.begin_nested():
                yield
        except SQLAlchemyError as exc:
            logger.error("declaration_fetch_failed", extra={
                "selector": type(self).__name__,
                "dataset": dataset,
                "error": str(exc),
            })
            raise DeclarationSourceError(dataset, str(exc)) from exc
