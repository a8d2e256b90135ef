"""
Engine invocation tracing.

``@traced_engine`` wraps an engine entrypoint and emits one
CUSTOMS_ENGINE_TRACE record per call with the engine name and version, a
fingerprint of the selected keyword inputs, the size of every sequence
input, how long the call took and whether it raised.

Two runs over the same order data produce the same fingerprint, so a
trace can be matched to a replay without storing the inputs themselves.
Records and engine results are frozen dataclasses; they are fingerprinted
field by field, and Decimals by value (``Decimal("1.50")`` and
``Decimal("1.5")`` hash alike).

The decorator only reads kwargs and writes a log record.  It never changes
inputs or results.
"""

from __future__ import annotations

import dataclasses
import functools
import hashlib
import logging
import time
from collections.abc import Callable, Mapping, Sequence
from datetime import date
from decimal import Decimal
from enum import Enum
from typing import Any

# Kernel logger namespace; engines never configure logging themselves.
_logger = logging.getLogger("customs_kernel.engines.tracer")

FINGERPRINT_LENGTH = 16


def _canonical_decimal(value: Decimal) -> str:
    if not value.is_finite():
        return str(value)
    if value.is_zero():
        return "0"
    return format(value.normalize(), "f")


def _canonicalize(value: Any) -> str:
    """Stable text form of an engine input."""
    if value is None:
        return "null"
    if isinstance(value, Enum):
        return _canonicalize(value.value)
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, Decimal):
        return _canonical_decimal(value)
    if isinstance(value, (int, float)):
        return _canonical_decimal(Decimal(str(value)))
    if isinstance(value, str):
        return repr(value)
    if isinstance(value, date):
        return value.isoformat()
    if dataclasses.is_dataclass(value) and not isinstance(value, type):
        fields = ",".join(
            f"{f.name}={_canonicalize(getattr(value, f.name))}"
            for f in dataclasses.fields(value)
        )
        return f"{type(value).__name__}({fields})"
    if isinstance(value, Mapping):
        items = sorted(value.items(), key=lambda kv: str(kv[0]))
        return "{" + ",".join(f"{k}:{_canonicalize(v)}" for k, v in items) + "}"
    if isinstance(value, (set, frozenset)):
        return "{" + ",".join(sorted(_canonicalize(v) for v in value)) + "}"
    if isinstance(value, Sequence):
        return "[" + ",".join(_canonicalize(v) for v in value) + "]"
    return repr(value)


def compute_input_fingerprint(
    fingerprint_fields: tuple[str, ...],
    kwargs: dict[str, Any],
) -> str:
    """SHA-256 prefix over the named kwargs; absent kwargs hash as null."""
    canonical = "|".join(
        f"{name}={_canonicalize(kwargs.get(name))}" for name in fingerprint_fields
    )
    return hashlib.sha256(canonical.encode("utf-8")).hexdigest()[:FINGERPRINT_LENGTH]


def _input_sizes(kwargs: dict[str, Any]) -> dict[str, int]:
    return {
        name: len(value)
        for name, value in kwargs.items()
        if isinstance(value, (Sequence, Mapping, set, frozenset))
        and not isinstance(value, (str, bytes))
    }


def traced_engine(
    engine_name: str,
    engine_version: str,
    fingerprint_fields: tuple[str, ...] = (),
) -> Callable:
    """Decorate an engine entrypoint so each call emits CUSTOMS_ENGINE_TRACE.

    Args:
        engine_name: Engine identifier, e.g. "allocation".
        engine_version: Engine version, e.g. "1.0".
        fingerprint_fields: Keyword arguments hashed into input_fingerprint.
    """

    def decorator(func: Callable) -> Callable:
        @functools.wraps(func)
        def wrapper(*args: Any, **kwargs: Any) -> Any:
            fingerprint = (
                compute_input_fingerprint(fingerprint_fields, kwargs)
                if fingerprint_fields else ""
            )
            outcome = "error"
            started = time.monotonic()
            try:
                result = func(*args, **kwargs)
                outcome = "ok"
                return result
            finally:
                _logger.info(
                    "CUSTOMS_ENGINE_TRACE",
                    extra={
                        "trace_type": "CUSTOMS_ENGINE_TRACE",
                        "engine_name": engine_name,
                        "engine_version": engine_version,
                        "input_fingerprint": fingerprint,
                        "input_sizes": _input_sizes(kwargs),
                        "outcome": outcome,
                        "duration_ms": round((time.monotonic() - started) * 1000, 2),
                        "function": func.__qualname__,
                    },
                )

        return wrapper

    return decorator
