"""
Configuration Loader (``customs_config.loader``).

Responsibility
--------------
Loads the declaration settings YAML file and parses it into the frozen
``customs_config.schema`` dataclasses.  Runtime callers use
``customs_config.get_active_config()`` instead of calling this directly.

Invariants enforced
-------------------
* Every parsed object is a frozen dataclass from ``schema.py``.
* ``compute_checksum`` produces a deterministic SHA-256 hash of the
  source document.

Failure modes
-------------
* Missing YAML file  -> ``FileNotFoundError`` propagates.
* Malformed YAML  -> ``yaml.YAMLError`` propagates.
* Missing required keys  -> ``KeyError`` propagates.
* Non-numeric epsilon or chunk size  -> ``ValueError``.
"""

from __future__ import annotations

import hashlib
import json
from decimal import Decimal, InvalidOperation
from pathlib import Path
from typing import Any

import yaml

from customs_config.schema import (
    AllocationSettings,
    AttributeRoleRules,
    DeclarationConfig,
    FetchSettings,
    Placeholders,
)

CONFIG_FILE_NAME = "declaration.yaml"


def load_yaml_file(path: Path) -> dict[str, Any]:
    """
    Load a single YAML file and return its contents as a dict.

    Raises:
        FileNotFoundError: if the file does not exist.
        yaml.YAMLError: if the file contains invalid YAML.
    """
    with open(path, encoding="utf-8") as f:
        return yaml.safe_load(f) or {}


def parse_decimal_setting(value: Any, name: str) -> Decimal:
    """Parse a numeric setting; YAML floats are read through ``str``."""
    try:
        return Decimal(str(value))
    except InvalidOperation:
        raise ValueError(f"{name} must be numeric, got {value!r}") from None


def _tokens(values: Any) -> tuple[str, ...]:
    if values is None:
        return ()
    if isinstance(values, str):
        return (values,)
    return tuple(str(v) for v in values)


def parse_attribute_roles(data: dict[str, Any]) -> AttributeRoleRules:
    """Parse AttributeRoleRules from a dict; absent keys keep defaults."""
    defaults = AttributeRoleRules()
    return AttributeRoleRules(
        type_contains=_tokens(data.get("type_contains", defaults.type_contains)),
        length_prefixes=_tokens(data.get("length_prefixes", defaults.length_prefixes)),
        weight_contains=_tokens(data.get("weight_contains", defaults.weight_contains)),
    )


def parse_placeholders(data: dict[str, Any]) -> Placeholders:
    defaults = Placeholders()
    return Placeholders(
        product_type=str(data.get("product_type", defaults.product_type)),
        gtip_code=str(data.get("gtip_code", defaults.gtip_code)),
    )


def parse_allocation(data: dict[str, Any]) -> AllocationSettings:
    weight_fallback = data.get("weight_fallback", True)
    if not isinstance(weight_fallback, bool):
        raise ValueError(
            f"allocation.weight_fallback must be true or false, got {weight_fallback!r}"
        )
    return AllocationSettings(
        exhaustion_epsilon=parse_decimal_setting(
            data.get("exhaustion_epsilon", "0.0001"), "allocation.exhaustion_epsilon",
        ),
        weight_fallback=weight_fallback,
    )


def parse_fetch(data: dict[str, Any]) -> FetchSettings:
    raw = data.get("chunk_size", 100)
    try:
        chunk_size = int(raw)
    except (TypeError, ValueError):
        raise ValueError(f"fetch.chunk_size must be an integer, got {raw!r}") from None
    return FetchSettings(chunk_size=chunk_size)


def parse_declaration_config(data: dict[str, Any]) -> DeclarationConfig:
    """Parse a DeclarationConfig from the root document."""
    return DeclarationConfig(
        config_id=data["config_id"],
        version=int(data["version"]),
        description=data.get("description", ""),
        attribute_roles=parse_attribute_roles(data.get("attribute_roles") or {}),
        placeholders=parse_placeholders(data.get("placeholders") or {}),
        allocation=parse_allocation(data.get("allocation") or {}),
        fetch=parse_fetch(data.get("fetch") or {}),
        checksum=compute_checksum(data),
    )


def load_config_set(set_dir: Path) -> DeclarationConfig:
    """Load ``declaration.yaml`` from a configuration set directory."""
    return parse_declaration_config(load_yaml_file(set_dir / CONFIG_FILE_NAME))


def compute_checksum(data: dict[str, Any]) -> str:
    """
    Compute SHA-256 checksum of canonical JSON serialization.

    Identical ``data`` always produces identical checksums.
    """
    canonical = json.dumps(data, sort_keys=True, default=str)
    return hashlib.sha256(canonical.encode()).hexdigest()
