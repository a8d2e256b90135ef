"""
Configuration Validator (``customs_config.validator``).

Responsibility
--------------
Validates a ``DeclarationConfig`` before it is handed to services.

Invariants enforced
-------------------
* Role tokens are non-empty and already folded (lowercase, no
  diacritics); otherwise they could never match a folded name.
* Every role has at least one token.
* Placeholders are non-empty.
* Exhaustion epsilon is in ``[0, 1)``.
* Fetch chunk size is between 1 and 1000.

Failure modes
-------------
* Validation errors (``ConfigValidationResult.errors``)  -> configuration
  MUST NOT be used.
* Validation warnings  -> configuration is usable but should be reviewed.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal

from customs_config.schema import DeclarationConfig
from customs_engines.normalization import fold_name

MAX_CHUNK_SIZE = 1000


@dataclass
class ConfigValidationResult:
    """
    Result of configuration validation.

    Contract
    --------
    * ``is_valid`` returns ``True`` only when ``errors`` is empty.
    * Warnings do not block use but should be reviewed.
    """

    errors: list[str] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)

    @property
    def is_valid(self) -> bool:
        return len(self.errors) == 0

    def add_error(self, msg: str) -> None:
        self.errors.append(msg)

    def add_warning(self, msg: str) -> None:
        self.warnings.append(msg)


def validate_configuration(config: DeclarationConfig) -> ConfigValidationResult:
    """
    Validate a declaration configuration.

    Postconditions:
        - Returns a ``ConfigValidationResult`` with errors and warnings.
        - A configuration with errors MUST NOT be used.
    """
    result = ConfigValidationResult()

    _validate_identity(config, result)
    _validate_role_tokens(config, result)
    _validate_placeholders(config, result)
    _validate_allocation(config, result)
    _validate_fetch(config, result)

    return result


def _validate_identity(config: DeclarationConfig, result: ConfigValidationResult) -> None:
    if not config.config_id:
        result.add_error("config_id must not be empty")
    if config.version < 1:
        result.add_error(f"version must be >= 1, got {config.version}")


def _validate_role_tokens(config: DeclarationConfig, result: ConfigValidationResult) -> None:
    rules = config.attribute_roles
    for role, tokens in (
        ("type_contains", rules.type_contains),
        ("length_prefixes", rules.length_prefixes),
        ("weight_contains", rules.weight_contains),
    ):
        if not tokens:
            result.add_warning(f"attribute_roles.{role} is empty; no attribute gets this role")
        for token in tokens:
            if not token.strip():
                result.add_error(f"attribute_roles.{role} contains an empty token")
            elif fold_name(token) != token:
                result.add_error(
                    f"attribute_roles.{role} token {token!r} is not folded; "
                    f"use {fold_name(token)!r}"
                )


def _validate_placeholders(config: DeclarationConfig, result: ConfigValidationResult) -> None:
    if not config.placeholders.product_type.strip():
        result.add_error("placeholders.product_type must not be empty")
    if not config.placeholders.gtip_code.strip():
        result.add_error("placeholders.gtip_code must not be empty")


def _validate_allocation(config: DeclarationConfig, result: ConfigValidationResult) -> None:
    epsilon = config.allocation.exhaustion_epsilon
    if not epsilon.is_finite() or epsilon < Decimal("0") or epsilon >= Decimal("1"):
        result.add_error(
            f"allocation.exhaustion_epsilon must be in [0, 1), got {epsilon}"
        )


def _validate_fetch(config: DeclarationConfig, result: ConfigValidationResult) -> None:
    chunk_size = config.fetch.chunk_size
    if chunk_size < 1 or chunk_size > MAX_CHUNK_SIZE:
        result.add_error(
            f"fetch.chunk_size must be between 1 and {MAX_CHUNK_SIZE}, got {chunk_size}"
        )
