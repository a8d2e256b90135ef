"""
Declaration configuration schema.

Frozen dataclasses the YAML settings file is parsed into.  The loader
builds them, the validator checks them, and ``customs_config.bridges``
turns them into engine settings.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from decimal import Decimal


@dataclass(frozen=True)
class AttributeRoleRules:
    """Folded-name tests that classify attribute definitions into roles."""

    type_contains: tuple[str, ...] = ("tip",)
    length_prefixes: tuple[str, ...] = ("uzunluk",)
    weight_contains: tuple[str, ...] = ("weight", "agirlik", "kg")


@dataclass(frozen=True)
class Placeholders:
    """Values declared when the catalog has no type or GTIP code."""

    product_type: str = "Belirtilecek"
    gtip_code: str = "Belirlenmedi"


@dataclass(frozen=True)
class AllocationSettings:
    exhaustion_epsilon: Decimal = Decimal("0.0001")
    weight_fallback: bool = True


@dataclass(frozen=True)
class FetchSettings:
    # Upper bound on identifiers per IN (...) lookup.
    chunk_size: int = 100


@dataclass(frozen=True)
class DeclarationConfig:
    """
    Complete declaration configuration.

    ``checksum`` is the SHA-256 of the canonical JSON of the source YAML,
    identifying exactly which settings governed a run.
    """

    config_id: str
    version: int
    description: str = ""
    attribute_roles: AttributeRoleRules = field(default_factory=AttributeRoleRules)
    placeholders: Placeholders = field(default_factory=Placeholders)
    allocation: AllocationSettings = field(default_factory=AllocationSettings)
    fetch: FetchSettings = field(default_factory=FetchSettings)
    checksum: str = ""
