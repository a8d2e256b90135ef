"""
Config -> Engine Bridges.

Functions that convert a ``DeclarationConfig`` into engine inputs.  These
live in customs_config (the producer) because the engines must NEVER
import customs_config.

Usage:
    from customs_config.bridges import build_engine_settings

    config = get_active_config()
    engine = DeclarationEngine(build_engine_settings(config))
"""

from __future__ import annotations

from customs_config.schema import AttributeRoleRules, DeclarationConfig
from customs_engines.types import AttributeNameRules, EngineSettings


def build_name_rules(rules: AttributeRoleRules) -> AttributeNameRules:
    return AttributeNameRules(
        type_contains=rules.type_contains,
        length_prefixes=rules.length_prefixes,
        weight_contains=rules.weight_contains,
    )


def build_engine_settings(config: DeclarationConfig) -> EngineSettings:
    """Engine settings for a declaration run governed by ``config``."""
    return EngineSettings(
        type_placeholder=config.placeholders.product_type,
        gtip_placeholder=config.placeholders.gtip_code,
        exhaustion_epsilon=config.allocation.exhaustion_epsilon,
        weight_fallback=config.allocation.weight_fallback,
        name_rules=build_name_rules(config.attribute_roles),
    )
