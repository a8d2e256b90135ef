"""
Module: customs_engines.attributes
Responsibility:
    Resolve each product's regulatory type, length and per-unit weight from
    its structured (definition-backed) and extra (free-form) attributes.

Architecture position:
    Engines -- pure calculation layer, zero I/O.

Invariants enforced:
    - Attribute roles come from an explicit ``AttributeRoleMap``; name tests
      are only used to build that map (``discover_role_map``) and to
      classify extra attributes, which have no definition id.
    - Type priority: structured value > extra value > product's declared
      type name > placeholder.  An extra value never overwrites a
      non-empty structured value.
    - Length values are kept verbatim; no unit normalization.
    - Weight parsing failures mean "absent", never an exception.

Usage:
    from customs_engines.attributes import AttributeResolver, discover_role_map

    role_map = discover_role_map(definitions=defs, rules=AttributeNameRules())
    resolver = AttributeResolver(role_map, structured_values, extra_values)
    resolved = resolver.resolve(product_id="p1", declared_type_name="Profil")
"""

from __future__ import annotations

from collections import defaultdict
from collections.abc import Sequence
from decimal import Decimal

from customs_engines.normalization import fold_name, parse_decimal
from customs_engines.tracer import traced_engine
from customs_engines.types import (
    AttributeNameRules,
    AttributeRole,
    AttributeRoleMap,
    ResolvedAttributes,
    TypeSource,
)
from customs_kernel.domain.records import (
    AttributeDefinition,
    ExtraAttributeValue,
    StructuredAttributeValue,
)
from customs_kernel.logging_config import get_logger

logger = get_logger("engines.attributes")

DEFAULT_TYPE_PLACEHOLDER = "Belirtilecek"


def roles_for_name(name: str | None, rules: AttributeNameRules) -> frozenset[AttributeRole]:
    """Classify an attribute name with the folded-name tests in ``rules``."""
    folded = fold_name(name)
    if not folded:
        return frozenset()
    roles = set()
    if any(token in folded for token in rules.type_contains):
        roles.add(AttributeRole.TYPE)
    if any(folded.startswith(prefix) for prefix in rules.length_prefixes):
        roles.add(AttributeRole.LENGTH)
    if any(token in folded for token in rules.weight_contains):
        roles.add(AttributeRole.WEIGHT)
    return frozenset(roles)


@traced_engine("attribute_roles", "1.0", fingerprint_fields=("definitions", "rules"))
def discover_role_map(
    *,
    definitions: Sequence[AttributeDefinition],
    rules: AttributeNameRules,
) -> AttributeRoleMap:
    """Derive an explicit role map from attribute definition names.

    The returned map keeps ``rules`` as its fallback so that values whose
    definition was not among ``definitions`` can still be classified by
    their joined attribute name.
    """
    type_ids: set[str] = set()
    length_ids: set[str] = set()
    weight_ids: set[str] = set()
    for definition in definitions:
        roles = roles_for_name(definition.name, rules)
        if AttributeRole.TYPE in roles:
            type_ids.add(definition.attribute_id)
        if AttributeRole.LENGTH in roles:
            length_ids.add(definition.attribute_id)
        if AttributeRole.WEIGHT in roles:
            weight_ids.add(definition.attribute_id)

    logger.info("attribute_roles_discovered", extra={
        "definition_count": len(definitions),
        "type_ids": sorted(type_ids),
        "length_ids": sorted(length_ids),
        "weight_ids": sorted(weight_ids),
    })
    return AttributeRoleMap(
        type_ids=frozenset(type_ids),
        length_ids=frozenset(length_ids),
        weight_ids=frozenset(weight_ids),
        classified_ids=frozenset(d.attribute_id for d in definitions),
        fallback_rules=rules,
    )


def _non_empty_text(value: Decimal | str) -> str | None:
    text = str(value).strip()
    return text or None


class AttributeResolver:
    """
    Per-product attribute resolution over one order's attribute rows.

    Contract:
        Constructed once per run with every structured and extra value for
        the order's products; ``resolve`` is then called per invoice line.
        Values are considered in input order, first hit wins.
    """

    def __init__(
        self,
        role_map: AttributeRoleMap,
        structured_values: Sequence[StructuredAttributeValue] = (),
        extra_values: Sequence[ExtraAttributeValue] = (),
        name_rules: AttributeNameRules | None = None,
        type_placeholder: str = DEFAULT_TYPE_PLACEHOLDER,
    ):
        self._role_map = role_map
        self._name_rules = name_rules or role_map.fallback_rules or AttributeNameRules()
        self._type_placeholder = type_placeholder

        self._structured: dict[str, list[tuple[StructuredAttributeValue, frozenset]]] = (
            defaultdict(list)
        )
        for value in structured_values:
            self._structured[value.product_id].append((value, self._structured_roles(value)))

        self._extra: dict[str, list[tuple[ExtraAttributeValue, frozenset]]] = defaultdict(list)
        for extra in extra_values:
            self._extra[extra.product_id].append(
                (extra, roles_for_name(extra.name, self._name_rules))
            )

    def _structured_roles(self, value: StructuredAttributeValue) -> frozenset[AttributeRole]:
        if value.attribute_id in self._role_map.classified_ids:
            return self._role_map.roles_for_id(value.attribute_id)
        explicit = self._role_map.roles_for_id(value.attribute_id)
        if explicit or self._role_map.fallback_rules is None:
            return explicit
        return roles_for_name(value.attribute_name, self._role_map.fallback_rules)

    def resolve(
        self,
        product_id: str | None,
        declared_type_name: str | None = None,
    ) -> ResolvedAttributes:
        structured = self._structured.get(product_id, []) if product_id else []
        extras = self._extra.get(product_id, []) if product_id else []

        product_type, source = self._resolve_type(structured, extras, declared_type_name)
        return ResolvedAttributes(
            product_type=product_type,
            type_source=source,
            length_value=self._resolve_length(structured),
            weight_per_unit=self._resolve_weight(structured, extras),
        )

    def _resolve_type(self, structured, extras, declared_type_name):
        for value, roles in structured:
            if AttributeRole.TYPE in roles:
                text = _non_empty_text(value.value)
                if text:
                    return text, TypeSource.STRUCTURED
        for extra, roles in extras:
            if AttributeRole.TYPE in roles:
                text = _non_empty_text(extra.value)
                if text:
                    return text, TypeSource.EXTRA
        declared = (declared_type_name or "").strip()
        if declared:
            return declared, TypeSource.PRODUCT_TYPE
        return self._type_placeholder, TypeSource.PLACEHOLDER

    @staticmethod
    def _resolve_length(structured) -> Decimal | str | None:
        for value, roles in structured:
            if AttributeRole.LENGTH not in roles:
                continue
            if value.value_number is not None:
                return value.value_number
            if value.value_text and value.value_text.strip():
                return value.value_text
        return None

    @staticmethod
    def _resolve_weight(structured, extras) -> Decimal | None:
        for value, roles in structured:
            if AttributeRole.WEIGHT in roles:
                parsed = parse_decimal(value.value)
                if parsed is not None:
                    return parsed
        for extra, roles in extras:
            if AttributeRole.WEIGHT in roles:
                parsed = parse_decimal(extra.value)
                if parsed is not None:
                    return parsed
        return None
