"""
Tests for declaration configuration loading, validation and bridging.

Covers:
- The shipped default set loads, validates and emits CUSTOMS_CONFIG_TRACE
- Deterministic checksum
- Invalid settings raise ConfigurationError with every error listed
- Missing configuration set raises FileNotFoundError
- Partial YAML keeps defaults
- Bridges translate config into engine settings
"""

from decimal import Decimal
from pathlib import Path

import pytest
import yaml

from customs_config import DEFAULT_CONFIG_SET, get_active_config
from customs_config.bridges import build_engine_settings, build_name_rules
from customs_config.loader import (
    CONFIG_FILE_NAME,
    compute_checksum,
    load_config_set,
    parse_declaration_config,
)
from customs_config.schema import AttributeRoleRules, DeclarationConfig
from customs_config.validator import validate_configuration
from customs_engines.types import AttributeNameRules, EngineSettings
from customs_kernel.exceptions import ConfigurationError


def _write_set(root: Path, name: str, document: dict) -> Path:
    set_dir = root / name
    set_dir.mkdir(parents=True)
    (set_dir / CONFIG_FILE_NAME).write_text(
        yaml.safe_dump(document, allow_unicode=True), encoding="utf-8",
    )
    return set_dir


def _document(**overrides) -> dict:
    document = {
        "config_id": "test-set",
        "version": 2,
        "attribute_roles": {
            "type_contains": ["tip", "type"],
            "length_prefixes": ["uzunluk", "length"],
            "weight_contains": ["agirlik"],
        },
        "placeholders": {"product_type": "TBD", "gtip_code": "0000.00"},
        "allocation": {"exhaustion_epsilon": "0.001", "weight_fallback": False},
        "fetch": {"chunk_size": 50},
    }
    document.update(overrides)
    return document


class TestDefaultConfiguration:
    """The packaged default set."""

    def test_loads(self):
        config = get_active_config()

        assert config.config_id == "customs-declaration-default"
        assert config.version == 1
        assert config.attribute_roles == AttributeRoleRules()
        assert config.placeholders.product_type == "Belirtilecek"
        assert config.placeholders.gtip_code == "Belirlenmedi"
        assert config.allocation.exhaustion_epsilon == Decimal("0.0001")
        assert config.allocation.weight_fallback is True
        assert config.fetch.chunk_size == 100
        assert len(config.checksum) == 64

    def test_default_set_name(self):
        assert get_active_config(DEFAULT_CONFIG_SET) == get_active_config()

    def test_config_trace_emitted(self, captured_logs):
        config = get_active_config()

        traces = [r for r in captured_logs() if r["message"] == "CUSTOMS_CONFIG_TRACE"]
        assert traces[0]["config_set_id"] == config.config_id
        assert traces[0]["checksum"] == config.checksum
        assert traces[0]["exhaustion_epsilon"] == "0.0001"

    def test_default_is_valid(self):
        result = validate_configuration(get_active_config())
        assert result.is_valid
        assert result.warnings == []


class TestLoading:
    """YAML documents parse into frozen schema objects."""

    def test_custom_set(self, tmp_path):
        _write_set(tmp_path, "strict", _document())

        config = get_active_config("strict", config_dir=tmp_path)

        assert config.version == 2
        assert config.attribute_roles.type_contains == ("tip", "type")
        assert config.allocation.exhaustion_epsilon == Decimal("0.001")
        assert config.allocation.weight_fallback is False
        assert config.fetch.chunk_size == 50

    def test_missing_set(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            get_active_config("nope", config_dir=tmp_path)

    def test_partial_document_keeps_defaults(self, tmp_path):
        set_dir = _write_set(tmp_path, "minimal", {"config_id": "minimal", "version": 1})

        config = load_config_set(set_dir)

        assert config.attribute_roles == AttributeRoleRules()
        assert config.fetch.chunk_size == 100
        assert config.allocation.exhaustion_epsilon == Decimal("0.0001")

    def test_single_token_string(self):
        config = parse_declaration_config(_document(attribute_roles={"type_contains": "tip"}))
        assert config.attribute_roles.type_contains == ("tip",)

    def test_float_epsilon_read_exactly(self):
        config = parse_declaration_config(_document(allocation={"exhaustion_epsilon": 0.0001}))
        assert config.allocation.exhaustion_epsilon == Decimal("0.0001")

    def test_non_numeric_epsilon(self):
        with pytest.raises(ValueError, match="exhaustion_epsilon"):
            parse_declaration_config(_document(allocation={"exhaustion_epsilon": "small"}))

    @pytest.mark.parametrize("raw", ["false", "no", 0, None])
    def test_weight_fallback_must_be_boolean(self, raw):
        with pytest.raises(ValueError, match="weight_fallback"):
            parse_declaration_config(_document(allocation={"weight_fallback": raw}))

    def test_weight_fallback_default(self):
        config = parse_declaration_config(_document(allocation={}))
        assert config.allocation.weight_fallback is True

    def test_missing_required_key(self):
        with pytest.raises(KeyError):
            parse_declaration_config({"version": 1})

    def test_checksum_deterministic(self):
        assert compute_checksum(_document()) == compute_checksum(_document())
        assert compute_checksum(_document()) != compute_checksum(_document(version=3))


class TestValidation:
    """Invalid settings are never handed out."""

    def test_invalid_set_raises(self, tmp_path):
        _write_set(tmp_path, "broken", _document(
            attribute_roles={"type_contains": ["Tİp", " "]},
            placeholders={"product_type": "", "gtip_code": "x"},
            allocation={"exhaustion_epsilon": "2"},
            fetch={"chunk_size": 0},
        ))

        with pytest.raises(ConfigurationError) as exc_info:
            get_active_config("broken", config_dir=tmp_path)

        errors = exc_info.value.errors
        assert exc_info.value.code == "CONFIGURATION_INVALID"
        assert any("not folded" in e for e in errors)
        assert any("empty token" in e for e in errors)
        assert any("placeholders.product_type" in e for e in errors)
        assert any("exhaustion_epsilon" in e for e in errors)
        assert any("chunk_size" in e for e in errors)

    def test_empty_role_is_a_warning(self, tmp_path, captured_logs):
        _write_set(tmp_path, "no-weight", _document(
            attribute_roles={"weight_contains": []},
        ))

        config = get_active_config("no-weight", config_dir=tmp_path)

        assert config.attribute_roles.weight_contains == ()
        warnings = [r for r in captured_logs() if r["message"] == "config_validation_warning"]
        assert "weight_contains" in warnings[0]["warning"]

    def test_identity_checked(self):
        result = validate_configuration(DeclarationConfig(config_id="", version=0))
        assert len(result.errors) == 2


class TestBridges:
    """Config -> engine settings."""

    def test_engine_settings(self):
        config = parse_declaration_config(_document())

        settings = build_engine_settings(config)

        assert settings == EngineSettings(
            type_placeholder="TBD",
            gtip_placeholder="0000.00",
            exhaustion_epsilon=Decimal("0.001"),
            weight_fallback=False,
            name_rules=AttributeNameRules(
                type_contains=("tip", "type"),
                length_prefixes=("uzunluk", "length"),
                weight_contains=("agirlik",),
            ),
        )

    def test_default_rules_match_engine_defaults(self):
        assert build_name_rules(AttributeRoleRules()) == AttributeNameRules()
        assert build_engine_settings(get_active_config()) == EngineSettings()
