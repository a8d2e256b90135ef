"""
customs_config -- single public entrypoint for declaration configuration.

Responsibility:
    Provides the ONLY way to obtain configuration at runtime through
    ``get_active_config()``.  No other component reads the settings file
    directly.  Returns a frozen ``DeclarationConfig``.

Architecture position:
    Configuration -- YAML-driven settings, validated on load.  This
    package sits above ``customs_kernel`` and ``customs_engines`` and
    below ``customs_services``.  Neither the kernel nor the engines may
    import from ``customs_config``; ``customs_config.bridges`` translates
    the config into engine inputs.

Invariants enforced:
    - Single entrypoint: all runtime config flows through ``get_active_config()``.
    - A configuration with validation errors is never returned.
    - Deterministic checksum: the same YAML always yields the same
      ``DeclarationConfig.checksum``.

Failure modes:
    - ``FileNotFoundError`` -- the requested configuration set does not exist.
    - ``ConfigurationError`` -- the settings failed validation.

Audit relevance:
    Every successful ``get_active_config()`` call emits a
    ``CUSTOMS_CONFIG_TRACE`` log entry containing the config_id, version
    and checksum, tying each declaration to the settings that shaped it.
"""

from __future__ import annotations

import logging
from pathlib import Path

from customs_config.loader import CONFIG_FILE_NAME, load_config_set
from customs_config.schema import DeclarationConfig
from customs_config.validator import validate_configuration
from customs_kernel.exceptions import ConfigurationError

_logger = logging.getLogger("customs_kernel.config")

# Default configuration sets directory
_DEFAULT_CONFIG_DIR = Path(__file__).parent / "sets"

DEFAULT_CONFIG_SET = "default"


def get_active_config(
    config_set: str = DEFAULT_CONFIG_SET,
    config_dir: Path | None = None,
) -> DeclarationConfig:
    """The ONLY public configuration entrypoint.

    Args:
        config_set: Name of the configuration set subdirectory.
        config_dir: Override path to the configuration sets directory.
            Defaults to customs_config/sets/.

    Returns:
        A validated, frozen ``DeclarationConfig``.

    Raises:
        FileNotFoundError: If the configuration set does not exist.
        ConfigurationError: If validation fails.
    """
    sets_dir = config_dir or _DEFAULT_CONFIG_DIR
    set_dir = sets_dir / config_set
    if not (set_dir / CONFIG_FILE_NAME).is_file():
        raise FileNotFoundError(
            f"No configuration set '{config_set}' found in {sets_dir}"
        )

    config = load_config_set(set_dir)

    validation = validate_configuration(config)
    for warning in validation.warnings:
        _logger.warning("config_validation_warning", extra={
            "config_set_id": config.config_id,
            "warning": warning,
        })
    if not validation.is_valid:
        raise ConfigurationError(str(set_dir / CONFIG_FILE_NAME), validation.errors)

    _logger.info(
        "CUSTOMS_CONFIG_TRACE",
        extra={
            "trace_type": "CUSTOMS_CONFIG_TRACE",
            "config_set_id": config.config_id,
            "config_set_version": config.version,
            "checksum": config.checksum,
            "exhaustion_epsilon": str(config.allocation.exhaustion_epsilon),
            "weight_fallback": config.allocation.weight_fallback,
            "chunk_size": config.fetch.chunk_size,
        },
    )
    return config


__all__ = [
    "DEFAULT_CONFIG_SET",
    "DeclarationConfig",
    "get_active_config",
]
