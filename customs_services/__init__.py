"""
customs_services -- Package init and public API.

Responsibility:
    Orchestration services that compose the pure declaration engines
    (customs_engines/) with a data source, configuration and a clock.
    This is the **only** layer that may hold data sources or read
    wall-clock time.

Architecture position:
    Services -- orchestration over engines + kernel + config.

    Dependency direction (enforced by tests/architecture/test_layer_boundaries.py):
        customs_services/ -> customs_engines/  (allowed)
        customs_services/ -> customs_kernel/   (allowed)
        customs_services/ -> customs_config/   (allowed)
        customs_engines/  -> customs_services/ (FORBIDDEN)
        customs_kernel/   -> customs_services/ (FORBIDDEN)
"""

from customs_services.declaration_service import DeclarationService, validate_order_id
from customs_services.declaration_source import DeclarationSource

__all__ = [
    "DeclarationService",
    "DeclarationSource",
    "validate_order_id",
]
