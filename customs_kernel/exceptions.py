"""
Typed Exception Hierarchy for the Customs Declaration Kernel.

===============================================================================
HANDLING
===============================================================================

A declaration request can fail for a handful of distinct reasons, and the
caller (a web handler, a batch job, a CLI) reacts differently to each:

  - a malformed order id is the caller's fault (HTTP 400),
  - an unknown order is a lookup miss (HTTP 404),
  - an unreachable invoice-line set means no declaration can be produced.

Callers catch by type, read the machine-readable ``code`` class attribute,
and use the structured attributes instead of parsing messages:

    try:
        result = service.build_declaration(order_id)
    except InvalidOrderIdentifierError as e:
        return api_response(status=400, code=e.code, order_id=e.raw_value)
    except OrderNotFoundError as e:
        return api_response(status=404, code=e.code, order_id=e.order_id)

===============================================================================
EXCEPTION HIERARCHY
===============================================================================

    CustomsKernelError (base)
    |
    +-- DeclarationRequestError
    |   +-- InvalidOrderIdentifierError
    |   +-- OrderNotFoundError
    |
    +-- DeclarationSourceError
    |   +-- InvoiceLinesUnavailableError
    |
    +-- ConfigurationError

===============================================================================
ERROR CODES - QUICK REFERENCE
===============================================================================

Category     | Code                        | When Raised
-------------|-----------------------------|--------------------------------------
Request      | INVALID_ORDER_IDENTIFIER    | Order id missing or not a UUID
             | ORDER_NOT_FOUND             | No order header for the id
-------------|-----------------------------|--------------------------------------
Source       | DECLARATION_SOURCE_ERROR    | A backing-store fetch failed
             | INVOICE_LINES_UNAVAILABLE   | Primary invoice-line fetch failed
-------------|-----------------------------|--------------------------------------
Config       | CONFIGURATION_INVALID       | Declaration configuration rejected

Secondary fetch failures (packing lines, attributes, compliance rows) are
raised as DeclarationSourceError by the data layer and downgraded to empty
collections by the service; they never reach the caller.
"""


class CustomsKernelError(Exception):
    """
    Base exception for all customs kernel errors.

    All subclasses must have a `code` class attribute for machine-readable
    error identification.
    """

    code: str = "CUSTOMS_KERNEL_ERROR"


# Request-related exceptions


class DeclarationRequestError(CustomsKernelError):
    """Base exception for rejected declaration requests."""

    code: str = "DECLARATION_REQUEST_ERROR"


class InvalidOrderIdentifierError(DeclarationRequestError):
    """Order identifier is missing or malformed.

    Raised before any data is fetched or the engine runs.
    """

    code: str = "INVALID_ORDER_IDENTIFIER"

    def __init__(self, raw_value: object):
        self.raw_value = None if raw_value is None else str(raw_value)
        super().__init__(f"Invalid order identifier: {raw_value!r}")


class OrderNotFoundError(DeclarationRequestError):
    """No order header exists for the given identifier."""

    code: str = "ORDER_NOT_FOUND"

    def __init__(self, order_id: str):
        self.order_id = order_id
        super().__init__(f"Order not found: {order_id}")


# Data source exceptions


class DeclarationSourceError(CustomsKernelError):
    """A read against the backing store failed.

    ``dataset`` names the collection being fetched (e.g. "packing_lines").
    """

    code: str = "DECLARATION_SOURCE_ERROR"

    def __init__(self, dataset: str, reason: str):
        self.dataset = dataset
        self.reason = reason
        super().__init__(f"Failed to fetch {dataset}: {reason}")


class InvoiceLinesUnavailableError(DeclarationSourceError):
    """The primary invoice-line set could not be fetched.

    Fatal: no declaration can be produced without invoice lines.
    """

    code: str = "INVOICE_LINES_UNAVAILABLE"

    def __init__(self, order_id: str, reason: str):
        self.order_id = order_id
        super().__init__("invoice_lines", reason)


# Configuration exceptions


class ConfigurationError(CustomsKernelError):
    """Declaration configuration failed validation."""

    code: str = "CONFIGURATION_INVALID"

    def __init__(self, config_path: str, errors: list[str]):
        self.config_path = config_path
        self.errors = list(errors)
        super().__init__(
            f"Configuration {config_path} is invalid:\n"
            + "\n".join(f"  - {e}" for e in self.errors)
        )
