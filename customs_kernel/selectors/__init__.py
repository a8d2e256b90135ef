"""Read-only selectors for customs declaration queries."""

from customs_kernel.selectors.base import BaseSelector
from customs_kernel.selectors.declaration_selector import DeclarationSelector

__all__ = [
    "BaseSelector",
    "DeclarationSelector",
]
