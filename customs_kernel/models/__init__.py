"""Read models consumed by the customs declaration engine."""

from customs_kernel.models.attribute import (
    ProductAttribute,
    ProductAttributeValue,
    ProductExtraAttribute,
)
from customs_kernel.models.compliance import ProductTypeCompliance
from customs_kernel.models.order import Order, OrderItem
from customs_kernel.models.packing import PackingList, PackingListLine
from customs_kernel.models.product import Gtip, Product, ProductType
from customs_kernel.models.supplier import Supplier

__all__ = [
    "Supplier",
    "Order",
    "OrderItem",
    "ProductType",
    "Gtip",
    "Product",
    "PackingList",
    "PackingListLine",
    "ProductAttribute",
    "ProductAttributeValue",
    "ProductExtraAttribute",
    "ProductTypeCompliance",
]
