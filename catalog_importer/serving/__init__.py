"""
Serving Module
"""
from .queries import (
    ProductFilters,
    add_review,
    add_to_cart,
    get_cart_items,
    get_categories,
    get_product_by_id,
    get_products,
    remove_from_cart,
)

__all__ = [
    "ProductFilters",
    "add_review",
    "add_to_cart",
    "get_cart_items",
    "get_categories",
    "get_product_by_id",
    "get_products",
    "remove_from_cart",
]
