"""
Sales Service

Derived finished-goods availability, sale creation gated on it, voiding, sale
history and the sale-total audit.
"""

from ._availability import available_to_sell, produced_total, sold_total
from ._sales import SaleTotalMismatch, get_sale, list_sales, sell, verify_sale_totals, void_sale

__all__ = [
    'available_to_sell',
    'produced_total',
    'sold_total',
    'sell',
    'void_sale',
    'get_sale',
    'list_sales',
    'verify_sale_totals',
    'SaleTotalMismatch',
]
