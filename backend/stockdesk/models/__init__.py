from .inventory import Product
from .sales import Sale
from .staff import Staff

__all__ = [
    'Product',
    'Sale',
    'Staff',
]
