from .auth import User, USER_ROLES
from .catalog import Product
from .sales import Sale, SaleItem

__all__ = [
    'User', 'USER_ROLES',
    'Product',
    'Sale', 'SaleItem',
]
