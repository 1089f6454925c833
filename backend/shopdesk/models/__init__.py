from .catalog import Product
from .customers import CreditCustomer, CreditTransaction
from .sales import Sale, SaleItem
from .refunds import Refund, RefundItem
from .auth import Profile, UserRole, RolePermission, SessionToken
from .settings import ShopSettings

__all__ = [
    'Product',
    'CreditCustomer', 'CreditTransaction',
    'Sale', 'SaleItem',
    'Refund', 'RefundItem',
    'Profile', 'UserRole', 'RolePermission', 'SessionToken',
    'ShopSettings',
]
