"""Models package - exports all in-memory domain models."""
# Identity Models
from shopmock.models.user import User, Identity, UserRole, BehaviorType

# Commerce Models
from shopmock.models.product import Product
from shopmock.models.coupon import Coupon
from shopmock.models.session import Session, CartLine
from shopmock.models.order import Order, OrderLine, CustomerInfo, PricedCart, CheckoutState

__all__ = [
    # Identity
    'User', 'Identity', 'UserRole', 'BehaviorType',
    # Commerce
    'Product', 'Coupon', 'Session', 'CartLine',
    'Order', 'OrderLine', 'CustomerInfo', 'PricedCart', 'CheckoutState',
]
