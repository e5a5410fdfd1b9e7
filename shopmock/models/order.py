"""Order model and priced cart projection."""
import enum
from dataclasses import dataclass, field
from datetime import datetime
from decimal import Decimal
from typing import Optional, Tuple


class CheckoutState(enum.Enum):
    """Checkout state machine."""
    IDLE = "IDLE"
    VALIDATING = "VALIDATING"
    RESERVING = "RESERVING"
    FINALIZED = "FINALIZED"


@dataclass(frozen=True)
class CustomerInfo:
    first_name: str
    last_name: str
    postal_code: str

    def to_dict(self):
        return {
            'firstName': self.first_name,
            'lastName': self.last_name,
            'postalCode': self.postal_code,
        }


@dataclass(frozen=True)
class OrderLine:
    """Priced line item."""
    product_id: int
    name: str
    price: Decimal
    quantity: int
    line_total: Decimal

    def to_dict(self):
        return {
            'productId': self.product_id,
            'name': self.name,
            'price': float(self.price),
            'quantity': self.quantity,
            'lineTotal': float(self.line_total),
        }


@dataclass(frozen=True)
class PricedCart:
    """Derived view of a cart after pricing and coupon rules."""
    items: Tuple[OrderLine, ...] = field(default_factory=tuple)
    item_total: Decimal = Decimal('0.00')
    discount: Decimal = Decimal('0.00')
    coupon: Optional[str] = None
    subtotal: Decimal = Decimal('0.00')
    tax: Decimal = Decimal('0.00')
    total: Decimal = Decimal('0.00')

    def to_dict(self):
        return {
            'items': [item.to_dict() for item in self.items],
            'itemTotal': float(self.item_total),
            'discount': float(self.discount),
            'coupon': self.coupon,
            'subtotal': float(self.subtotal),
            'tax': float(self.tax),
            'total': float(self.total),
        }


@dataclass(frozen=True)
class Order:
    """Finalized order. Immutable once created."""
    order_id: str
    username: str
    customer: CustomerInfo
    priced: PricedCart
    timestamp: datetime

    @property
    def total(self) -> Decimal:
        return self.priced.total

    def to_dict(self):
        rv = {
            'orderId': self.order_id,
            'username': self.username,
            'customer': self.customer.to_dict(),
        }
        rv.update(self.priced.to_dict())
        rv['timestamp'] = self.timestamp.isoformat()
        return rv

    def __repr__(self):
        return f"<Order(order_id='{self.order_id}', username='{self.username}', total={self.total})>"
