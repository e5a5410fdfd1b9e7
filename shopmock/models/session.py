"""Session model - per-login commerce state."""
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import List, Optional

from shopmock.models.order import CheckoutState, Order
from shopmock.models.user import Identity


@dataclass
class CartLine:
    """One product-quantity pair in a cart (quantity 1..10)."""
    product_id: int
    quantity: int


@dataclass
class Session:
    """
    Session record owned by the session store.

    Created at login, destroyed at logout or account deletion. The cart keeps
    client-controlled ordering and holds at most one line per product.
    """
    token: str
    identity: Identity
    cart: List[CartLine] = field(default_factory=list)
    applied_coupon: Optional[str] = None
    last_order: Optional[Order] = None
    checkout_state: CheckoutState = CheckoutState.IDLE
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def username(self) -> str:
        return self.identity.username

    def find_line(self, product_id: int) -> Optional[CartLine]:
        for line in self.cart:
            if line.product_id == product_id:
                return line
        return None

    def product_ids(self) -> List[int]:
        return [line.product_id for line in self.cart]

    def references(self, product_id: int) -> bool:
        return self.find_line(product_id) is not None
