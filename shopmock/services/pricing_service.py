"""
Pricing and coupon engine.

Derives priced line items, subtotal, discount, tax and total from a cart
snapshot. Every derived amount is rounded half-up to cents at the stage where
it is produced, not only at the end; totals depend on that order.
"""
import logging
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, Iterable, Optional

from shopmock.exceptions import InvalidCouponError
from shopmock.models import Coupon, CartLine, OrderLine, PricedCart, Session

logger = logging.getLogger(__name__)

TWO_PLACES = Decimal('0.01')
DEFAULT_TAX_RATE = Decimal('0.08')


def round2(value) -> Decimal:
    """Round to 2 decimal places, half-up."""
    if not isinstance(value, Decimal):
        value = Decimal(str(value))
    return value.quantize(TWO_PLACES, rounding=ROUND_HALF_UP)


def to_decimal(value) -> Decimal:
    """Parse a money-like value; raises ValueError when not numeric."""
    try:
        result = Decimal(str(value).strip())
    except (InvalidOperation, ValueError):
        raise ValueError(f'Invalid amount: {value!r}')
    if not result.is_finite():
        raise ValueError(f'Invalid amount: {value!r}')
    return result


class CouponTable:
    """Mapping of coupon code to discount fraction."""

    def __init__(self, coupons: Dict[str, object] = None):
        self._coupons: Dict[str, Coupon] = {}
        for code, fraction in (coupons or {}).items():
            self.add(code, fraction)

    def add(self, code: str, fraction) -> Coupon:
        coupon = Coupon(code=code, discount_fraction=to_decimal(fraction))
        self._coupons[code] = coupon
        return coupon

    def get(self, code) -> Optional[Coupon]:
        if not isinstance(code, str):
            return None
        return self._coupons.get(code)

    def __contains__(self, code) -> bool:
        return self.get(code) is not None

    def codes(self):
        return sorted(self._coupons)


def price_cart(
    lines: Iterable[CartLine],
    catalog,
    coupon_code: Optional[str],
    coupons: CouponTable,
    tax_rate: Decimal = DEFAULT_TAX_RATE
) -> PricedCart:
    """
    Pure pricing of a cart snapshot.

    Lines whose product no longer exists in ``catalog`` are skipped. An
    unknown ``coupon_code`` contributes no discount.
    """
    items = []
    for line in lines:
        product = catalog.get(line.product_id)
        if product is None:
            continue
        items.append(OrderLine(
            product_id=product.id,
            name=product.name,
            price=product.price,
            quantity=line.quantity,
            line_total=round2(product.price * line.quantity)
        ))

    item_total = round2(sum((item.line_total for item in items), Decimal('0')))

    coupon = coupons.get(coupon_code) if coupon_code else None
    discount = round2(item_total * coupon.discount_fraction) if coupon else round2(0)

    subtotal = round2(item_total - discount)
    tax = round2(subtotal * tax_rate)
    total = round2(subtotal + tax)

    return PricedCart(
        items=tuple(items),
        item_total=item_total,
        discount=discount,
        coupon=coupon.code if coupon else None,
        subtotal=subtotal,
        tax=tax,
        total=total
    )


def price_session(state, session: Session) -> PricedCart:
    """Priced projection of a session's cart."""
    return price_cart(
        session.cart,
        state.catalog,
        session.applied_coupon,
        state.coupons,
        tax_rate=state.tax_rate
    )


def apply_coupon(state, session: Session, code) -> PricedCart:
    """
    Apply a coupon to the session.

    Raises:
        InvalidCouponError: unknown code; any previously applied coupon is cleared
    """
    if code not in state.coupons:
        if session.applied_coupon:
            logger.info(f"[COUPON] {session.username}: invalid code, clearing {session.applied_coupon}")
        session.applied_coupon = None
        raise InvalidCouponError()

    session.applied_coupon = code
    return price_session(state, session)


def remove_coupon(state, session: Session) -> PricedCart:
    """Remove the applied coupon. Idempotent."""
    session.applied_coupon = None
    return price_session(state, session)
