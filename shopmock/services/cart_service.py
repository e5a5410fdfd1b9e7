"""
Cart engine - session cart operations against the catalog and stock ledger.

Adding to the cart only checks availability; stock is decremented at checkout.
"DELETE /api/cart/<id>" maps to ``decrement_line`` (one unit at a time, the
line disappears at zero). ``remove_line`` drops a whole line.
"""
import logging
from typing import List

from shopmock.exceptions import (
    InsufficientStockError, InvalidInputError, InvalidProductIdError,
    ItemNotInCartError, MaxQuantityExceededError
)
from shopmock.models import CartLine, PricedCart, Session
from shopmock.services.pricing_service import price_session

logger = logging.getLogger(__name__)

MAX_PER_LINE = 10


def _parse_int(value, message='Invalid input'):
    """Accept ints and integer strings; reject bools, floats with fractions, junk."""
    if isinstance(value, bool):
        raise InvalidInputError(message)
    if isinstance(value, int):
        return value
    if isinstance(value, float) and value.is_integer():
        return int(value)
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            pass
    raise InvalidInputError(message)


def add_item(state, session: Session, product_id, quantity=1) -> PricedCart:
    """
    Add ``quantity`` units of a product, merging into an existing line.

    Raises:
        InvalidInputError: non-integer id or quantity below 1
        ProductNotFoundError: unknown product
        InsufficientStockError: line would exceed available stock
        MaxQuantityExceededError: line would exceed MAX_PER_LINE
    """
    product_id = _parse_int(product_id)
    qty = _parse_int(1 if quantity is None else quantity)
    if qty < 1:
        raise InvalidInputError()
    qty = min(qty, MAX_PER_LINE)

    with state.catalog.lock:
        state.catalog.require(product_id)

        available = state.ledger.get_available(product_id)
        line = session.find_line(product_id)
        current = line.quantity if line else 0

        if current + qty > available:
            raise InsufficientStockError(available, product_id=product_id, requested=current + qty)
        if current + qty > MAX_PER_LINE:
            raise MaxQuantityExceededError(MAX_PER_LINE)

        if line:
            line.quantity += qty
        else:
            session.cart.append(CartLine(product_id=product_id, quantity=qty))

    logger.debug(f"[CART] {session.username}: +{qty} of product {product_id}")
    return price_session(state, session)


def update_quantity(state, session: Session, product_id, quantity) -> PricedCart:
    """Replace a line's quantity; ``quantity`` must be an integer in [1, 10]."""
    product_id = _parse_int(product_id)
    if not isinstance(quantity, int) or isinstance(quantity, bool) \
            or quantity < 1 or quantity > MAX_PER_LINE:
        raise InvalidInputError(f'Quantity must be 1-{MAX_PER_LINE}')

    line = session.find_line(product_id)
    if not line:
        raise ItemNotInCartError()

    available = state.ledger.get_available(product_id)
    if quantity > available:
        raise InsufficientStockError(available, product_id=product_id, requested=quantity)

    line.quantity = quantity
    return price_session(state, session)


def decrement_line(state, session: Session, product_id) -> PricedCart:
    """Remove one unit; the line is dropped when it reaches zero."""
    product_id = _parse_int(product_id)
    line = session.find_line(product_id)
    if not line:
        raise ItemNotInCartError('Not in cart')

    if line.quantity > 1:
        line.quantity -= 1
    else:
        session.cart.remove(line)
    return price_session(state, session)


def remove_line(state, session: Session, product_id) -> PricedCart:
    """Drop a whole line regardless of its quantity."""
    product_id = _parse_int(product_id)
    line = session.find_line(product_id)
    if not line:
        raise ItemNotInCartError('Not in cart')

    session.cart.remove(line)
    return price_session(state, session)


def reorder(state, session: Session, ordered_product_ids) -> PricedCart:
    """
    Reorder cart lines to match ``ordered_product_ids``.

    The list must be an exact permutation of the cart's product ids: no
    unknown ids, no duplicates, no omissions. Quantities are untouched.
    """
    if not isinstance(ordered_product_ids, list):
        raise InvalidInputError('orderedProductIds array required')

    try:
        ids: List[int] = [_parse_int(pid) for pid in ordered_product_ids]
    except InvalidInputError:
        raise InvalidProductIdError()

    current = session.product_ids()
    if len(ids) != len(current) or len(set(ids)) != len(ids) or set(ids) != set(current):
        raise InvalidProductIdError()

    by_id = {line.product_id: line for line in session.cart}
    session.cart = [by_id[pid] for pid in ids]
    return price_session(state, session)


def reset_cart(state, session: Session) -> PricedCart:
    """Empty the cart and drop the applied coupon."""
    session.cart = []
    session.applied_coupon = None
    logger.info(f"[CART] {session.username}: cart reset")
    return price_session(state, session)
