"""
Checkout engine - validation, all-or-nothing stock reservation, order finalization.

State machine per session: IDLE -> VALIDATING -> RESERVING -> FINALIZED.
Any failure puts the session back to IDLE with cart, coupon, stock and order
history exactly as they were.
"""
import logging
import threading
import uuid
from datetime import datetime, timezone
from typing import Dict, List, Optional

from shopmock.exceptions import (
    CheckoutInProgressError, EmptyCartError, InjectedFailureError, MissingFieldsError
)
from shopmock.models import BehaviorType, CheckoutState, CustomerInfo, Order, Session
from shopmock.services.latency_service import LatencyPoint
from shopmock.services.pricing_service import price_session

logger = logging.getLogger(__name__)

CUSTOMER_FIELDS = ('firstName', 'lastName', 'postalCode')
IN_FLIGHT_STATES = (CheckoutState.VALIDATING, CheckoutState.RESERVING)


class OrderHistory:
    """Append-only log of finalized orders."""

    def __init__(self):
        self._orders: List[Order] = []
        self._issued_ids = set()
        self._lock = threading.Lock()

    def next_order_id(self) -> str:
        """Generate an order id never issued before in this process."""
        with self._lock:
            order_id = 'ORDER-' + uuid.uuid4().hex[:12].upper()
            while order_id in self._issued_ids:
                order_id = 'ORDER-' + uuid.uuid4().hex[:12].upper()
            self._issued_ids.add(order_id)
            return order_id

    def append(self, order: Order) -> None:
        with self._lock:
            self._issued_ids.add(order.order_id)
            self._orders.append(order)

    def count(self) -> int:
        return len(self._orders)

    def all(self) -> List[Order]:
        with self._lock:
            return list(self._orders)

    def for_user(self, username: str) -> List[Order]:
        with self._lock:
            return [o for o in self._orders if o.username == username]

    def get(self, order_id: str) -> Optional[Order]:
        with self._lock:
            return next((o for o in self._orders if o.order_id == order_id), None)


def _validate_customer(fields: Optional[Dict]) -> CustomerInfo:
    fields = fields or {}
    values = {}
    missing = []
    for name in CUSTOMER_FIELDS:
        value = fields.get(name)
        if isinstance(value, (int, float)) and not isinstance(value, bool):
            value = str(value)
        if not isinstance(value, str) or not value.strip():
            missing.append(name)
        else:
            values[name] = value.strip()

    if missing:
        raise MissingFieldsError(fields=missing)

    return CustomerInfo(
        first_name=values['firstName'],
        last_name=values['lastName'],
        postal_code=values['postalCode']
    )


async def checkout(state, session: Session, customer_fields: Optional[Dict]) -> Order:
    """
    Finalize the session's cart into an order.

    Raises:
        CheckoutInProgressError: another checkout on this session is suspended
        MissingFieldsError: a customer field is absent or blank
        EmptyCartError: nothing to check out
        InjectedFailureError: identity has the ``error`` behavior
        InsufficientStockError: some line cannot be reserved; nothing was decremented
    """
    if session.checkout_state in IN_FLIGHT_STATES:
        raise CheckoutInProgressError()

    session.checkout_state = CheckoutState.VALIDATING
    try:
        customer = _validate_customer(customer_fields)
        if not session.cart:
            raise EmptyCartError()

        identity = session.identity
        if identity.behavior == BehaviorType.ERROR:
            await state.latency.inject(identity, LatencyPoint.CHECKOUT)
            logger.warning(f"[CHECKOUT] Injected failure for {identity.username}")
            raise InjectedFailureError()

        session.checkout_state = CheckoutState.RESERVING
        lines = [(line.product_id, line.quantity) for line in session.cart]

        with state.ledger.reserve_all(lines):
            priced = price_session(state, session)
            order = Order(
                order_id=state.orders.next_order_id(),
                username=session.username,
                customer=customer,
                priced=priced,
                timestamp=datetime.now(timezone.utc)
            )
            state.orders.append(order)

        session.last_order = order
        session.cart = []
        session.applied_coupon = None
        session.checkout_state = CheckoutState.FINALIZED

    except Exception:
        session.checkout_state = CheckoutState.IDLE
        raise

    logger.info(f"[CHECKOUT] {order.order_id} for {order.username}: total {order.total}")
    return order
