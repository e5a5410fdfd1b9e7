"""
Stock ledger - authoritative per-product remaining quantities.

The ledger is shared by every session. Each product id has its own lock, held
across the read-check-decrement sequence so racing checkouts can never drive
an entry negative.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Dict, Iterable, Iterator, List, Tuple

from shopmock.exceptions import InsufficientStockError, InvalidQuantityError

logger = logging.getLogger(__name__)


def _is_valid_quantity(quantity) -> bool:
    return isinstance(quantity, int) and not isinstance(quantity, bool) and quantity >= 0


class StockLedger:
    """Mapping of product id to remaining quantity."""

    def __init__(self, initial: Dict[int, int] = None):
        self._stock: Dict[int, int] = {}
        self._locks: Dict[int, threading.RLock] = {}
        self._registry_lock = threading.Lock()
        for product_id, quantity in (initial or {}).items():
            self.add_product(product_id, quantity)

    def _lock_for(self, product_id: int) -> threading.RLock:
        with self._registry_lock:
            lock = self._locks.get(product_id)
            if lock is None:
                lock = self._locks[product_id] = threading.RLock()
            return lock

    # =====================================================
    # READS
    # =====================================================

    def get_available(self, product_id: int) -> int:
        """Current quantity, 0 if the product is unknown."""
        return self._stock.get(product_id, 0)

    def __contains__(self, product_id) -> bool:
        return product_id in self._stock

    def snapshot(self) -> Dict[int, int]:
        with self._registry_lock:
            return dict(self._stock)

    # =====================================================
    # WRITES
    # =====================================================

    def add_product(self, product_id: int, quantity: int) -> None:
        """Register a product with its starting quantity."""
        if not _is_valid_quantity(quantity):
            raise InvalidQuantityError()
        with self._lock_for(product_id):
            self._stock[product_id] = quantity

    def remove_product(self, product_id: int) -> None:
        with self._lock_for(product_id):
            self._stock.pop(product_id, None)
            with self._registry_lock:
                self._locks.pop(product_id, None)

    def set_stock(self, product_id: int, quantity: int) -> int:
        """Admin override of a product's quantity."""
        if not _is_valid_quantity(quantity):
            raise InvalidQuantityError()
        with self._lock_for(product_id):
            previous = self._stock.get(product_id, 0)
            self._stock[product_id] = quantity
        logger.info(f"[STOCK] Product {product_id} set {previous} -> {quantity}")
        return quantity

    def reserve(self, product_id: int, amount: int) -> int:
        """
        Decrement a single product's quantity.

        Returns:
            int: quantity left after the reservation

        Raises:
            InsufficientStockError: if fewer than ``amount`` units are available
        """
        if not isinstance(amount, int) or isinstance(amount, bool) or amount < 1:
            raise InvalidQuantityError()
        with self._lock_for(product_id):
            available = self._stock.get(product_id, 0)
            if available < amount:
                raise InsufficientStockError(available, product_id=product_id, requested=amount)
            self._stock[product_id] = available - amount
            return self._stock[product_id]

    @contextmanager
    def reserve_all(self, lines: Iterable[Tuple[int, int]]) -> Iterator[Dict[int, int]]:
        """
        Reserve every (product_id, amount) pair or none of them.

        Locks are taken in ascending product id order and held for the whole
        ``with`` block. Every line is checked before anything is decremented;
        if the block raises, the transaction log is replayed to put the
        quantities back.

        Usage:
            with ledger.reserve_all([(0, 2), (4, 1)]) as reserved:
                ...build the order...
        """
        requested: Dict[int, int] = {}
        for product_id, amount in lines:
            requested[product_id] = requested.get(product_id, 0) + amount

        ordered_ids = sorted(requested)
        locks = [self._lock_for(pid) for pid in ordered_ids]
        for lock in locks:
            lock.acquire()
        try:
            # Phase 1: validate all lines
            for pid in ordered_ids:
                available = self._stock.get(pid, 0)
                if available < requested[pid]:
                    raise InsufficientStockError(available, product_id=pid, requested=requested[pid])

            # Phase 2: decrement, keeping a log for rollback
            log: List[Tuple[int, int]] = []
            for pid in ordered_ids:
                self._stock[pid] -= requested[pid]
                log.append((pid, requested[pid]))

            try:
                yield dict(log)
            except BaseException:
                for pid, amount in reversed(log):
                    self._stock[pid] = self._stock.get(pid, 0) + amount
                logger.warning(f"[STOCK] Reservation rolled back for products {ordered_ids}")
                raise
        finally:
            for lock in reversed(locks):
                lock.release()
