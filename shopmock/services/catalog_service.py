"""
Catalog store and admin product operations.

The catalog is read-mostly; only admin create/delete mutate it. Deleting a
product that any active cart still references is rejected, never cascaded.
"""
import logging
import threading
from decimal import Decimal, InvalidOperation
from typing import Dict, List, Optional

from shopmock.exceptions import (
    InvalidInputError, InvalidQuantityError, ProductInUseError, ProductNotFoundError
)
from shopmock.models import BehaviorType, Identity, Product
from shopmock.services.pricing_service import round2, to_decimal

logger = logging.getLogger(__name__)

SORT_MODES = ('none', 'az', 'za', 'lohi', 'hilo')
MAX_PRICE = Decimal('1000000')

SEED_PRODUCTS = [
    (0, 'Sauce Labs Bike Light', '9.99', 'bike-light-1200x1500.jpg'),
    (1, 'Sauce Labs Bolt T-Shirt', '15.99', 'bolt-shirt-1200x1500.jpg'),
    (2, 'Sauce Labs Onesie', '7.99', 'onesie-1200x1500.jpg'),
    (3, 'Test.allTheThings() T-Shirt (Red)', '15.99', 'red-tatt-1200x1500.jpg'),
    (4, 'Sauce Labs Backpack', '29.99', 'sauce-backpack-1200x1500.jpg'),
    (5, 'Sauce Labs Fleece Jacket', '49.99', 'sauce-pullover-1200x1500.jpg'),
]

BROKEN_IMAGE_BEHAVIORS = (BehaviorType.PROBLEM, BehaviorType.VISUAL)


class CatalogStore:
    """Ordered collection of products keyed by id."""

    def __init__(self, products: List[Product] = None):
        self._products: Dict[int, Product] = {}
        self._next_id = 0
        # Held by writers and by cart mutations that must not race a delete
        self.lock = threading.RLock()
        for product in products or []:
            self.add(product)

    @classmethod
    def seeded(cls) -> 'CatalogStore':
        return cls([
            Product(id=pid, name=name, price=Decimal(price), image_ref=img)
            for pid, name, price, img in SEED_PRODUCTS
        ])

    def add(self, product: Product) -> Product:
        with self.lock:
            self._products[product.id] = product
            self._next_id = max(self._next_id, product.id + 1)
        return product

    def allocate_id(self) -> int:
        with self.lock:
            product_id = self._next_id
            self._next_id += 1
            return product_id

    def get(self, product_id) -> Optional[Product]:
        return self._products.get(product_id)

    def require(self, product_id) -> Product:
        product = self.get(product_id)
        if product is None:
            raise ProductNotFoundError()
        return product

    def remove(self, product_id) -> Product:
        with self.lock:
            product = self._products.pop(product_id, None)
        if product is None:
            raise ProductNotFoundError()
        return product

    def __contains__(self, product_id) -> bool:
        return product_id in self._products

    def __len__(self):
        return len(self._products)

    def all(self) -> List[Product]:
        return list(self._products.values())


def sort_products(products: List[Product], mode: Optional[str]) -> List[Product]:
    """Sort by name (az/za) or price (lohi/hilo); anything else keeps catalog order."""
    if mode == 'az':
        return sorted(products, key=lambda p: p.name.casefold())
    if mode == 'za':
        return sorted(products, key=lambda p: p.name.casefold(), reverse=True)
    if mode == 'lohi':
        return sorted(products, key=lambda p: p.price)
    if mode == 'hilo':
        return sorted(products, key=lambda p: p.price, reverse=True)
    return list(products)


def image_url(state, product: Product, identity: Optional[Identity] = None) -> str:
    if identity is not None and identity.behavior in BROKEN_IMAGE_BEHAVIORS:
        return f"{state.image_base_url}/{state.broken_image_name}"
    return f"{state.image_base_url}/{product.image_ref}"


def product_view(state, product: Product, identity: Optional[Identity] = None) -> dict:
    """Listing projection with availability; raw stock is shown to admins only."""
    available = state.ledger.get_available(product.id)
    view = {
        'id': product.id,
        'name': product.name,
        'price': float(product.price),
        'imageUrl': image_url(state, product, identity),
        'inStock': available > 0,
    }
    if identity is not None and identity.is_admin:
        view['currentStock'] = available
    return view


def list_inventory(state, identity: Optional[Identity] = None, sort: Optional[str] = None) -> List[dict]:
    products = sort_products(state.catalog.all(), sort)
    return [product_view(state, p, identity) for p in products]


def product_detail(state, product_id) -> dict:
    product = state.catalog.require(product_id)
    return {
        'id': product.id,
        'name': product.name,
        'price': float(product.price),
        'imageUrl': image_url(state, product),
    }


# =====================================================
# ADMIN OPERATIONS
# =====================================================

def create_product(state, name, price, img, initial_stock=None) -> Product:
    """Create a product and register its stock, clamped to [0, MAX_NEW_PRODUCT_STOCK]."""
    if not isinstance(name, str) or not name.strip() or not isinstance(img, str) or not img.strip() \
            or price is None or isinstance(price, bool):
        raise InvalidInputError('name, price, img required')

    try:
        parsed_price = round2(to_decimal(price))
    except (ValueError, InvalidOperation):
        raise InvalidInputError('price must be a number')
    if parsed_price < 0:
        raise InvalidInputError('price must be >= 0')
    if parsed_price >= MAX_PRICE:
        raise InvalidInputError(f'price must be < {MAX_PRICE}')

    if initial_stock is None:
        initial_stock = state.max_stock
    if not isinstance(initial_stock, int) or isinstance(initial_stock, bool):
        raise InvalidQuantityError('initialStock must be an integer')
    quantity = min(max(0, initial_stock), state.max_new_product_stock)

    with state.catalog.lock:
        product = Product(
            id=state.catalog.allocate_id(),
            name=name.strip(),
            price=parsed_price,
            image_ref=img.strip()
        )
        state.catalog.add(product)
        state.ledger.add_product(product.id, quantity)

    logger.info(f"[CATALOG] Created product {product.id} '{product.name}' with stock {quantity}")
    return product


def delete_product(state, product_id) -> Product:
    """
    Delete a product and its stock entry.

    Raises:
        ProductNotFoundError: unknown product
        ProductInUseError: some active cart still holds the product
    """
    with state.catalog.lock:
        state.catalog.require(product_id)
        if state.sessions.any_cart_references(product_id):
            raise ProductInUseError()
        product = state.catalog.remove(product_id)
        state.ledger.remove_product(product_id)

    logger.info(f"[CATALOG] Deleted product {product.id} '{product.name}'")
    return product


def set_product_stock(state, product_id, quantity) -> int:
    with state.catalog.lock:
        state.catalog.require(product_id)
        return state.ledger.set_stock(product_id, quantity)


def stock_report(state) -> List[dict]:
    return [
        {'id': p.id, 'name': p.name, 'currentStock': state.ledger.get_available(p.id)}
        for p in state.catalog.all()
    ]
