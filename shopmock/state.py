"""Process-lifetime application state and its initialization."""
import logging
import time
from decimal import Decimal

from flask import current_app

from shopmock.services.auth_service import TokenIssuer
from shopmock.services.catalog_service import CatalogStore
from shopmock.services.checkout_service import OrderHistory
from shopmock.services.latency_service import LatencyInjector
from shopmock.services.pricing_service import CouponTable
from shopmock.services.rate_limit_service import RateLimiter
from shopmock.services.session_service import SessionStore
from shopmock.services.stock_service import StockLedger
from shopmock.services.user_service import UserDirectory

logger = logging.getLogger(__name__)

EXTENSION_KEY = 'shopmock'


class ShopState:
    """
    Every mutable store the engine works on.

    Built once per application and passed explicitly to the service
    functions; nothing reads these stores as module globals.
    """

    def __init__(self, catalog, ledger, sessions, coupons, users, orders,
                 latency, rate_limiter, tokens, tax_rate=Decimal('0.08'),
                 max_stock=10, max_new_product_stock=100,
                 image_base_url='https://www.saucedemo.com/img',
                 broken_image_name='problem-user.jpg'):
        self.catalog = catalog
        self.ledger = ledger
        self.sessions = sessions
        self.coupons = coupons
        self.users = users
        self.orders = orders
        self.latency = latency
        self.rate_limiter = rate_limiter
        self.tokens = tokens
        self.tax_rate = tax_rate
        self.max_stock = max_stock
        self.max_new_product_stock = max_new_product_stock
        self.image_base_url = image_base_url.rstrip('/')
        self.broken_image_name = broken_image_name

    @classmethod
    def from_config(cls, config, sleep=None, clock=None) -> 'ShopState':
        """Seeded state: demo catalog with MAX_STOCK units each, demo users, coupons."""
        max_stock = config.get('MAX_STOCK', 10)
        catalog = CatalogStore.seeded()
        ledger = StockLedger({p.id: max_stock for p in catalog.all()})
        rate_limiter = RateLimiter.from_config(config, clock=clock or time.time)
        return cls(
            catalog=catalog,
            ledger=ledger,
            sessions=SessionStore(),
            coupons=CouponTable(config.get('COUPONS', {})),
            users=UserDirectory.seeded(),
            orders=OrderHistory(),
            latency=LatencyInjector.from_config(config, sleep=sleep),
            rate_limiter=rate_limiter,
            tokens=TokenIssuer.from_config(config),
            tax_rate=Decimal(str(config.get('TAX_RATE', '0.08'))),
            max_stock=max_stock,
            max_new_product_stock=config.get('MAX_NEW_PRODUCT_STOCK', 100),
            image_base_url=config.get('IMAGE_BASE_URL', 'https://www.saucedemo.com/img'),
            broken_image_name=config.get('BROKEN_IMAGE_NAME', 'problem-user.jpg')
        )


def init_state(app, state: ShopState = None) -> ShopState:
    """Attach a fresh (or provided) ShopState to the app."""
    if state is None:
        state = ShopState.from_config(app.config)
    app.extensions[EXTENSION_KEY] = state
    logger.info(
        f"[STATE] Initialized: {len(state.catalog)} products, {len(state.users)} users, "
        f"coupons={state.coupons.codes()}"
    )
    return state


def get_state() -> ShopState:
    """Get the state bound to the current app."""
    return current_app.extensions[EXTENSION_KEY]
