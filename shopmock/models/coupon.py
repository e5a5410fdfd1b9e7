"""Coupon model."""
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Coupon:
    """Discount code; ``discount_fraction`` lies in [0, 1]."""
    code: str
    discount_fraction: Decimal

    def __post_init__(self):
        if not Decimal('0') <= self.discount_fraction <= Decimal('1'):
            raise ValueError(f'Coupon {self.code} discount must be within [0, 1]')
