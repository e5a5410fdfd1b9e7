"""Product model."""
from dataclasses import dataclass
from decimal import Decimal


@dataclass(frozen=True)
class Product:
    """Catalog entry. Immutable once created."""
    id: int
    name: str
    price: Decimal
    image_ref: str

    def __repr__(self):
        return f"<Product(id={self.id}, name='{self.name}', price={self.price})>"
