"""Product aggregate owned by the catalogue.

Ordering only needs the parts of a product that price and commit an order:
its current price, display name and the stock counters. Stock is decremented
and returned by conditional updates in ``catalogue.product.stock`` so that it
can never go negative under concurrent checkouts.
"""

from decimal import Decimal as D

from protean.fields import Boolean, DateTime, Decimal, Integer, String

from catalogue.domain import catalogue
from shared.database import utcnow


@catalogue.aggregate
class Product:
    sku: String(required=True, max_length=50, unique=True)
    name: String(required=True, max_length=255)
    price: Decimal(required=True, min_value=0, precision=12, scale=2)
    stock: Integer(default=0, min_value=0)
    sold_count: Integer(default=0, min_value=0)
    is_active: Boolean(default=True)
    created_at: DateTime()
    updated_at: DateTime()

    @classmethod
    def register(cls, sku, name, price, stock=0):
        now = utcnow()
        return cls(
            sku=sku.strip(),
            name=name,
            price=D(price).quantize(D("0.01")),
            stock=stock,
            sold_count=0,
            is_active=True,
            created_at=now,
            updated_at=now,
        )

    def restock(self, quantity: int) -> None:
        self.stock += quantity
        self.updated_at = utcnow()
