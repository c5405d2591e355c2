from __future__ import annotations

from dataclasses import dataclass, replace
from decimal import Decimal
from typing import Iterable, Iterator, Tuple

from ticketpos.db.models import Product, SaleLine


@dataclass(frozen=True)
class CartLine:
    product: Product
    quantity: int

    @property
    def subtotal(self) -> Decimal:
        return self.product.price * self.quantity


@dataclass(frozen=True)
class Cart:
    """
    Pre-checkout collection of products, one line per product id.

    Every operation returns a new Cart; lines keep the order in which their
    product was first added. Lines reference the live Product record, so the
    total follows price edits until the sale snapshots it.
    """

    lines: Tuple[CartLine, ...] = ()

    def __iter__(self) -> Iterator[CartLine]:
        return iter(self.lines)

    def __len__(self) -> int:
        return len(self.lines)

    @property
    def is_empty(self) -> bool:
        return not self.lines

    def quantity_of(self, product_id: int) -> int:
        for line in self.lines:
            if line.product.id == product_id:
                return line.quantity
        return 0

    def add(self, product: Product) -> "Cart":
        if self.quantity_of(product.id):
            return Cart(
                tuple(
                    replace(line, quantity=line.quantity + 1)
                    if line.product.id == product.id
                    else line
                    for line in self.lines
                )
            )
        return Cart(self.lines + (CartLine(product, 1),))

    def update_quantity(self, product_id: int, quantity: int) -> "Cart":
        if quantity <= 0:
            return self.remove(product_id)
        return Cart(
            tuple(
                replace(line, quantity=quantity)
                if line.product.id == product_id
                else line
                for line in self.lines
            )
        )

    def remove(self, product_id: int) -> "Cart":
        return Cart(tuple(line for line in self.lines if line.product.id != product_id))

    def clear(self) -> "Cart":
        return Cart()

    def refresh_products(self, products: Iterable[Product]) -> "Cart":
        """Swap in newer product records by id; lines whose product is gone are dropped."""
        by_id = {p.id: p for p in products}
        return Cart(
            tuple(
                replace(line, product=by_id[line.product.id])
                for line in self.lines
                if line.product.id in by_id
            )
        )

    def total(self) -> Decimal:
        return sum((line.subtotal for line in self.lines), Decimal("0"))

    def item_count(self) -> int:
        return sum(line.quantity for line in self.lines)

    def snapshot(self) -> Tuple[SaleLine, ...]:
        return tuple(
            SaleLine(
                product_id=line.product.id,
                product_name=line.product.name,
                unit_price=line.product.price,
                quantity=line.quantity,
            )
            for line in self.lines
        )
