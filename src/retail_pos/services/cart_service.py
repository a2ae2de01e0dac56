from __future__ import annotations

import logging
from dataclasses import replace
from typing import Optional

from retail_pos.config import DEFAULT_TAX_RATE
from retail_pos.domain.errors import InsufficientStockError, NotFoundError, ValidationError
from retail_pos.domain.models import CartItem, CartTotals, Customer, Product
from retail_pos.domain.pricing import compute_totals

log = logging.getLogger(__name__)


def _insufficient(product: Product) -> InsufficientStockError:
    return InsufficientStockError(
        f"Not enough stock for '{product.design}'. Only {product.count} available.",
        product_id=product.id,
        available=product.count,
    )


class Cart:
    """Ephemeral checkout session: one line per product, in insertion order.

    Totals are recomputed from the lines on every read.
    """

    def __init__(self, catalog, tax_rate: float = DEFAULT_TAX_RATE):
        self.catalog = catalog
        self.tax_rate = float(tax_rate)
        self._lines: dict[int, CartItem] = {}
        self.discount_percent = 0.0
        self.customer: Optional[Customer] = None

    @property
    def items(self) -> list[CartItem]:
        return list(self._lines.values())

    def is_empty(self) -> bool:
        return not self._lines

    def quantity_of(self, product_id: int) -> int:
        line = self._lines.get(int(product_id))
        return line.quantity if line else 0

    def add(self, product: Product) -> CartItem:
        # stock is checked against the catalog entry, not the passed snapshot
        live = self.catalog.find_by_id(product.id)
        if not live:
            raise NotFoundError(f"Product {product.id} not found.")
        if self.quantity_of(live.id) >= live.count:
            raise _insufficient(live)

        line = self._lines.get(live.id)
        line = replace(line, product=live, quantity=line.quantity + 1) if line else CartItem(product=live, quantity=1)
        self._lines[live.id] = line
        return line

    def add_by_retail_code(self, code: str) -> CartItem:
        code = (code or "").strip()
        product = self.catalog.find_by_retail_code(code)
        if not product:
            raise NotFoundError(f"Product with code '{code}' not found.")
        return self.add(product)

    def set_quantity(self, product_id: int, quantity: int) -> None:
        product_id = int(product_id)
        quantity = int(quantity)
        if quantity <= 0:
            self.remove(product_id)
            return

        product = self.catalog.find_by_id(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found.")
        line = self._lines.get(product_id)
        if not line:
            raise NotFoundError(f"'{product.design}' is not in the cart.")

        if quantity > product.count:
            if product.count > 0:
                self._lines[product_id] = replace(line, quantity=product.count)
            else:
                self.remove(product_id)
            raise _insufficient(product)

        self._lines[product_id] = replace(line, quantity=quantity)

    def remove(self, product_id: int) -> None:
        self._lines.pop(int(product_id), None)

    def set_discount(self, percent: float) -> None:
        percent = float(percent)
        if not 0 <= percent <= 100:
            raise ValidationError("Discount must be between 0 and 100.")
        self.discount_percent = percent

    def select_customer(self, customer: Optional[Customer]) -> None:
        self.customer = customer

    def clear(self) -> None:
        self._lines.clear()
        self.discount_percent = 0.0
        self.customer = None

    def totals(self) -> CartTotals:
        return compute_totals(self._lines.values(), self.discount_percent, self.tax_rate)

    @property
    def subtotal(self) -> float:
        return self.totals().subtotal

    @property
    def discount_amount(self) -> float:
        return self.totals().discount_amount

    @property
    def tax(self) -> float:
        return self.totals().tax

    @property
    def total(self) -> float:
        return self.totals().total
