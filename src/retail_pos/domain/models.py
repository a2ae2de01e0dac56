from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

PAYMENT_METHODS = ("cash", "card", "upi")
THEMES = ("light", "dark", "system")


@dataclass(frozen=True)
class Product:
    id: int
    design: str
    wholesale_id: str
    retail_id: str
    retail_price: float
    wholesale_price: float
    category: str
    image_url: str
    count: int


@dataclass(frozen=True)
class Payment:
    method: str
    amount: float


@dataclass(frozen=True)
class CartItem:
    """A product snapshot plus the quantity taken.

    Inside an invoice the snapshot is frozen at sale time and
    ``returned_quantity`` accumulates across credit notes.
    """

    product: Product
    quantity: int
    returned_quantity: int = 0

    @property
    def product_id(self) -> int:
        return self.product.id

    @property
    def design(self) -> str:
        return self.product.design

    @property
    def retail_price(self) -> float:
        return self.product.retail_price

    @property
    def wholesale_price(self) -> float:
        return self.product.wholesale_price

    @property
    def line_total(self) -> float:
        return self.product.retail_price * self.quantity

    @property
    def returnable_quantity(self) -> int:
        return self.quantity - self.returned_quantity


@dataclass(frozen=True)
class SoldItem:
    id: str
    product_id: int
    design: str
    retail_id: str
    quantity: int
    sold_price: float
    date: datetime
    invoice_id: str


@dataclass(frozen=True)
class Invoice:
    id: str
    items: tuple[CartItem, ...]
    subtotal: float
    discount: float
    discount_amount: float
    tax: float
    total: float
    wholesale_total: float
    profit: float
    payments: tuple[Payment, ...]
    date: datetime
    credit_note_ids: tuple[str, ...] = ()
    customer_id: Optional[int] = None
    customer_name: Optional[str] = None

    def line_for(self, product_id: int) -> Optional[CartItem]:
        for item in self.items:
            if item.product_id == product_id:
                return item
        return None


@dataclass(frozen=True)
class PurchaseItem:
    product_id: int
    design: str
    quantity: int
    purchase_price: float


@dataclass(frozen=True)
class PurchaseInvoice:
    id: str
    supplier: str
    items: tuple[PurchaseItem, ...]
    total: float
    payments: tuple[Payment, ...]
    date: datetime


@dataclass(frozen=True)
class NewProductPurchase:
    design: str
    wholesale_id: str
    retail_id: str
    retail_price: float
    category: str
    quantity: int
    purchase_price: float
    image_url: str = ""


@dataclass(frozen=True)
class ExistingProductPurchase:
    product_id: int
    quantity: int
    purchase_price: float


# A purchase line either creates a catalog product or restocks one.
PurchaseLine = Union[NewProductPurchase, ExistingProductPurchase]


@dataclass(frozen=True)
class ReturnedItem:
    product_id: int
    design: str
    quantity: int
    refund_amount: float


@dataclass(frozen=True)
class CreditNote:
    id: str
    original_invoice_id: str
    items: tuple[ReturnedItem, ...]
    total_refund: float
    date: datetime
    reason: str


@dataclass(frozen=True)
class Customer:
    id: int
    name: str
    phone: Optional[str] = None
    email: Optional[str] = None


@dataclass(frozen=True)
class StockAdjustment:
    id: str
    product_id: int
    product_design: str
    quantity: int
    reason: str
    date: datetime


@dataclass(frozen=True)
class CartTotals:
    subtotal: float
    discount_amount: float
    taxable_amount: float
    tax: float
    total: float


@dataclass(frozen=True)
class FinancialSummary:
    gross_revenue: float
    total_refunds: float
    net_revenue: float
    wholesale_cost: float
    returned_cost: float
    adjustment_cost: float
    adjusted_cogs: float
    gross_profit: float
    profit_margin: float
    total_items_sold: int
    paid_invoices_count: int
    unpaid_invoices_count: int
    receivables: float
    total_purchases: float
    paid_purchases_count: int
    unpaid_purchases_count: int
    payables: float


def total_paid(payments) -> float:
    return sum(float(p.amount) for p in payments)


def payment_status(payments, total: float) -> str:
    paid = total_paid(payments)
    if paid == 0:
        return "UNPAID"
    if paid < total:
        return "PARTIALLY PAID"
    return "PAID"


def payment_label(payments, total: float) -> str:
    status = payment_status(payments, total)
    if status != "PAID":
        return status
    if len(payments) == 1:
        method = payments[0].method
        return f"PAID ({'UPI' if method == 'upi' else method.capitalize()})"
    return "PAID (Split)"
