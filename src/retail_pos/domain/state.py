from __future__ import annotations

from dataclasses import dataclass, field, fields
from typing import Optional

from retail_pos.domain.models import (
    CreditNote,
    Customer,
    Invoice,
    Product,
    PurchaseInvoice,
    SoldItem,
    StockAdjustment,
)


@dataclass
class AppState:
    """Every persisted record set, owned by one writer.

    Records are frozen dataclasses; mutation means replacing list entries,
    so a snapshot only needs to copy the lists.
    """

    products: list[Product] = field(default_factory=list)
    sold_items: list[SoldItem] = field(default_factory=list)
    invoices: list[Invoice] = field(default_factory=list)
    purchase_invoices: list[PurchaseInvoice] = field(default_factory=list)
    credit_notes: list[CreditNote] = field(default_factory=list)
    customers: list[Customer] = field(default_factory=list)
    stock_adjustments: list[StockAdjustment] = field(default_factory=list)
    theme: str = "system"
    tx_depth: int = field(default=0, repr=False, compare=False)

    def snapshot(self) -> "AppState":
        copied = {f.name: getattr(self, f.name) for f in fields(self) if f.name != "tx_depth"}
        for name, value in copied.items():
            if isinstance(value, list):
                copied[name] = list(value)
        return AppState(**copied)

    def restore(self, snap: "AppState") -> None:
        for f in fields(self):
            if f.name == "tx_depth":
                continue
            value = getattr(snap, f.name)
            setattr(self, f.name, list(value) if isinstance(value, list) else value)

    # ---------- lookups ----------
    def product_index(self, product_id: int) -> Optional[int]:
        for i, p in enumerate(self.products):
            if p.id == int(product_id):
                return i
        return None

    def invoice_index(self, invoice_id: str) -> Optional[int]:
        for i, inv in enumerate(self.invoices):
            if inv.id == invoice_id:
                return i
        return None
