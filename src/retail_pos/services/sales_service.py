from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from retail_pos.application.ports import Clock, Confirmer, Notifier, always_confirm, log_notifier, utc_now
from retail_pos.config import DEFAULT_TAX_RATE
from retail_pos.domain.errors import EmptyCartError, NotFoundError, ValidationError
from retail_pos.domain.ids import new_record_id
from retail_pos.domain.models import (
    PAYMENT_METHODS,
    CartItem,
    Customer,
    Invoice,
    Payment,
    SoldItem,
    payment_status,
)
from retail_pos.domain.pricing import compute_totals, wholesale_total
from retail_pos.domain.state import AppState
from retail_pos.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger("retail_pos.sales")


def validate_payments(payments: Iterable[Payment]) -> tuple[Payment, ...]:
    out = []
    for p in payments:
        if p.method not in PAYMENT_METHODS:
            raise ValidationError(f"Unknown payment method '{p.method}'.")
        if float(p.amount) <= 0:
            raise ValidationError("Payment amount must be > 0.")
        out.append(Payment(method=p.method, amount=float(p.amount)))
    return tuple(out)


class SalesService:
    def __init__(
        self,
        state: AppState,
        catalog,
        tax_rate: float = DEFAULT_TAX_RATE,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        confirm: Confirmer | None = None,
        notify: Notifier | None = None,
        clock: Clock | None = None,
    ):
        self.state = state
        self.catalog = catalog
        self.tax_rate = float(tax_rate)
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state))
        self.confirm = confirm or always_confirm
        self.notify = notify or log_notifier
        self.clock = clock or utc_now

    def commit(
        self,
        cart_items: Iterable[CartItem],
        payments: Iterable[Payment],
        discount_percent: float = 0.0,
        customer: Optional[Customer] = None,
    ) -> Invoice:
        """Turn cart lines into an invoice.

        Stock was checked when the lines entered the cart, so commit only
        decrements it. Profit is frozen against the snapshot wholesale prices.
        """
        items = list(cart_items)
        if not items:
            raise EmptyCartError("Cart is empty.")
        if not 0 <= float(discount_percent) <= 100:
            raise ValidationError("Discount must be between 0 and 100.")
        seen: set[int] = set()
        for it in items:
            if int(it.quantity) <= 0:
                raise ValidationError("Qty must be >= 1.")
            if it.product_id in seen:
                raise ValidationError(f"'{it.design}' appears twice in the cart.")
            seen.add(it.product_id)
            if not self.catalog.find_by_id(it.product_id):
                raise NotFoundError(f"Product {it.product_id} not found.")
        if customer is not None and not any(c.id == customer.id for c in self.state.customers):
            raise NotFoundError(f"Customer {customer.id} not found.")
        paid = validate_payments(payments)

        totals = compute_totals(items, discount_percent, self.tax_rate)
        cost = wholesale_total(items)
        now = self.clock()
        invoice_id = new_record_id("INV", now)

        with self.uow_factory():
            for it in items:
                self.catalog.adjust_count(it.product_id, -int(it.quantity))

            self.state.sold_items.extend(
                SoldItem(
                    id=new_record_id("", now),
                    product_id=it.product_id,
                    design=it.design,
                    retail_id=it.product.retail_id,
                    quantity=int(it.quantity),
                    sold_price=float(it.retail_price),
                    date=now,
                    invoice_id=invoice_id,
                )
                for it in items
            )

            invoice = Invoice(
                id=invoice_id,
                items=tuple(CartItem(product=it.product, quantity=int(it.quantity)) for it in items),
                subtotal=totals.subtotal,
                discount=float(discount_percent),
                discount_amount=totals.discount_amount,
                tax=totals.tax,
                total=totals.total,
                wholesale_total=cost,
                profit=totals.total - cost,
                payments=paid,
                date=now,
                customer_id=customer.id if customer else None,
                customer_name=customer.name if customer else None,
            )
            self.state.invoices.append(invoice)

        status = payment_status(invoice.payments, invoice.total)
        log.info(
            "invoice_created invoice_id=%s lines=%s total=%.2f profit=%.2f status=%s",
            invoice.id, len(items), invoice.total, invoice.profit, status,
        )
        self.notify(f"Transaction completed. Invoice {invoice.id} created as {status}.", "success")
        return invoice

    def checkout(self, cart, payments: Iterable[Payment]) -> Invoice:
        invoice = self.commit(cart.items, payments, cart.discount_percent, cart.customer)
        cart.clear()
        return invoice

    def delete(self, invoice_id: str) -> bool:
        """Reverse a sale: restock its lines and drop its sold-item rows.

        Units already restocked by a credit note are not restocked again.
        """
        invoice = self.get_invoice(invoice_id)
        if not self.confirm(
            "Are you sure you want to delete this sales invoice? "
            "This will restore the stock counts for all items on this invoice."
        ):
            return False

        with self.uow_factory():
            for item in invoice.items:
                outstanding = item.quantity - item.returned_quantity
                if outstanding > 0 and self.catalog.find_by_id(item.product_id):
                    self.catalog.adjust_count(item.product_id, outstanding)
            self.state.sold_items = [s for s in self.state.sold_items if s.invoice_id != invoice.id]
            self.state.invoices = [inv for inv in self.state.invoices if inv.id != invoice.id]

        log.info("invoice_deleted invoice_id=%s lines=%s", invoice.id, len(invoice.items))
        return True

    def get_invoice(self, invoice_id: str) -> Invoice:
        idx = self.state.invoice_index(invoice_id)
        if idx is None:
            raise NotFoundError(f"Invoice {invoice_id} not found.")
        return self.state.invoices[idx]

    def list_invoices(self) -> list[Invoice]:
        return sorted(self.state.invoices, key=lambda inv: inv.date, reverse=True)

    def sold_items(self) -> list[SoldItem]:
        return sorted(self.state.sold_items, key=lambda s: s.date, reverse=True)

    def sold_items_for_invoice(self, invoice_id: str) -> list[SoldItem]:
        return [s for s in self.state.sold_items if s.invoice_id == invoice_id]
