from __future__ import annotations

import logging
from typing import Callable, Iterable, Optional

from retail_pos.application.ports import Clock, Confirmer, Notifier, always_confirm, log_notifier, utc_now
from retail_pos.domain.errors import NotFoundError, ValidationError
from retail_pos.domain.ids import new_record_id
from retail_pos.domain.models import (
    ExistingProductPurchase,
    NewProductPurchase,
    Payment,
    PurchaseInvoice,
    PurchaseItem,
    PurchaseLine,
)
from retail_pos.domain.state import AppState
from retail_pos.repositories.unit_of_work import StateUnitOfWork, UnitOfWork
from retail_pos.services.catalog_service import validate_product_fields
from retail_pos.services.sales_service import validate_payments

log = logging.getLogger(__name__)


class PurchaseService:
    def __init__(
        self,
        state: AppState,
        catalog,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        confirm: Confirmer | None = None,
        notify: Notifier | None = None,
        clock: Clock | None = None,
    ):
        self.state = state
        self.catalog = catalog
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state))
        self.confirm = confirm or always_confirm
        self.notify = notify or log_notifier
        self.clock = clock or utc_now

    def _validate(self, supplier: str, items: list) -> tuple[list[NewProductPurchase], list[ExistingProductPurchase]]:
        if not supplier or not items:
            raise ValidationError("Please provide a supplier name and add at least one item.")

        new_items: list[NewProductPurchase] = []
        existing_items: list[ExistingProductPurchase] = []
        new_codes: set[str] = set()
        for it in items:
            if not isinstance(it, (NewProductPurchase, ExistingProductPurchase)):
                raise ValidationError(f"Unsupported purchase line: {type(it).__name__}")
            if int(it.quantity) <= 0:
                raise ValidationError("Qty must be >= 1.")
            if float(it.purchase_price) < 0:
                raise ValidationError("Purchase price must be >= 0.")

            if isinstance(it, NewProductPurchase):
                validate_product_fields(
                    it.design.strip(), it.wholesale_id.strip(), it.retail_id.strip(), it.category.strip(),
                    it.retail_price, it.purchase_price,
                )
                code = it.retail_id.strip().lower()
                if code in new_codes:
                    raise ValidationError(f"Retail ID '{it.retail_id}' appears twice on this invoice.")
                self.catalog.ensure_retail_code_free(it.retail_id.strip())
                new_codes.add(code)
                new_items.append(it)
            else:
                if not self.catalog.find_by_id(it.product_id):
                    raise NotFoundError(f"Product {it.product_id} not found.")
                if any(e.product_id == it.product_id for e in existing_items):
                    raise ValidationError("This product is already on the invoice.")
                existing_items.append(it)
        return new_items, existing_items

    def create_purchase(
        self,
        supplier: str,
        items: Iterable[PurchaseLine],
        payments: Iterable[Payment] = (),
        total: Optional[float] = None,
    ) -> PurchaseInvoice:
        """
        items: NewProductPurchase (creates a catalog product) or
        ExistingProductPurchase (restocks one). New products are created first,
        taking ids in line order.
        """
        supplier = (supplier or "").strip()
        items = list(items)
        new_items, existing_items = self._validate(supplier, items)
        paid = validate_payments(payments)

        if total is None:
            total = sum(float(it.purchase_price) * int(it.quantity) for it in items)
        if float(total) < 0:
            raise ValidationError("Invoice total must be >= 0.")

        lines: list[PurchaseItem] = []
        with self.uow_factory():
            for it in new_items:
                product = self.catalog.create(
                    design=it.design,
                    wholesale_id=it.wholesale_id,
                    retail_id=it.retail_id,
                    retail_price=it.retail_price,
                    wholesale_price=it.purchase_price,
                    category=it.category,
                    count=int(it.quantity),
                    image_url=it.image_url,
                )
                lines.append(PurchaseItem(product.id, product.design, int(it.quantity), float(it.purchase_price)))

            for it in existing_items:
                product = self.catalog.adjust_count(it.product_id, int(it.quantity))
                lines.append(PurchaseItem(product.id, product.design, int(it.quantity), float(it.purchase_price)))

            now = self.clock()
            invoice = PurchaseInvoice(
                id=new_record_id("PUR", now),
                supplier=supplier,
                items=tuple(lines),
                total=float(total),
                payments=paid,
                date=now,
            )
            self.state.purchase_invoices.append(invoice)

        log.info(
            "purchase_created purchase_id=%s supplier=%s new=%s existing=%s total=%.2f",
            invoice.id, supplier, len(new_items), len(existing_items), invoice.total,
        )
        self.notify(f"Purchase invoice {invoice.id} from {supplier} has been saved.", "success")
        return invoice

    def commit(
        self,
        supplier: str,
        new_items: Iterable[NewProductPurchase],
        existing_items: Iterable[ExistingProductPurchase],
        payments: Iterable[Payment] = (),
        total: Optional[float] = None,
    ) -> PurchaseInvoice:
        return self.create_purchase(supplier, [*new_items, *existing_items], payments, total)

    def delete(self, invoice_id: str) -> bool:
        """Reverse a purchase. Stock is floored at zero since units may have sold since."""
        invoice = self.get_purchase(invoice_id)
        if not self.confirm(
            "Are you sure you want to delete this purchase invoice? "
            "This will reduce the stock counts for all items on this invoice."
        ):
            return False

        with self.uow_factory():
            for item in invoice.items:
                if self.catalog.find_by_id(item.product_id):
                    self.catalog.adjust_count(item.product_id, -int(item.quantity), clamp_at_zero=True)
            self.state.purchase_invoices = [p for p in self.state.purchase_invoices if p.id != invoice.id]

        log.info("purchase_deleted purchase_id=%s lines=%s", invoice.id, len(invoice.items))
        return True

    def get_purchase(self, invoice_id: str) -> PurchaseInvoice:
        for p in self.state.purchase_invoices:
            if p.id == invoice_id:
                return p
        raise NotFoundError(f"Purchase invoice {invoice_id} not found.")

    def list_purchases(self) -> list[PurchaseInvoice]:
        return sorted(self.state.purchase_invoices, key=lambda p: p.date, reverse=True)
