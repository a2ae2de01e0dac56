from __future__ import annotations

import logging
from dataclasses import replace
from typing import Callable, Mapping

from retail_pos.application.ports import Clock, Notifier, log_notifier, utc_now
from retail_pos.domain.errors import NotFoundError, OverReturnError, ValidationError
from retail_pos.domain.ids import new_record_id
from retail_pos.domain.models import CreditNote, Invoice, ReturnedItem
from retail_pos.domain.pricing import refund_per_unit
from retail_pos.domain.state import AppState
from retail_pos.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger("retail_pos.sales")


def _normalize_lines(returned_lines: Mapping[int, int]) -> dict[int, int]:
    lines: dict[int, int] = {}
    for product_id, qty in returned_lines.items():
        qty = int(qty)
        if qty < 0:
            raise ValidationError("Return quantity must be >= 0.")
        if qty > 0:
            lines[int(product_id)] = lines.get(int(product_id), 0) + qty
    return lines


def quote_refund(invoice: Invoice, returned_lines: Mapping[int, int]) -> list[ReturnedItem]:
    """Price a return against ``invoice`` without touching any state.

    Raises ``OverReturnError`` when a line would exceed what is still returnable.
    """
    out: list[ReturnedItem] = []
    for product_id, qty in _normalize_lines(returned_lines).items():
        line = invoice.line_for(product_id)
        if line is None:
            raise NotFoundError(f"Product {product_id} is not on invoice {invoice.id}.")
        if qty > line.returnable_quantity:
            raise OverReturnError(
                f"Cannot return {qty} of '{line.design}'. Only {line.returnable_quantity} of {line.quantity} returnable.",
                product_id=product_id,
                requested=qty,
                returnable=line.returnable_quantity,
            )
        out.append(
            ReturnedItem(
                product_id=product_id,
                design=line.design,
                quantity=qty,
                refund_amount=refund_per_unit(invoice, line) * qty,
            )
        )
    return out


class ReturnsService:
    def __init__(
        self,
        state: AppState,
        catalog,
        sales,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        notify: Notifier | None = None,
        clock: Clock | None = None,
    ):
        self.state = state
        self.catalog = catalog
        self.sales = sales
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state))
        self.notify = notify or log_notifier
        self.clock = clock or utc_now

    def process_return(self, invoice_id: str, returned_lines: Mapping[int, int], reason: str) -> CreditNote:
        """
        returned_lines: {product_id: quantity}

        Issues one credit note, restocks the returned units and records the
        cumulative returned quantity on the invoice lines. Payments are left
        as they are.
        """
        invoice = self.sales.get_invoice(invoice_id)
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("Please provide a reason for the return.")
        items = quote_refund(invoice, returned_lines)
        if not items:
            raise ValidationError("Please select at least one item to return.")

        now = self.clock()
        note = CreditNote(
            id=new_record_id("CN", now),
            original_invoice_id=invoice.id,
            items=tuple(items),
            total_refund=sum(it.refund_amount for it in items),
            date=now,
            reason=reason,
        )
        returned = {it.product_id: it.quantity for it in items}

        with self.uow_factory():
            self.state.credit_notes.append(note)
            for it in items:
                if self.catalog.find_by_id(it.product_id):
                    self.catalog.adjust_count(it.product_id, it.quantity)

            updated = replace(
                invoice,
                items=tuple(
                    replace(line, returned_quantity=line.returned_quantity + returned[line.product_id])
                    if line.product_id in returned else line
                    for line in invoice.items
                ),
                credit_note_ids=invoice.credit_note_ids + (note.id,),
            )
            self.state.invoices[self.state.invoice_index(invoice.id)] = updated

        log.info(
            "credit_note_created credit_note_id=%s invoice_id=%s units=%s refund=%.2f",
            note.id, invoice.id, sum(returned.values()), note.total_refund,
        )
        self.notify(f"Return processed. Credit Note {note.id} created for ${note.total_refund:.2f}.", "success")
        return note

    def list_credit_notes(self) -> list[CreditNote]:
        return sorted(self.state.credit_notes, key=lambda cn: cn.date, reverse=True)

    def credit_notes_for_invoice(self, invoice_id: str) -> list[CreditNote]:
        return [cn for cn in self.state.credit_notes if cn.original_invoice_id == invoice_id]
