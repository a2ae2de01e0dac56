from __future__ import annotations

import logging
from typing import Callable

from retail_pos.application.ports import Clock, Notifier, log_notifier, utc_now
from retail_pos.domain.errors import NotFoundError, ValidationError
from retail_pos.domain.ids import new_record_id
from retail_pos.domain.models import StockAdjustment
from retail_pos.domain.state import AppState
from retail_pos.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)


class AdjustmentService:
    def __init__(
        self,
        state: AppState,
        catalog,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        notify: Notifier | None = None,
        clock: Clock | None = None,
    ):
        self.state = state
        self.catalog = catalog
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state))
        self.notify = notify or log_notifier
        self.clock = clock or utc_now

    def adjust(self, product_id: int, quantity: int, reason: str) -> StockAdjustment:
        """Apply a signed, reason-coded correction to a product's stock.

        No floor is enforced here; keeping removals within current stock is
        left to the caller.
        """
        reason = (reason or "").strip()
        if not reason:
            raise ValidationError("A reason is required for a stock adjustment.")
        if int(quantity) != quantity or int(quantity) == 0:
            raise ValidationError("Adjustment quantity must be a non-zero whole number.")
        product = self.catalog.find_by_id(product_id)
        if not product:
            raise NotFoundError(f"Product {product_id} not found.")

        now = self.clock()
        adjustment = StockAdjustment(
            id=new_record_id("ADJ", now),
            product_id=product.id,
            product_design=product.design,
            quantity=int(quantity),
            reason=reason,
            date=now,
        )
        with self.uow_factory():
            self.state.stock_adjustments.append(adjustment)
            updated = self.catalog.adjust_count(product.id, adjustment.quantity)

        log.info(
            "stock_adjusted adjustment_id=%s product_id=%s delta=%s stock_after=%s",
            adjustment.id, product.id, adjustment.quantity, updated.count,
        )
        self.notify(f"Stock for {product.design} adjusted by {adjustment.quantity}.", "success")
        return adjustment

    def history(self) -> list[StockAdjustment]:
        return sorted(self.state.stock_adjustments, key=lambda a: a.date, reverse=True)
