from __future__ import annotations

import logging
from typing import Callable, Optional

from retail_pos.application.ports import Confirmer, always_confirm
from retail_pos.domain.errors import NotFoundError, ValidationError
from retail_pos.domain.models import Customer
from retail_pos.domain.state import AppState
from retail_pos.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)


def _optional(value: Optional[str]) -> Optional[str]:
    value = (value or "").strip()
    return value or None


class CustomerService:
    def __init__(
        self,
        state: AppState,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        confirm: Confirmer | None = None,
    ):
        self.state = state
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state))
        self.confirm = confirm or always_confirm

    def list_customers(self) -> list[Customer]:
        return list(self.state.customers)

    def get(self, customer_id: int) -> Customer:
        for c in self.state.customers:
            if c.id == int(customer_id):
                return c
        raise NotFoundError(f"Customer {customer_id} not found.")

    def add(self, name: str, phone: Optional[str] = None, email: Optional[str] = None) -> Customer:
        name = (name or "").strip()
        if not name:
            raise ValidationError("Customer name is required.")
        with self.uow_factory():
            customer = Customer(
                id=max((c.id for c in self.state.customers), default=0) + 1,
                name=name,
                phone=_optional(phone),
                email=_optional(email),
            )
            self.state.customers.append(customer)
        log.info("customer_created customer_id=%s", customer.id)
        return customer

    def update(self, customer: Customer) -> bool:
        name = (customer.name or "").strip()
        if not name:
            raise ValidationError("Customer name is required.")
        for i, c in enumerate(self.state.customers):
            if c.id == customer.id:
                with self.uow_factory():
                    self.state.customers[i] = Customer(
                        id=c.id, name=name, phone=_optional(customer.phone), email=_optional(customer.email)
                    )
                return True
        return False

    def delete(self, customer_id: int) -> bool:
        customer = self.get(customer_id)
        if not self.confirm("Are you sure you want to delete this customer?"):
            return False
        with self.uow_factory():
            self.state.customers = [c for c in self.state.customers if c.id != customer.id]
        log.info("customer_deleted customer_id=%s", customer.id)
        return True
