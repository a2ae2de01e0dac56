from __future__ import annotations

import logging
import re
from dataclasses import replace
from typing import Callable, Optional

from retail_pos.application.ports import Confirmer, Notifier, always_confirm, log_notifier
from retail_pos.domain.errors import NotFoundError, ValidationError
from retail_pos.domain.models import Product
from retail_pos.domain.state import AppState
from retail_pos.repositories.unit_of_work import StateUnitOfWork, UnitOfWork

log = logging.getLogger(__name__)


def default_image_url(design: str) -> str:
    seed = re.sub(r"\s+", "-", design.strip())
    return f"https://picsum.photos/seed/{seed}/400/300"


def validate_product_fields(
    design: str, wholesale_id: str, retail_id: str, category: str, retail_price: float, wholesale_price: float
) -> None:
    if not design or not wholesale_id or not retail_id or not category:
        raise ValidationError("Design, wholesale ID, retail ID and category are required.")
    if retail_price <= 0:
        raise ValidationError("Retail price must be > 0.")
    if wholesale_price < 0:
        raise ValidationError("Wholesale price must be >= 0.")


class CatalogService:
    def __init__(
        self,
        state: AppState,
        uow_factory: Callable[[], UnitOfWork] | None = None,
        confirm: Confirmer | None = None,
        notify: Notifier | None = None,
    ):
        self.state = state
        self.uow_factory = uow_factory or (lambda: StateUnitOfWork(state))
        self.confirm = confirm or always_confirm
        self.notify = notify or log_notifier

    def list_products(self) -> list[Product]:
        return list(self.state.products)

    def find_by_id(self, product_id: int) -> Optional[Product]:
        idx = self.state.product_index(product_id)
        return self.state.products[idx] if idx is not None else None

    def get(self, product_id: int) -> Product:
        p = self.find_by_id(product_id)
        if not p:
            raise NotFoundError(f"Product {product_id} not found.")
        return p

    def find_by_retail_code(self, code: str) -> Optional[Product]:
        wanted = (code or "").strip().lower()
        if not wanted:
            return None
        for p in self.state.products:
            if p.retail_id.lower() == wanted:
                return p
        return None

    def search(self, term: str) -> list[Product]:
        needle = (term or "").strip().lower()
        if not needle:
            return []
        return [p for p in self.state.products if needle in p.design.lower()]

    def low_stock(self, threshold: int) -> list[Product]:
        return sorted((p for p in self.state.products if p.count <= threshold), key=lambda p: p.count)

    def next_id(self) -> int:
        return max((p.id for p in self.state.products), default=0) + 1

    def ensure_retail_code_free(self, retail_id: str, exclude_id: int | None = None) -> None:
        clash = self.find_by_retail_code(retail_id)
        if clash and clash.id != exclude_id:
            raise ValidationError(f"Retail ID '{retail_id}' is already used by '{clash.design}'.")

    def create(
        self,
        design: str,
        wholesale_id: str,
        retail_id: str,
        retail_price: float,
        wholesale_price: float,
        category: str,
        count: int = 0,
        image_url: str = "",
    ) -> Product:
        design = (design or "").strip()
        wholesale_id = (wholesale_id or "").strip()
        retail_id = (retail_id or "").strip()
        category = (category or "").strip()
        validate_product_fields(design, wholesale_id, retail_id, category, retail_price, wholesale_price)
        if count < 0:
            raise ValidationError("Stock count must be >= 0.")
        self.ensure_retail_code_free(retail_id)

        with self.uow_factory():
            product = Product(
                id=self.next_id(),
                design=design,
                wholesale_id=wholesale_id,
                retail_id=retail_id,
                retail_price=float(retail_price),
                wholesale_price=float(wholesale_price),
                category=category,
                image_url=(image_url or "").strip() or default_image_url(design),
                count=int(count),
            )
            self.state.products.append(product)
        log.info("product_created product_id=%s retail_id=%s count=%s", product.id, product.retail_id, product.count)
        return product

    def update(self, product: Product) -> bool:
        idx = self.state.product_index(product.id)
        if idx is None:
            log.info("product_update_ignored product_id=%s reason=not_found", product.id)
            return False
        validate_product_fields(
            product.design, product.wholesale_id, product.retail_id, product.category,
            product.retail_price, product.wholesale_price,
        )
        self.ensure_retail_code_free(product.retail_id, exclude_id=product.id)
        with self.uow_factory():
            self.state.products[idx] = product
        return True

    def delete(self, product_id: int) -> bool:
        product = self.get(product_id)
        if not self.confirm("Are you sure you want to delete this product? This action cannot be undone."):
            return False
        with self.uow_factory():
            self.state.products = [p for p in self.state.products if p.id != product.id]
        log.info("product_deleted product_id=%s", product.id)
        return True

    def adjust_count(self, product_id: int, delta: int, clamp_at_zero: bool = False) -> Product:
        """Add ``delta`` to the stock count; callers own their clamping policy."""
        idx = self.state.product_index(product_id)
        if idx is None:
            raise NotFoundError(f"Product {product_id} not found.")
        with self.uow_factory():
            current = self.state.products[idx]
            new_count = current.count + int(delta)
            if clamp_at_zero:
                new_count = max(0, new_count)
            updated = replace(current, count=new_count)
            self.state.products[idx] = updated
        return updated
