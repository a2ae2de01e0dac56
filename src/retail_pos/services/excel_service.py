from __future__ import annotations

import logging
from typing import Optional

from openpyxl import load_workbook

from retail_pos.domain.errors import ValidationError
from retail_pos.domain.models import ExistingProductPurchase, NewProductPurchase, PurchaseInvoice, PurchaseLine

log = logging.getLogger(__name__)

REQUIRED_HEADERS = ["retail_id", "design", "wholesale_id", "category", "retail_price", "purchase_price", "quantity"]


class ExcelService:
    def __init__(self, catalog, purchase_service):
        self.catalog = catalog
        self.purchases = purchase_service

    def import_purchase_excel(self, path: str, supplier: str) -> tuple[int, int, Optional[PurchaseInvoice]]:
        """
        Each row is one purchase line, committed together as a single invoice.
        Headers:
          retail_id | design | wholesale_id | category | retail_price | purchase_price | quantity

        A retail_id already in the catalog restocks that product; anything
        else creates a new product.
        """
        if not (supplier or "").strip():
            raise ValidationError("Supplier is required.")

        wb = load_workbook(path)
        ws = wb.active

        headers = {}
        for col in range(1, ws.max_column + 1):
            v = ws.cell(row=1, column=col).value
            if isinstance(v, str):
                headers[v.strip().lower()] = col

        for r in REQUIRED_HEADERS:
            if r not in headers:
                raise ValidationError(f"Missing column header: {r}")

        lines: list[PurchaseLine] = []
        seen_codes: set[str] = set()
        skipped = 0

        for row in range(2, ws.max_row + 1):
            try:
                values = {h: ws.cell(row=row, column=headers[h]).value for h in REQUIRED_HEADERS}
                retail_id = str(values["retail_id"] or "").strip()
                if not retail_id or values["quantity"] is None or values["purchase_price"] is None:
                    skipped += 1
                    continue

                quantity = int(float(values["quantity"]))
                purchase_price = float(values["purchase_price"])
                if quantity <= 0 or purchase_price < 0 or retail_id.lower() in seen_codes:
                    skipped += 1
                    continue

                existing = self.catalog.find_by_retail_code(retail_id)
                if existing:
                    lines.append(ExistingProductPurchase(existing.id, quantity, purchase_price))
                else:
                    design = str(values["design"] or "").strip()
                    wholesale_id = str(values["wholesale_id"] or "").strip()
                    category = str(values["category"] or "").strip()
                    retail_price = float(values["retail_price"]) if values["retail_price"] is not None else 0.0
                    if not design or not wholesale_id or not category or retail_price <= 0:
                        skipped += 1
                        continue
                    lines.append(
                        NewProductPurchase(
                            design=design,
                            wholesale_id=wholesale_id,
                            retail_id=retail_id,
                            retail_price=retail_price,
                            category=category,
                            quantity=quantity,
                            purchase_price=purchase_price,
                        )
                    )
                seen_codes.add(retail_id.lower())
            except (TypeError, ValueError) as e:
                log.warning("Excel import skipped row %s: %s", row, e)
                skipped += 1

        if not lines:
            return 0, skipped, None

        invoice = self.purchases.create_purchase(supplier, lines)
        return len(lines), skipped, invoice
