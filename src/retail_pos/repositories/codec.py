"""JSON record codec for the persisted record sets.

Timestamps are written as ISO-8601 strings and come back as aware
``datetime`` values, so a reloaded invoice date is the same instant.
"""
from __future__ import annotations

import json
from dataclasses import asdict
from datetime import datetime, timezone
from typing import Any, Callable

from retail_pos.domain.models import (
    CartItem,
    CreditNote,
    Customer,
    Invoice,
    Payment,
    Product,
    PurchaseInvoice,
    PurchaseItem,
    ReturnedItem,
    SoldItem,
    StockAdjustment,
)


def format_timestamp(value: datetime) -> str:
    if value.tzinfo is None:
        value = value.replace(tzinfo=timezone.utc)
    return value.isoformat()


def parse_timestamp(value: str) -> datetime:
    text = value.strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    parsed = datetime.fromisoformat(text)
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed


def _json_default(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_timestamp(value)
    raise TypeError(f"Object of type {type(value).__name__} is not JSON serializable")


def _product(d: dict) -> Product:
    return Product(
        id=int(d["id"]),
        design=str(d["design"]),
        wholesale_id=str(d["wholesale_id"]),
        retail_id=str(d["retail_id"]),
        retail_price=float(d["retail_price"]),
        wholesale_price=float(d["wholesale_price"]),
        category=str(d["category"]),
        image_url=str(d.get("image_url") or ""),
        count=int(d["count"]),
    )


def _payments(rows: list) -> tuple[Payment, ...]:
    return tuple(Payment(method=str(p["method"]), amount=float(p["amount"])) for p in rows)


def _sold_item(d: dict) -> SoldItem:
    return SoldItem(
        id=str(d["id"]),
        product_id=int(d["product_id"]),
        design=str(d["design"]),
        retail_id=str(d["retail_id"]),
        quantity=int(d["quantity"]),
        sold_price=float(d["sold_price"]),
        date=parse_timestamp(d["date"]),
        invoice_id=str(d["invoice_id"]),
    )


def _invoice(d: dict) -> Invoice:
    items = tuple(
        CartItem(
            product=_product(it["product"]),
            quantity=int(it["quantity"]),
            returned_quantity=int(it.get("returned_quantity") or 0),
        )
        for it in d["items"]
    )
    return Invoice(
        id=str(d["id"]),
        items=items,
        subtotal=float(d["subtotal"]),
        discount=float(d["discount"]),
        discount_amount=float(d["discount_amount"]),
        tax=float(d["tax"]),
        total=float(d["total"]),
        wholesale_total=float(d["wholesale_total"]),
        profit=float(d["profit"]),
        payments=_payments(d.get("payments") or []),
        date=parse_timestamp(d["date"]),
        credit_note_ids=tuple(str(x) for x in d.get("credit_note_ids") or []),
        customer_id=(int(d["customer_id"]) if d.get("customer_id") is not None else None),
        customer_name=d.get("customer_name"),
    )


def _purchase_invoice(d: dict) -> PurchaseInvoice:
    return PurchaseInvoice(
        id=str(d["id"]),
        supplier=str(d["supplier"]),
        items=tuple(
            PurchaseItem(
                product_id=int(it["product_id"]),
                design=str(it["design"]),
                quantity=int(it["quantity"]),
                purchase_price=float(it["purchase_price"]),
            )
            for it in d["items"]
        ),
        total=float(d["total"]),
        payments=_payments(d.get("payments") or []),
        date=parse_timestamp(d["date"]),
    )


def _credit_note(d: dict) -> CreditNote:
    return CreditNote(
        id=str(d["id"]),
        original_invoice_id=str(d["original_invoice_id"]),
        items=tuple(
            ReturnedItem(
                product_id=int(it["product_id"]),
                design=str(it["design"]),
                quantity=int(it["quantity"]),
                refund_amount=float(it["refund_amount"]),
            )
            for it in d["items"]
        ),
        total_refund=float(d["total_refund"]),
        date=parse_timestamp(d["date"]),
        reason=str(d.get("reason") or ""),
    )


def _customer(d: dict) -> Customer:
    return Customer(id=int(d["id"]), name=str(d["name"]), phone=d.get("phone"), email=d.get("email"))


def _stock_adjustment(d: dict) -> StockAdjustment:
    return StockAdjustment(
        id=str(d["id"]),
        product_id=int(d["product_id"]),
        product_design=str(d["product_design"]),
        quantity=int(d["quantity"]),
        reason=str(d["reason"]),
        date=parse_timestamp(d["date"]),
    )


DECODERS: dict[str, Callable[[dict], Any]] = {
    "products": _product,
    "soldItems": _sold_item,
    "invoices": _invoice,
    "purchaseInvoices": _purchase_invoice,
    "creditNotes": _credit_note,
    "customers": _customer,
    "stockAdjustments": _stock_adjustment,
}


def encode_records(records) -> str:
    return json.dumps([asdict(r) for r in records], default=_json_default, ensure_ascii=False)


def decode_records(key: str, raw: str) -> list:
    decoder = DECODERS[key]
    rows = json.loads(raw)
    if not isinstance(rows, list):
        raise ValueError(f"Record set '{key}' is not a list.")
    return [decoder(r) for r in rows]
