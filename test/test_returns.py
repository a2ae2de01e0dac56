from datetime import datetime, timezone
from pathlib import Path

import pytest
from conftest import SteppingClock, add_product

from retail_pos.application.container import build_container
from retail_pos.domain.errors import NotFoundError, OverReturnError, ValidationError
from retail_pos.domain.models import CartItem, Invoice, Payment, Product
from retail_pos.domain.pricing import refund_per_unit
from retail_pos.services.returns_service import quote_refund


def _sell(c, lines, discount=0.0):
    for product, qty in lines:
        for _ in range(qty):
            c.cart.add(c.catalog.get(product.id))
    c.cart.set_discount(discount)
    return c.sales.checkout(c.cart, [Payment("cash", 1000)])


def test_single_unit_refund_includes_tax(tmp_path: Path):
    c = build_container(tmp_path / "returns.db", clock=SteppingClock())
    p = add_product(c.catalog, "R-A", retail_price=10.0, count=5)
    inv = _sell(c, [(p, 2)])

    note = c.returns.process_return(inv.id, {p.id: 1}, "Wrong size")

    assert note.id.startswith("CN-")
    assert note.original_invoice_id == inv.id
    assert note.total_refund == pytest.approx(11.0)
    assert note.items[0].refund_amount == pytest.approx(11.0)
    assert note.reason == "Wrong size"
    assert c.catalog.get(p.id).count == 4

    updated = c.sales.get_invoice(inv.id)
    assert updated.line_for(p.id).returned_quantity == 1
    assert updated.credit_note_ids == (note.id,)
    # refunds do not touch the original payments
    assert updated.payments == inv.payments


def test_discount_is_prorated_across_lines():
    c = build_container()
    a = add_product(c.catalog, "R-A", retail_price=10.0, count=5)
    b = add_product(c.catalog, "R-B", retail_price=30.0, count=5)
    inv = _sell(c, [(a, 1), (b, 1)], discount=50)
    assert inv.total == pytest.approx(22.0)

    quote = quote_refund(inv, {b.id: 1})
    assert quote[0].refund_amount == pytest.approx(16.5)

    everything = quote_refund(inv, {a.id: 1, b.id: 1})
    assert sum(r.refund_amount for r in everything) == pytest.approx(inv.total)


def test_refund_scales_linearly_with_quantity():
    c = build_container()
    p = add_product(c.catalog, "R-A", retail_price=12.0, count=10)
    inv = _sell(c, [(p, 4)], discount=25)

    one = quote_refund(inv, {p.id: 1})[0].refund_amount
    three = quote_refund(inv, {p.id: 3})[0].refund_amount

    assert three == pytest.approx(one * 3)


def test_full_discount_refunds_nothing():
    c = build_container()
    p = add_product(c.catalog, "R-A", retail_price=10.0, count=5)
    inv = _sell(c, [(p, 1)], discount=100)

    note = c.returns.process_return(inv.id, {p.id: 1}, "Gift")

    assert inv.total == 0
    assert note.total_refund == 0
    assert c.catalog.get(p.id).count == 5


def test_zero_subtotal_invoice_refunds_retail_price():
    product = Product(1, "Sample", "W-1", "R-1", 7.5, 2.0, "Apparel", "", 3)
    invoice = Invoice(
        id="INV-1",
        items=(CartItem(product=product, quantity=2),),
        subtotal=0.0,
        discount=0.0,
        discount_amount=0.0,
        tax=0.0,
        total=0.0,
        wholesale_total=4.0,
        profit=-4.0,
        payments=(),
        date=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )

    assert refund_per_unit(invoice, invoice.items[0]) == pytest.approx(7.5)


def test_over_return_is_rejected_across_credit_notes():
    c = build_container()
    p = add_product(c.catalog, "R-A", count=5)
    inv = _sell(c, [(p, 2)])

    c.returns.process_return(inv.id, {p.id: 1}, "Damaged")
    with pytest.raises(OverReturnError) as exc:
        c.returns.process_return(inv.id, {p.id: 2}, "Damaged")

    assert exc.value.returnable == 1
    assert len(c.returns.credit_notes_for_invoice(inv.id)) == 1
    assert c.catalog.get(p.id).count == 4

    c.returns.process_return(inv.id, {p.id: 1}, "Damaged")
    assert c.sales.get_invoice(inv.id).line_for(p.id).returnable_quantity == 0
    assert len(c.sales.get_invoice(inv.id).credit_note_ids) == 2


def test_return_requires_reason_and_lines():
    c = build_container()
    p = add_product(c.catalog, "R-A", count=5)
    inv = _sell(c, [(p, 1)])

    with pytest.raises(ValidationError, match="reason"):
        c.returns.process_return(inv.id, {p.id: 1}, "  ")
    with pytest.raises(ValidationError, match="at least one item"):
        c.returns.process_return(inv.id, {p.id: 0}, "Damaged")
    with pytest.raises(NotFoundError):
        c.returns.process_return(inv.id, {999: 1}, "Damaged")
    with pytest.raises(NotFoundError):
        c.returns.process_return("INV-missing", {p.id: 1}, "Damaged")
    assert c.returns.list_credit_notes() == []


def test_return_of_deleted_product_still_issues_credit_note():
    c = build_container()
    p = add_product(c.catalog, "R-A", count=5)
    inv = _sell(c, [(p, 1)])
    c.catalog.delete(p.id)

    note = c.returns.process_return(inv.id, {p.id: 1}, "Discontinued")

    assert note.total_refund == pytest.approx(11.0)
    assert c.catalog.find_by_id(p.id) is None
