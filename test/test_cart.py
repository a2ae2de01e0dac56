import pytest
from conftest import add_product

from retail_pos.application.container import build_container
from retail_pos.domain.errors import InsufficientStockError, NotFoundError, ValidationError


def test_add_increments_existing_line_up_to_stock():
    c = build_container()
    p = add_product(c.catalog, "R-1", count=2)

    c.cart.add(p)
    c.cart.add(p)
    with pytest.raises(InsufficientStockError, match="Only 2 available") as exc:
        c.cart.add(p)

    assert exc.value.available == 2
    assert len(c.cart.items) == 1
    assert c.cart.quantity_of(p.id) == 2


def test_add_out_of_stock_product_is_rejected():
    c = build_container()
    p = add_product(c.catalog, "R-1", count=0)

    with pytest.raises(InsufficientStockError):
        c.cart.add(p)
    assert c.cart.is_empty()


def test_add_by_retail_code():
    c = build_container()
    p = add_product(c.catalog, "R-TS-CW", count=3)

    c.cart.add_by_retail_code(" r-ts-cw ")
    assert c.cart.quantity_of(p.id) == 1

    with pytest.raises(NotFoundError, match="Product with code 'NOPE' not found."):
        c.cart.add_by_retail_code("NOPE")


def test_set_quantity_clamps_to_stock_and_removes_on_zero():
    c = build_container()
    p = add_product(c.catalog, "R-1", count=4)
    c.cart.add(p)

    c.cart.set_quantity(p.id, 3)
    assert c.cart.quantity_of(p.id) == 3

    with pytest.raises(InsufficientStockError):
        c.cart.set_quantity(p.id, 9)
    assert c.cart.quantity_of(p.id) == 4

    c.cart.set_quantity(p.id, 0)
    assert c.cart.is_empty()


def test_set_quantity_for_product_not_in_cart():
    c = build_container()
    p = add_product(c.catalog, "R-1", count=4)

    with pytest.raises(NotFoundError):
        c.cart.set_quantity(p.id, 2)
    with pytest.raises(NotFoundError):
        c.cart.set_quantity(404, 2)


def test_totals_follow_discount_then_tax():
    c = build_container()
    a = add_product(c.catalog, "R-A", retail_price=10.0, count=5)
    b = add_product(c.catalog, "R-B", retail_price=30.0, count=5)
    c.cart.add(a)
    c.cart.add(a)
    c.cart.add(b)

    c.cart.set_discount(50)
    t = c.cart.totals()

    assert t.subtotal == pytest.approx(50.0)
    assert t.discount_amount == pytest.approx(25.0)
    assert t.taxable_amount == pytest.approx(25.0)
    assert t.tax == pytest.approx(2.5)
    assert t.total == pytest.approx(27.5)
    assert c.cart.total == pytest.approx(27.5)


def test_discount_must_be_a_percentage():
    c = build_container()

    with pytest.raises(ValidationError):
        c.cart.set_discount(101)
    with pytest.raises(ValidationError):
        c.cart.set_discount(-1)
    c.cart.set_discount(100)
    assert c.cart.discount_percent == 100


def test_empty_cart_totals_are_zero_and_clear_resets_session():
    c = build_container()
    customer = c.customers.add("Ada")
    p = add_product(c.catalog, "R-1")
    assert c.cart.total == 0

    c.cart.add(p)
    c.cart.set_discount(10)
    c.cart.select_customer(customer)
    c.cart.clear()

    assert c.cart.is_empty()
    assert c.cart.discount_percent == 0
    assert c.cart.customer is None


def test_add_checks_live_stock_not_the_passed_snapshot():
    from retail_pos.domain.models import Payment

    c = build_container()
    p = add_product(c.catalog, "R-1", count=1)
    c.cart.add(p)
    c.sales.checkout(c.cart, [Payment("cash", 11)])

    with pytest.raises(InsufficientStockError, match="Only 0 available"):
        c.cart.add(p)

    assert c.cart.is_empty()
    assert c.catalog.get(p.id).count == 0


def test_add_stores_current_catalog_entry():
    from dataclasses import replace

    c = build_container()
    p = add_product(c.catalog, "R-1", retail_price=10.0, count=3)
    c.catalog.update(replace(p, retail_price=12.0))

    c.cart.add(p)

    assert c.cart.items[0].retail_price == pytest.approx(12.0)
    assert c.cart.subtotal == pytest.approx(12.0)


def test_add_rejects_product_removed_from_catalog():
    c = build_container()
    p = add_product(c.catalog, "R-1", count=3)
    c.catalog.delete(p.id)

    with pytest.raises(NotFoundError):
        c.cart.add(p)
    assert c.cart.is_empty()
