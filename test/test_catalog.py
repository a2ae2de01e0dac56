from pathlib import Path

import pytest
from conftest import add_product

from retail_pos.application.container import build_container
from retail_pos.domain.errors import NotFoundError, ValidationError


def test_ids_are_assigned_sequentially_from_max(tmp_path: Path):
    c = build_container(tmp_path / "catalog.db")

    first = add_product(c.catalog, "R-1")
    second = add_product(c.catalog, "R-2")
    c.catalog.delete(first.id)
    third = add_product(c.catalog, "R-3")

    assert first.id == 1
    assert second.id == 2
    assert third.id == 3


def test_retail_code_lookup_is_case_insensitive():
    c = build_container()
    p = add_product(c.catalog, "R-TS-CW")

    assert c.catalog.find_by_retail_code("r-ts-cw") == p
    assert c.catalog.find_by_retail_code("  R-TS-CW ") == p
    assert c.catalog.find_by_retail_code("R-TS") is None


def test_create_rejects_duplicate_retail_code_and_missing_fields():
    c = build_container()
    add_product(c.catalog, "R-1")

    with pytest.raises(ValidationError, match="already used"):
        add_product(c.catalog, "r-1")
    with pytest.raises(ValidationError, match="Retail price must be > 0"):
        add_product(c.catalog, "R-2", retail_price=0)
    with pytest.raises(ValidationError, match="required"):
        c.catalog.create("", "W", "R-3", 5.0, 1.0, "Apparel")
    assert len(c.catalog.list_products()) == 1


def test_create_generates_image_reference_when_blank():
    c = build_container()
    p = c.catalog.create("Denim Jeans", "W-JN", "R-JN", 49.99, 22.0, "Apparel", count=3)

    assert p.image_url == "https://picsum.photos/seed/Denim-Jeans/400/300"


def test_update_replaces_entry_and_ignores_unknown_id():
    c = build_container()
    p = add_product(c.catalog, "R-1")

    from dataclasses import replace

    assert c.catalog.update(replace(p, retail_price=12.5)) is True
    assert c.catalog.get(p.id).retail_price == 12.5
    assert c.catalog.update(replace(p, id=99)) is False
    assert len(c.catalog.list_products()) == 1


def test_delete_requires_confirmation():
    answers = [False, True]
    c = build_container(confirm=lambda _msg: answers.pop(0))
    p = add_product(c.catalog, "R-1")

    assert c.catalog.delete(p.id) is False
    assert c.catalog.find_by_id(p.id) is not None
    assert c.catalog.delete(p.id) is True
    assert c.catalog.find_by_id(p.id) is None


def test_adjust_count_clamps_only_when_asked():
    c = build_container()
    p = add_product(c.catalog, "R-1", count=2)

    assert c.catalog.adjust_count(p.id, -5).count == -3
    assert c.catalog.adjust_count(p.id, -5, clamp_at_zero=True).count == 0
    with pytest.raises(NotFoundError):
        c.catalog.adjust_count(404, 1)


def test_search_and_low_stock():
    c = build_container()
    add_product(c.catalog, "R-1", design="Classic White T-Shirt", count=12)
    add_product(c.catalog, "R-2", design="Leather Wallet", count=3)
    add_product(c.catalog, "R-3", design="Canvas Backpack", count=0)

    assert [p.retail_id for p in c.catalog.search("white")] == ["R-1"]
    assert c.catalog.search("  ") == []
    assert [p.retail_id for p in c.catalog.low_stock(10)] == ["R-3", "R-2"]
    assert [p.retail_id for p in c.reporting.low_stock_products()] == ["R-3", "R-2"]
