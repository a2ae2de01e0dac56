import pytest

from retail_pos.application.container import build_container
from retail_pos.domain.errors import NotFoundError, ValidationError
from retail_pos.domain.models import Customer


def test_add_update_delete_customer():
    c = build_container()

    ada = c.customers.add("  Ada Lovelace ", phone=" ", email="ada@example.com")
    grace = c.customers.add("Grace")

    assert (ada.id, grace.id) == (1, 2)
    assert ada.name == "Ada Lovelace"
    assert ada.phone is None

    assert c.customers.update(Customer(ada.id, "Ada King", phone="555-0100")) is True
    assert c.customers.get(ada.id).name == "Ada King"
    assert c.customers.get(ada.id).email is None
    assert c.customers.update(Customer(99, "Nobody")) is False

    assert c.customers.delete(grace.id) is True
    assert [x.id for x in c.customers.list_customers()] == [ada.id]
    with pytest.raises(NotFoundError):
        c.customers.get(grace.id)


def test_customer_name_is_required():
    c = build_container()

    with pytest.raises(ValidationError):
        c.customers.add("   ")
    ada = c.customers.add("Ada")
    with pytest.raises(ValidationError):
        c.customers.update(Customer(ada.id, ""))


def test_declined_customer_delete():
    c = build_container(confirm=lambda _msg: False)
    ada = c.customers.add("Ada")

    assert c.customers.delete(ada.id) is False
    assert c.customers.list_customers() == [ada]
