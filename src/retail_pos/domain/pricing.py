from __future__ import annotations

from typing import Iterable

from retail_pos.domain.models import CartItem, CartTotals, Invoice


def compute_totals(items: Iterable[CartItem], discount_percent: float, tax_rate: float) -> CartTotals:
    """
    subtotal       = sum(retail_price * quantity)
    discount       = subtotal * discount_percent / 100
    taxable_amount = subtotal - discount
    tax            = taxable_amount * tax_rate
    total          = taxable_amount + tax
    """
    subtotal = sum(item.retail_price * item.quantity for item in items)
    discount_amount = subtotal * (float(discount_percent) / 100)
    taxable_amount = subtotal - discount_amount
    tax = taxable_amount * float(tax_rate)
    return CartTotals(
        subtotal=subtotal,
        discount_amount=discount_amount,
        taxable_amount=taxable_amount,
        tax=tax,
        total=taxable_amount + tax,
    )


def wholesale_total(items: Iterable[CartItem]) -> float:
    return sum(item.wholesale_price * item.quantity for item in items)


def refund_per_unit(invoice: Invoice, line: CartItem) -> float:
    """Net price of one unit of ``line``, with the invoice's discount and tax prorated.

    The line's share of the subtotal carries the same share of the discount;
    tax follows the invoice's effective rate on the discounted amount.
    """
    if invoice.subtotal == 0:
        return float(line.retail_price)

    item_total = line.retail_price * line.quantity
    proportion_of_subtotal = item_total / invoice.subtotal
    item_discount = invoice.discount_amount * proportion_of_subtotal

    taxable = invoice.subtotal - invoice.discount_amount
    item_tax = (item_total - item_discount) * (invoice.tax / taxable) if taxable != 0 else 0.0

    return (item_total - item_discount + item_tax) / line.quantity
