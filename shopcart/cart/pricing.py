"""
Pricing engine - pure functions over items and coupons.

All amounts are exact Decimals; rounding belongs to formatting.
"""
from decimal import Decimal
from typing import TYPE_CHECKING, Iterable

from shopcart.cart.models import CartItem
from shopcart.services.money import ZERO, add, subtract, to_decimal

if TYPE_CHECKING:
    from shopcart.cart.coupons import Coupon


def sub_total(items: Iterable[CartItem], include_tax: bool = False) -> Decimal:
    """Sum of each item's subtotal plus its sub-items. Empty -> 0."""
    total = ZERO
    for item in items:
        total = add(total, add(item.subtotal(include_tax), item.sub_items_total(include_tax)))
    return total


def total_discount(coupons: Iterable["Coupon"], cart) -> Decimal:
    """Sum of coupon discounts, evaluated in application order."""
    total = ZERO
    for coupon in coupons:
        total = add(total, to_decimal(coupon.discount(cart)))
    return total


def total(taxed_sub_total: Decimal, discount: Decimal = ZERO, clamp: bool = True) -> Decimal:
    """Tax-inclusive subtotal minus discount, optionally clamped at zero."""
    result = subtract(taxed_sub_total, discount)
    if clamp and result < 0:
        return ZERO
    return result


def count(items: Iterable[CartItem], with_quantity: bool = True) -> int:
    """Total units, or number of distinct lines."""
    if with_quantity:
        return sum(item.quantity for item in items)
    return sum(1 for _ in items)
