"""Monetary rounding shared by pricing, discounts and order totals."""

from decimal import ROUND_HALF_UP, Decimal

_CENT = Decimal("0.01")


def round_money(amount: float) -> float:
    """Round to two decimal places, halves away from zero."""
    return float(Decimal(str(amount)).quantize(_CENT, rounding=ROUND_HALF_UP))


def order_total(subtotal: float, discount: float, shipping: float) -> float:
    """Grand total of an order, never below zero."""
    return round_money(max(0.0, subtotal - discount + shipping))
