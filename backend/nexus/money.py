"""Currency arithmetic.

All amounts are ``Decimal`` values quantized to cents with half-up rounding.
Floats coming from JSON payloads are converted through ``str`` so that
``0.1`` stays ``Decimal("0.1")``.
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import Iterable

CENT = Decimal("0.01")
ZERO = Decimal("0.00")
HUNDRED = Decimal("100")


def to_decimal(value) -> Decimal:
    """Coerce ``value`` into an exact ``Decimal`` without rounding."""
    if isinstance(value, Decimal):
        return value
    if isinstance(value, bool):
        raise ValueError("amount must be numeric")
    if isinstance(value, (int, str)):
        try:
            result = Decimal(str(value).strip())
        except InvalidOperation as exc:
            raise ValueError(f"invalid amount: {value!r}") from exc
    elif isinstance(value, float):
        result = Decimal(str(value))
    else:
        raise ValueError(f"invalid amount: {value!r}")
    if not result.is_finite():
        raise ValueError(f"invalid amount: {value!r}")
    return result


def round_money(value) -> Decimal:
    return to_decimal(value).quantize(CENT, rounding=ROUND_HALF_UP)


@dataclass(frozen=True)
class Totals:
    subtotal: Decimal
    tax_amount: Decimal
    total: Decimal


def compute_totals(lines: Iterable[tuple[Decimal, int]], tax_rate) -> Totals:
    """
    Compute checkout totals from ``(unit_price, quantity)`` pairs.

    The total is rounded once from the exact ``subtotal * (1 + rate/100)``
    so that, for unit prices already rounded to cents, it equals the sum of
    the line snapshots plus tax rounded once.
    """
    rate = to_decimal(tax_rate)
    subtotal = sum((to_decimal(price) * quantity for price, quantity in lines), Decimal("0"))
    tax = subtotal * rate / HUNDRED
    return Totals(
        subtotal=round_money(subtotal),
        tax_amount=round_money(tax),
        total=round_money(subtotal + tax),
    )
