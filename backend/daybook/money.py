# Overview: Presentation helpers for minor-unit currency amounts.

from __future__ import annotations

from decimal import Decimal, ROUND_HALF_UP

_TWO_PLACES = Decimal("0.01")


def cents_to_decimal(amount_cents: int | None) -> Decimal | None:
    """Convert stored minor units to a 2-place Decimal. Never used for arithmetic on stored values."""
    if amount_cents is None:
        return None
    return (Decimal(amount_cents) / 100).quantize(_TWO_PLACES, rounding=ROUND_HALF_UP)


def format_cents(amount_cents: int | None, label: str = "Rs.", signed: bool = False) -> str:
    """
    Render an amount for people, e.g. 650000 -> "Rs. 6,500.00".

    signed=True prefixes positive values with "+" (used for discrepancies).
    """
    if amount_cents is None:
        return "-"
    value = cents_to_decimal(amount_cents)
    sign = ""
    if value < 0:
        sign = "-"
        value = -value
    elif signed and value > 0:
        sign = "+"
    prefix = f"{label} " if label else ""
    return f"{sign}{prefix}{value:,.2f}"
