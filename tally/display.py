"""
Display helpers — money as the customer sees it.

    format_money(Decimal("1234.5"), "USD")     # "1,234.50 USD"
    format_money(Decimal("7"), "JPY", 0)       # "7 JPY"
"""

from __future__ import annotations

from decimal import Decimal

from tally.pricing import round_money


def format_money(amount: Decimal, currency: str, places: int = 2) -> str:
    return f"{round_money(amount, places):,.{places}f} {currency}"


def format_weight(grams: Decimal) -> str:
    if grams >= 1000:
        return f"{grams / 1000:.2f} kg"
    return f"{grams.normalize():f} g"


__all__ = ("round_money", "format_money", "format_weight")
