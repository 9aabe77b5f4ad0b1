from __future__ import annotations
from datetime import date
from typing import Optional, Union


def _group_indian(digits: str) -> str:
    """12345678 -> 1,23,45,678 (last three, then pairs)."""
    if len(digits) <= 3:
        return digits
    head, tail = digits[:-3], digits[-3:]
    pairs = []
    while len(head) > 2:
        pairs.insert(0, head[-2:])
        head = head[:-2]
    if head:
        pairs.insert(0, head)
    return ",".join(pairs + [tail])


def format_currency(amount: Optional[float]) -> str:
    if amount is None:
        return "-"
    sign = "-" if amount < 0 else ""
    whole, frac = f"{abs(amount):.2f}".split(".")
    return f"{sign}₹{_group_indian(whole)}.{frac}"


def format_date(value: Optional[Union[date, str]]) -> str:
    if not value:
        return "-"
    if isinstance(value, str):
        try:
            value = date.fromisoformat(value)
        except ValueError:
            return value
    return value.strftime("%d %b %Y")
