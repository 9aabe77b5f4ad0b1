from __future__ import annotations
import re
from typing import Iterable, List, Optional, Tuple, Union

from ledger_core.models.entry import LedgerEntry

_DIGITS = re.compile(r"(\d+)")


def invoice_sort_key(label: Optional[str]) -> Tuple[Union[str, int], ...]:
    """
    Locale-independent natural sort key:
    'INV-2' < 'INV-10', case-insensitive.
    re.split with a capturing group alternates text and digit runs, so
    even positions are always str and odd positions always int.
    """
    parts = _DIGITS.split((label or "").casefold())
    return tuple(int(p) if i % 2 else p for i, p in enumerate(parts))


def sort_entries(entries: Iterable[LedgerEntry]) -> List[LedgerEntry]:
    # sorted() is stable: equal (date, invoice no) keep input order
    return sorted(entries, key=lambda e: (e.date, invoice_sort_key(e.invoice_no)))


def visible_entries(entries: Iterable[LedgerEntry], period: Optional[str] = None) -> List[LedgerEntry]:
    if period:
        entries = [e for e in entries if e.date.isoformat().startswith(period)]
    return sort_entries(entries)


def available_months(entries: Iterable[LedgerEntry]) -> List[str]:
    return sorted({e.date.isoformat()[:7] for e in entries}, reverse=True)
