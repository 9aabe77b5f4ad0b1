from __future__ import annotations
import re
from typing import Iterable, Literal, Optional, Tuple

from ledger_core.models.entry import LedgerEntry
from ledger_core.models.stats import Stats

SizeCategory = Literal["PCR", "NYLON", "TWO_WHEELER"]

_LETTERS = re.compile(r"[A-Z]")


def classify_size(size: Optional[str]) -> Optional[SizeCategory]:
    """
    Tyre category from the size code:
    - contains R -> radial passenger car tyre (PCR)
    - else contains D -> nylon / bias
    - else no A-Z letter at all (e.g. 90/100) -> 2-wheeler
    Empty codes and codes with other letters only are not counted.
    """
    code = (size or "").strip().upper()
    if not code:
        return None
    if "R" in code:
        return "PCR"
    if "D" in code:
        return "NYLON"
    if not _LETTERS.search(code):
        return "TWO_WHEELER"
    return None


def _totals(entries: Iterable[LedgerEntry]) -> Tuple[float, float, float]:
    invoiced = paid = cn = 0.0
    for e in entries:
        if e.type == "INVOICE":
            # balance-forward splits would double count the original sale
            if e.is_original_sale:
                invoiced += e.invoice_amount or 0
        elif e.type == "PAYMENT":
            paid += e.payment_amount or 0
        elif e.type == "CN":
            cn += e.cn_amount or 0
    return invoiced, paid, cn


def compute_stats(visible: Iterable[LedgerEntry], all_entries: Iterable[LedgerEntry]) -> Stats:
    visible = list(visible)
    stats = Stats()
    stats.total_invoiced, stats.total_paid, stats.total_cn = _totals(visible)

    for e in visible:
        if not e.is_original_sale:
            continue
        for item in e.resolved_items():
            cat = classify_size(item.size)
            qty = item.quantity or 0
            if cat == "PCR":
                stats.qty_pcr += qty
            elif cat == "NYLON":
                stats.qty_nylon += qty
            elif cat == "TWO_WHEELER":
                stats.qty_2wheeler += qty

    # outstanding is always global, whatever the current filter
    g_invoiced, g_paid, g_cn = _totals(all_entries)
    stats.outstanding = g_invoiced - g_paid - g_cn
    return stats
