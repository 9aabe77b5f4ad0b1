from __future__ import annotations
import logging
import math
from datetime import date
from typing import List, Sequence

from ledger_core.errors import LedgerValidationError
from ledger_core.formatting import format_currency
from ledger_core.models.common import gen_id
from ledger_core.models.entry import CN_INVOICE_NO, LedgerEntry

logger = logging.getLogger(__name__)

SETTLE_TOLERANCE = 0.01
BALANCE_SUFFIX = "-BAL"


def _settle(target: LedgerEntry) -> LedgerEntry:
    return target.model_copy(update={
        "status": "PAID",
        "notes": target.append_note(" [Settled by CN]"),
    })


def _balance_forward(target: LedgerEntry, balance: float) -> LedgerEntry:
    return target.model_copy(update={
        "id": gen_id(),
        "invoice_no": f"{target.invoice_no}{BALANCE_SUFFIX}",
        "invoice_amount": balance,
        "quantity": 1,
        "unit_price": balance,
        "size": "Balance Forward",
        "pattern": "-",
        "items": [],
        "original_ref_id": target.id,
        "status": "PENDING",
        "notes": f"Balance after CN adjustment on {target.invoice_no}",
    })


def apply_credit_note(
    entries: Sequence[LedgerEntry],
    amount: float,
    on: date,
    notes: str = "",
) -> List[LedgerEntry]:
    """
    Apply a credit note to the oldest PENDING invoice and return a new
    list. The input list is never modified.

    - equal amount   -> invoice PAID
    - smaller amount -> invoice ADJUSTED + "<no>-BAL" invoice for the rest
    - larger amount  -> invoice PAID, the surplus is not carried anywhere

    Only one invoice is touched per credit note. With no pending invoice
    the CN entry is just appended.
    """
    if not math.isfinite(amount) or amount <= 0:
        raise LedgerValidationError("Credit note amount must be greater than zero")

    result = list(entries)
    pending = [i for i, e in enumerate(result) if e.type == "INVOICE" and e.status == "PENDING"]
    pending.sort(key=lambda i: result[i].date)  # stable: same-day invoices keep list order

    if pending:
        idx = pending[0]
        target = result[idx]
        inv_amount = target.invoice_amount or 0

        if abs(amount - inv_amount) < SETTLE_TOLERANCE:
            result[idx] = _settle(target)
            logger.info("CN %.2f settles invoice %s", amount, target.invoice_no)
        elif amount < inv_amount:
            result[idx] = target.model_copy(update={
                "status": "ADJUSTED",
                "notes": target.append_note(f" [Adj by CN {format_currency(amount)}]"),
            })
            balance = result[idx].invoice_amount - amount
            result.append(_balance_forward(result[idx], balance))
            logger.info("CN %.2f adjusts invoice %s, balance forward %.2f", amount, target.invoice_no, balance)
        else:
            result[idx] = _settle(target)
            logger.info(
                "CN %.2f settles invoice %s, surplus %.2f not carried over",
                amount, target.invoice_no, amount - inv_amount,
            )
    else:
        logger.debug("CN %.2f recorded without a pending invoice", amount)

    result.append(LedgerEntry(
        type="CN",
        date=on,
        invoice_no=CN_INVOICE_NO,
        cn_amount=amount,
        notes=notes,
    ))
    return result
