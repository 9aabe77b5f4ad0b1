from __future__ import annotations
import logging
import math
import os
from datetime import date, timedelta
from typing import Any, Iterable, List, Optional, Sequence

from pydantic import ValidationError

from ledger_core.config import LEDGER_JSON, Settings, load_settings
from ledger_core.errors import LedgerValidationError
from ledger_core.models.entry import PAYMENT_INVOICE_NO, InvoiceItem, LedgerEntry
from ledger_core.models.stats import Stats
from ledger_core.services import export_service
from ledger_core.services.credit_note_service import apply_credit_note
from ledger_core.services.metrics_service import compute_stats
from ledger_core.services.ordering import available_months, visible_entries
from ledger_core.storage.ledger_store import LedgerStore

logger = logging.getLogger(__name__)

MANUAL_STATUSES = ("PENDING", "PAID")


def _check_amount(amount: Any, what: str) -> float:
    try:
        value = float(amount)
    except (TypeError, ValueError):
        raise LedgerValidationError(f"{what} amount must be a number") from None
    if not math.isfinite(value) or value <= 0:
        raise LedgerValidationError(f"{what} amount must be greater than zero")
    return value


def _build_items(items: Iterable[Any]) -> List[InvoiceItem]:
    out: List[InvoiceItem] = []
    for it in items:
        try:
            if isinstance(it, InvoiceItem):
                # fresh id on every save, like a re-submitted form
                out.append(InvoiceItem.model_validate(it.model_dump(exclude={"id"})))
            else:
                data = dict(it)
                data.pop("id", None)
                out.append(InvoiceItem.model_validate(data))
        except ValidationError as e:
            raise LedgerValidationError(f"Invalid invoice item: {e.errors()[0].get('msg', '')}") from e
    if not out:
        raise LedgerValidationError("An invoice needs at least one item")
    return out


class LedgerService:
    """
    Owns the ledger entry list.

    Every mutation replaces the whole list (never edits in place), bumps
    `version` and persists the complete list. The engines (credit notes,
    stats, ordering) are pure functions called on a snapshot.
    """

    def __init__(
        self,
        path: os.PathLike | str = LEDGER_JSON,
        settings: Optional[Settings] = None,
        store: Optional[LedgerStore] = None,
    ):
        self.settings = settings or load_settings()
        self.store = store or LedgerStore(
            path,
            backup_enabled=self.settings.backup_enabled,
            backup_keep=self.settings.backup_keep,
        )
        self._entries: List[LedgerEntry] = self.store.load()
        self.version = 0

    # ----------- state -----------
    @property
    def entries(self) -> List[LedgerEntry]:
        return list(self._entries)

    def _replace(self, entries: Sequence[LedgerEntry]) -> None:
        self._entries = list(entries)
        self.version += 1
        self.store.save(self._entries)

    def get(self, entry_id: str) -> Optional[LedgerEntry]:
        for e in self._entries:
            if e.id == entry_id:
                return e
        return None

    # ----------- invoices -----------
    def _invoice_fields(self, on: date, invoice_no: str, items: Iterable[Any]) -> dict:
        invoice_no = (invoice_no or "").strip()
        if not invoice_no:
            raise LedgerValidationError("Invoice number is required")
        final_items = _build_items(items)
        return {
            "date": on,
            "invoice_no": invoice_no,
            "size": ", ".join(i.size for i in final_items),
            "pattern": ", ".join(i.pattern for i in final_items),
            "quantity": sum(i.quantity for i in final_items),
            # whole currency units, halves rounded up
            "invoice_amount": float(math.floor(sum(i.line_total for i in final_items) + 0.5)),
            "items": final_items,
            "due_date": on + timedelta(days=self.settings.due_days),
        }

    def add_invoice(self, on: date, invoice_no: str, items: Iterable[Any], status: str = "PENDING") -> LedgerEntry:
        if status not in MANUAL_STATUSES:
            raise LedgerValidationError(f"Invoice status must be one of {MANUAL_STATUSES}")
        inv = LedgerEntry(type="INVOICE", unit_price=0.0, status=status, **self._invoice_fields(on, invoice_no, items))
        self._replace(self._entries + [inv])
        logger.info("Invoice %s added (%.2f)", inv.invoice_no, inv.invoice_amount)
        return inv

    def update_invoice(
        self,
        entry_id: str,
        on: date,
        invoice_no: str,
        items: Iterable[Any],
        status: Optional[str] = None,
    ) -> Optional[LedgerEntry]:
        current = self.get(entry_id)
        if current is None or current.type != "INVOICE":
            logger.info("Invoice %s not found, nothing updated", entry_id)
            return None
        if status is not None and status not in MANUAL_STATUSES:
            raise LedgerValidationError(f"Invoice status must be one of {MANUAL_STATUSES}")
        update = self._invoice_fields(on, invoice_no, items)
        if status is not None:
            update["status"] = status
        updated = current.model_copy(update=update)
        self._replace([updated if e.id == entry_id else e for e in self._entries])
        return updated

    # ----------- payments / credit notes -----------
    def add_payment(self, on: date, amount: Any, notes: str = "") -> LedgerEntry:
        value = _check_amount(amount, "Payment")
        pay = LedgerEntry(type="PAYMENT", date=on, invoice_no=PAYMENT_INVOICE_NO, payment_amount=value, notes=notes)
        self._replace(self._entries + [pay])
        logger.info("Payment %.2f recorded on %s", value, on)
        return pay

    def record_credit_note(self, on: date, amount: Any, notes: str = "") -> LedgerEntry:
        value = _check_amount(amount, "Credit note")
        new_entries = apply_credit_note(self._entries, value, on, notes)
        self._replace(new_entries)
        return new_entries[-1]

    def update_transaction(self, entry_id: str, on: date, amount: Any, notes: str = "") -> Optional[LedgerEntry]:
        current = self.get(entry_id)
        if current is None or current.type not in ("PAYMENT", "CN"):
            logger.info("Transaction %s not found, nothing updated", entry_id)
            return None
        value = _check_amount(amount, "Payment" if current.type == "PAYMENT" else "Credit note")
        field = "payment_amount" if current.type == "PAYMENT" else "cn_amount"
        updated = current.model_copy(update={"date": on, field: value, "notes": notes})
        self._replace([updated if e.id == entry_id else e for e in self._entries])
        return updated

    # ----------- delete / restore -----------
    def delete_entry(self, entry_id: str) -> bool:
        remaining = [e for e in self._entries if str(e.id) != str(entry_id)]
        if len(remaining) == len(self._entries):
            return False
        self._replace(remaining)
        logger.info("Entry %s deleted", entry_id)
        return True

    def restore(self, payload: Any) -> int:
        entries = export_service.parse_backup(payload)
        self._replace(entries)
        logger.info("Ledger restored from backup (%d entries)", len(entries))
        return len(entries)

    # ----------- read side -----------
    def visible(self, period: Optional[str] = None) -> List[LedgerEntry]:
        return visible_entries(self._entries, period)

    def stats(self, period: Optional[str] = None) -> Stats:
        return compute_stats(self.visible(period), self._entries)

    def months(self) -> List[str]:
        return available_months(self._entries)
