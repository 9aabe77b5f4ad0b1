from __future__ import annotations
import csv
import io
import json
import logging
import os
from datetime import date
from pathlib import Path
from typing import Any, Iterable, List, Optional

from pydantic import TypeAdapter, ValidationError

from ledger_core.errors import RestoreError
from ledger_core.models.entry import LedgerEntry

logger = logging.getLogger(__name__)

CSV_HEADERS = [
    "DATE", "INVOICE NO", "SIZE", "PATTERN", "QUANTITY", "UNIT PRICE",
    "INVOICE AMOUNT", "DUE DATE", "STATUS", "PAYMENT", "CN",
]

_entries_adapter = TypeAdapter(List[LedgerEntry])


def _num(v: float) -> Any:
    return int(v) if float(v).is_integer() else v


def _cell(v: Any) -> Any:
    # zero / absent numbers are exported as empty cells
    if v is None or v == 0 or v == "":
        return ""
    return _num(v) if isinstance(v, (int, float)) else v


def _csv_row(e: LedgerEntry) -> list:
    if e.items:
        sizes = "; ".join(i.size for i in e.items)
        patterns = "; ".join(i.pattern for i in e.items)
        prices = "; ".join(str(_num(i.unit_price)) for i in e.items)
    else:
        sizes, patterns = e.size or "", e.pattern or ""
        prices = _cell(e.unit_price)
    return [
        e.date.isoformat(),
        e.invoice_no,
        sizes,
        patterns,
        _cell(e.quantity),
        prices,
        _cell(e.invoice_amount),
        e.due_date.isoformat() if e.due_date else "",
        e.status or "",
        _cell(e.payment_amount),
        _cell(e.cn_amount),
    ]


# ---------- CSV (lossy, one line per entry) ----------
def export_csv(entries: Iterable[LedgerEntry]) -> str:
    buf = io.StringIO()
    w = csv.writer(buf, lineterminator="\n")
    w.writerow(CSV_HEADERS)
    for e in entries:
        w.writerow(_csv_row(e))
    return buf.getvalue()


def write_csv(entries: Iterable[LedgerEntry], path: os.PathLike | str) -> str:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(export_csv(entries), encoding="utf-8")
    logger.info("CSV export written to %s", p)
    return str(p)


# ---------- JSON backup / restore ----------
def backup_json(entries: Iterable[LedgerEntry]) -> str:
    return json.dumps([e.to_json_dict() for e in entries], ensure_ascii=False, indent=2)


def backup_filename(today: Optional[date] = None) -> str:
    return f"ledger_backup_{(today or date.today()).isoformat()}.json"


def write_backup(entries: Iterable[LedgerEntry], path: os.PathLike | str) -> str:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(backup_json(entries), encoding="utf-8")
    logger.info("JSON backup written to %s", p)
    return str(p)


def parse_backup(payload: Any) -> List[LedgerEntry]:
    """
    Validate a backup payload (JSON text or an already decoded list).
    Raises RestoreError, changing nothing, when the shape is wrong.
    """
    if isinstance(payload, (str, bytes)):
        try:
            payload = json.loads(payload)
        except json.JSONDecodeError as e:
            logger.error("Backup is not valid JSON: %s", e)
            raise RestoreError("Error parsing JSON file.") from e
    if not isinstance(payload, list):
        raise RestoreError("Invalid backup file format.")
    try:
        return _entries_adapter.validate_python(payload)
    except ValidationError as e:
        logger.error("Backup holds invalid entries: %s", e)
        raise RestoreError(f"Invalid ledger entry in backup: {e.errors()[0].get('msg', '')}") from e
