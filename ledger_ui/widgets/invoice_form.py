from __future__ import annotations
import math
from typing import Any, Dict, List, Optional
from PySide6.QtWidgets import (
    QDialog, QVBoxLayout, QFormLayout, QComboBox, QLineEdit, QDialogButtonBox,
    QHBoxLayout, QPushButton, QTableWidget, QTableWidgetItem, QHeaderView,
    QLabel, QDateEdit
)
from PySide6.QtCore import QDate

from ledger_core.formatting import format_currency
from ledger_core.models.entry import LedgerEntry

COLS = ["Size", "Pattern", "Qty", "Unit price", "Line total"]


def _to_number(text: str, default: float = 0.0) -> float:
    try:
        return float((text or "").replace(",", "").strip())
    except ValueError:
        return default


class InvoiceForm(QDialog):
    """Multi-size invoice: one row per tyre size / pattern."""

    def __init__(self, parent=None, entry: Optional[LedgerEntry] = None):
        super().__init__(parent)
        self.setWindowTitle("Edit Invoice" if entry else "New Invoice")
        self.setModal(True)
        self.resize(720, 420)

        self.ed_date = QDateEdit(); self.ed_date.setCalendarPopup(True); self.ed_date.setDate(QDate.currentDate())
        self.ed_number = QLineEdit(); self.ed_number.setPlaceholderText("INV-001")
        self.cb_status = QComboBox()
        self.cb_status.addItem("PENDING (Unpaid)", "PENDING")
        self.cb_status.addItem("PAID (Settled)", "PAID")

        self.lab_total = QLabel(f"Total: {format_currency(0)}")

        self.tbl = QTableWidget(0, len(COLS))
        self.tbl.setHorizontalHeaderLabels(COLS)
        self.tbl.horizontalHeader().setSectionResizeMode(QHeaderView.Stretch)
        self.tbl.cellChanged.connect(lambda *_: self._update_totals())

        btn_add = QPushButton("Add size")
        btn_del = QPushButton("Remove size")
        btn_add.clicked.connect(lambda: self._add_row())
        btn_del.clicked.connect(self._del_row)

        top = QFormLayout()
        top.addRow("Invoice date", self.ed_date)
        top.addRow("Invoice no.", self.ed_number)
        top.addRow("Status", self.cb_status)

        bar = QHBoxLayout()
        bar.addWidget(btn_add); bar.addWidget(btn_del); bar.addStretch(1); bar.addWidget(self.lab_total)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)

        lay = QVBoxLayout(self)
        lay.addLayout(top)
        lay.addLayout(bar)
        lay.addWidget(self.tbl)
        lay.addWidget(btns)

        self._entry = entry
        if entry:
            self._fill_from_entry(entry)
        else:
            self._add_row()

    # -------- UI helpers --------
    def _fill_from_entry(self, e: LedgerEntry):
        self.ed_date.setDate(QDate(e.date.year, e.date.month, e.date.day))
        self.ed_number.setText(e.invoice_no)
        if e.status == "ADJUSTED":
            # adjusted by a credit note: status is no longer editable by hand
            self.cb_status.addItem("ADJUSTED (by CN)", "ADJUSTED")
            self.cb_status.setEnabled(False)
        self.cb_status.setCurrentIndex(max(0, self.cb_status.findData(e.status or "PENDING")))
        for it in e.resolved_items():
            self._add_row(it.size, it.pattern, it.quantity or 1, it.unit_price)

    def _add_row(self, size: str = "", pattern: str = "", qty: Any = 1, price: Any = 0):
        self.tbl.blockSignals(True)
        r = self.tbl.rowCount()
        self.tbl.insertRow(r)
        self.tbl.setItem(r, 0, QTableWidgetItem(size))
        self.tbl.setItem(r, 1, QTableWidgetItem(pattern))
        self.tbl.setItem(r, 2, QTableWidgetItem(f"{qty:g}" if isinstance(qty, (int, float)) else str(qty)))
        self.tbl.setItem(r, 3, QTableWidgetItem(f"{price:g}" if isinstance(price, (int, float)) else str(price)))
        self.tbl.setItem(r, 4, QTableWidgetItem(""))
        self.tbl.blockSignals(False)
        self._update_totals()

    def _del_row(self):
        row = self.tbl.currentRow()
        if row < 0 or self.tbl.rowCount() <= 1: return
        self.tbl.removeRow(row)
        self._update_totals()

    def _cell(self, row: int, col: int) -> str:
        it = self.tbl.item(row, col)
        return it.text() if it else ""

    def _update_totals(self):
        self.tbl.blockSignals(True)
        total = 0.0
        for r in range(self.tbl.rowCount()):
            line = _to_number(self._cell(r, 2)) * _to_number(self._cell(r, 3))
            total += line
            self.tbl.setItem(r, 4, QTableWidgetItem(format_currency(line)))
        self.tbl.blockSignals(False)
        self.lab_total.setText(f"Total: {format_currency(math.floor(total + 0.5))}")

    # -------- Result --------
    def get_items(self) -> List[Dict[str, Any]]:
        out = []
        for r in range(self.tbl.rowCount()):
            out.append({
                "size": self._cell(r, 0).strip(),
                "pattern": self._cell(r, 1).strip(),
                "quantity": self._cell(r, 2).strip() or "0",
                "unit_price": self._cell(r, 3).strip().replace(",", "") or "0",
            })
        return out

    def get_invoice(self) -> Dict[str, Any]:
        status = self.cb_status.currentData()
        return {
            "on": self.ed_date.date().toPython(),  # datetime.date
            "invoice_no": self.ed_number.text(),
            "items": self.get_items(),
            # ADJUSTED is kept as is
            "status": status if status in ("PENDING", "PAID") else None,
        }
