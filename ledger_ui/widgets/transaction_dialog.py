from __future__ import annotations
from PySide6.QtWidgets import QDialog, QVBoxLayout, QFormLayout, QDoubleSpinBox, QDialogButtonBox, QDateEdit, QLineEdit
from PySide6.QtCore import QDate
from typing import Optional
from datetime import date

from ledger_core.models.entry import LedgerEntry

TITLES = {"PAYMENT": "Payment Received", "CN": "Credit Note (CN)"}


class TransactionDialog(QDialog):
    def __init__(self, parent=None, kind: str = "PAYMENT", entry: Optional[LedgerEntry] = None):
        super().__init__(parent)
        self.kind = entry.type if entry else kind
        self._entry = entry
        self.setWindowTitle(("Edit " if entry else "Record ") + TITLES[self.kind])
        self.setModal(True)

        self.sp_amount = QDoubleSpinBox()
        self.sp_amount.setRange(0, 1e12)
        self.sp_amount.setDecimals(2)
        self.sp_amount.setPrefix("₹ ")

        self.dt = QDateEdit()
        self.dt.setCalendarPopup(True)
        self.dt.setDate(QDate.currentDate())

        self.ed_notes = QLineEdit()
        if self.kind == "CN":
            self.ed_notes.setPlaceholderText("Reason for credit note")

        if entry:
            self.sp_amount.setValue(entry.amount)
            self.dt.setDate(QDate(entry.date.year, entry.date.month, entry.date.day))
            self.ed_notes.setText(entry.notes or "")

        form = QFormLayout()
        form.addRow("Date", self.dt)
        form.addRow("Amount", self.sp_amount)
        form.addRow("Notes", self.ed_notes)

        btns = QDialogButtonBox(QDialogButtonBox.Ok | QDialogButtonBox.Cancel)
        btns.accepted.connect(self.accept)
        btns.rejected.connect(self.reject)

        lay = QVBoxLayout(self)
        lay.addLayout(form)
        lay.addWidget(btns)

    def get_transaction(self) -> tuple[date, float, str]:
        on = self.dt.date().toPython()  # datetime.date
        return on, float(self.sp_amount.value()), self.ed_notes.text().strip()
