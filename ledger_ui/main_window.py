from __future__ import annotations
from PySide6.QtWidgets import (
    QMainWindow, QWidget, QVBoxLayout, QHBoxLayout, QGridLayout,
    QLabel, QPushButton, QFileDialog, QMessageBox, QTableWidget,
    QTableWidgetItem, QHeaderView, QGroupBox, QDialog, QComboBox
)
from PySide6.QtGui import QColor
from pathlib import Path
import logging

from ledger_core.config import EXPORTS_DIR
from ledger_core.errors import LedgerValidationError, RestoreError
from ledger_core.formatting import format_currency, format_date
from ledger_core.models.entry import LedgerEntry
from ledger_core.services import export_service
from ledger_core.services.ledger_service import LedgerService
from ledger_ui.widgets.invoice_form import InvoiceForm
from ledger_ui.widgets.transaction_dialog import TransactionDialog

logger = logging.getLogger(__name__)

COLS = ["Date", "Invoice No", "Size", "Pattern", "Qty", "Unit price", "Invoice amt",
        "Due date", "Status", "Payment", "CN", "Notes", "ID"]
ID_COL = len(COLS) - 1


def _sizes(e: LedgerEntry) -> str:
    if e.items:
        return ", ".join(i.size for i in e.items)
    return e.size or "-"


def _patterns(e: LedgerEntry) -> str:
    if e.items:
        return ", ".join(i.pattern for i in e.items)
    return e.pattern or "-"


def _unit_prices(e: LedgerEntry) -> str:
    if e.items:
        return ", ".join(format_currency(i.unit_price) for i in e.items)
    return format_currency(e.unit_price) if e.unit_price else "-"


def _label(e: LedgerEntry) -> str:
    if e.type == "PAYMENT": return "PAYMENT"
    if e.type == "CN": return "CN"
    return e.invoice_no + (" (Adj)" if e.status == "ADJUSTED" else "")


class MainWindow(QMainWindow):
    def __init__(self, service: LedgerService | None = None):
        super().__init__()
        self.service = service or LedgerService()
        self.setWindowTitle(f"LEDGER - {self.service.settings.business_name}")
        self.resize(1380, 820)

        w = QWidget(); root = QVBoxLayout(w)
        root.addLayout(self._toolbar())
        root.addLayout(self._filter_bar())
        root.addWidget(self._stats_box())
        root.addWidget(self._ledger_table(), 1)
        self.setCentralWidget(w)

        self._refresh()

    # ==================== LAYOUT ====================
    def _toolbar(self):
        bar = QHBoxLayout()
        btn_inv = QPushButton("New Invoice")
        btn_pay = QPushButton("Record Payment")
        btn_cn = QPushButton("Issue CN")
        btn_edit = QPushButton("Edit")
        btn_del = QPushButton("Delete")
        btn_backup = QPushButton("Backup Data")
        btn_restore = QPushButton("Restore Data")
        btn_csv = QPushButton("Export CSV")
        for b in (btn_inv, btn_pay, btn_cn, btn_edit, btn_del): bar.addWidget(b)
        bar.addStretch(1)
        for b in (btn_backup, btn_restore, btn_csv): bar.addWidget(b)

        btn_inv.clicked.connect(self._invoice_new)
        btn_pay.clicked.connect(lambda: self._transaction_new("PAYMENT"))
        btn_cn.clicked.connect(lambda: self._transaction_new("CN"))
        btn_edit.clicked.connect(self._entry_edit)
        btn_del.clicked.connect(self._entry_delete)
        btn_backup.clicked.connect(self._backup_json)
        btn_restore.clicked.connect(self._restore_json)
        btn_csv.clicked.connect(self._export_csv)
        return bar

    def _filter_bar(self):
        bar = QHBoxLayout()
        lab = QLabel("Filter by Month:"); fb = lab.font(); fb.setBold(True); lab.setFont(fb)
        self.cb_month = QComboBox()
        self.cb_month.currentIndexChanged.connect(lambda *_: self._refresh_view())
        bar.addWidget(lab); bar.addWidget(self.cb_month); bar.addStretch(1)
        return bar

    def _stats_box(self):
        grp = QGroupBox("Financial Overview / Tyre Category Sales (Qty)")
        grid = QGridLayout(grp)
        self.stat_labels = {}
        cells = [
            ("outstanding", "Total Outstanding", 0, 0), ("total_invoiced", "Total Invoiced", 0, 1),
            ("total_paid", "Total Payments", 0, 2), ("total_cn", "Total Credit Notes (CN)", 0, 3),
            ("qty_pcr", "PCR TYRE", 1, 0), ("qty_nylon", "NYLON", 1, 1), ("qty_2wheeler", "2WHEELER", 1, 2),
        ]
        for key, title, r, c in cells:
            box = QVBoxLayout()
            t = QLabel(title); t.setStyleSheet("color:#6b7280;")
            v = QLabel("-"); v.setStyleSheet("font-size:18px;font-weight:600;")
            box.addWidget(t); box.addWidget(v)
            grid.addLayout(box, r, c)
            self.stat_labels[key] = v
        self.stat_labels["outstanding"].setStyleSheet("font-size:18px;font-weight:600;color:#b91c1c;")
        return grp

    def _ledger_table(self):
        self.tbl = QTableWidget(0, len(COLS))
        self.tbl.setHorizontalHeaderLabels(COLS)
        self.tbl.horizontalHeader().setSectionResizeMode(QHeaderView.ResizeToContents)
        self.tbl.horizontalHeader().setStretchLastSection(False)
        self.tbl.setSelectionBehavior(self.tbl.SelectionBehavior.SelectRows)
        self.tbl.setEditTriggers(self.tbl.EditTrigger.NoEditTriggers)
        self.tbl.setColumnHidden(ID_COL, True)
        self.tbl.doubleClicked.connect(lambda *_: self._entry_edit())
        return self.tbl

    # ==================== REFRESH ====================
    def _refresh(self):
        """Reload filter choices then the view (after any mutation)."""
        current = self.cb_month.currentData()
        self.cb_month.blockSignals(True)
        self.cb_month.clear()
        self.cb_month.addItem("All Time", "")
        for m in self.service.months():
            self.cb_month.addItem(m, m)
        idx = self.cb_month.findData(current) if current else 0
        self.cb_month.setCurrentIndex(max(0, idx))
        self.cb_month.blockSignals(False)
        self._refresh_view()

    def _period(self):
        return self.cb_month.currentData() or None

    def _refresh_view(self):
        period = self._period()
        rows = self.service.visible(period)
        self.tbl.setRowCount(0)
        for e in rows:
            r = self.tbl.rowCount(); self.tbl.insertRow(r)
            is_inv = e.type == "INVOICE"
            values = [
                format_date(e.date),
                _label(e),
                _sizes(e) if is_inv else "-",
                _patterns(e) if is_inv else "-",
                str(e.quantity) if is_inv and e.quantity else "-",
                _unit_prices(e) if is_inv else "-",
                format_currency(e.invoice_amount) if e.invoice_amount else "-",
                format_date(e.due_date) if is_inv else "-",
                (e.status or "") if is_inv else "",
                format_currency(e.payment_amount) if e.payment_amount else "-",
                format_currency(e.cn_amount) if e.cn_amount else "-",
                e.notes or "",
                e.id,
            ]
            for c, v in enumerate(values):
                self.tbl.setItem(r, c, QTableWidgetItem(v))
            if e.status == "ADJUSTED":
                for c in range(len(COLS)):
                    it = self.tbl.item(r, c); f = it.font(); f.setStrikeOut(True); it.setFont(f)
                    it.setForeground(QColor("#9ca3af"))
            elif is_inv and e.status == "PAID":
                for c in range(len(COLS)):
                    self.tbl.item(r, c).setBackground(QColor("#f0fdf4"))
        self.tbl.resizeRowsToContents()
        self._refresh_stats(period)

    def _refresh_stats(self, period):
        s = self.service.stats(period)
        for key in ("outstanding", "total_invoiced", "total_paid", "total_cn"):
            self.stat_labels[key].setText(format_currency(getattr(s, key)))
        for key in ("qty_pcr", "qty_nylon", "qty_2wheeler"):
            self.stat_labels[key].setText(str(getattr(s, key)))

    def _selected_id(self):
        row = self.tbl.currentRow()
        if row < 0: return None
        return self.tbl.item(row, ID_COL).text()

    # ==================== ACTIONS ====================
    def _invoice_new(self):
        dlg = InvoiceForm(self)
        if dlg.exec() == QDialog.Accepted:
            data = dlg.get_invoice()
            try:
                self.service.add_invoice(data["on"], data["invoice_no"], data["items"], data["status"] or "PENDING")
            except LedgerValidationError as e:
                QMessageBox.warning(self, "Validation", str(e)); return
            self._refresh()

    def _transaction_new(self, kind: str):
        dlg = TransactionDialog(self, kind=kind)
        if dlg.exec() != QDialog.Accepted:
            return
        on, amount, notes = dlg.get_transaction()
        try:
            if kind == "PAYMENT":
                self.service.add_payment(on, amount, notes)
            else:
                self.service.record_credit_note(on, amount, notes)
        except LedgerValidationError as e:
            QMessageBox.warning(self, "Validation", str(e)); return
        self._refresh()

    def _entry_edit(self):
        eid = self._selected_id()
        if not eid:
            QMessageBox.information(self, "Ledger", "Select a row first."); return
        entry = self.service.get(eid)
        if not entry:
            QMessageBox.warning(self, "Ledger", "This entry no longer exists."); self._refresh(); return
        try:
            if entry.type == "INVOICE":
                dlg = InvoiceForm(self, entry=entry)
                if dlg.exec() != QDialog.Accepted: return
                data = dlg.get_invoice()
                self.service.update_invoice(eid, data["on"], data["invoice_no"], data["items"], data["status"])
            else:
                dlg = TransactionDialog(self, entry=entry)
                if dlg.exec() != QDialog.Accepted: return
                on, amount, notes = dlg.get_transaction()
                self.service.update_transaction(eid, on, amount, notes)
        except LedgerValidationError as e:
            QMessageBox.warning(self, "Validation", str(e)); return
        self._refresh()

    def _entry_delete(self):
        eid = self._selected_id()
        if not eid:
            QMessageBox.information(self, "Ledger", "Select a row first."); return
        if QMessageBox.question(self, "Delete", "Delete this entry? This cannot be undone.") == QMessageBox.Yes:
            self.service.delete_entry(eid)
            self._refresh()

    # ==================== BACKUP / EXPORT ====================
    def _backup_json(self):
        default = str(EXPORTS_DIR / export_service.backup_filename())
        path, _ = QFileDialog.getSaveFileName(self, "Backup Data", default, "JSON (*.json)")
        if not path: return
        try:
            export_service.write_backup(self.service.entries, path)
        except OSError as e:
            QMessageBox.critical(self, "Backup", str(e)); return
        QMessageBox.information(self, "Backup", f"Backup written:\n{path}")

    def _restore_json(self):
        path, _ = QFileDialog.getOpenFileName(self, "Restore Data", str(EXPORTS_DIR), "JSON (*.json)")
        if not path: return
        try:
            text = Path(path).read_text(encoding="utf-8")
            entries = export_service.parse_backup(text)
        except (OSError, UnicodeDecodeError) as e:
            QMessageBox.critical(self, "Restore", str(e)); return
        except RestoreError as e:
            logger.warning("Restore of %s rejected: %s", path, e)
            QMessageBox.warning(self, "Restore", str(e)); return
        if QMessageBox.question(
            self, "Restore",
            "This will OVERWRITE all current data with the backup file. Are you sure?"
        ) != QMessageBox.Yes:
            return
        n = self.service.restore(entries)
        self._refresh()
        QMessageBox.information(self, "Restore", f"Data restored successfully! ({n} entries)")

    def _export_csv(self):
        # all entries, not just the current month
        default = str(EXPORTS_DIR / "ledger_export.csv")
        path, _ = QFileDialog.getSaveFileName(self, "Export CSV", default, "CSV (*.csv)")
        if not path: return
        try:
            out = export_service.write_csv(self.service.entries, path)
        except OSError as e:
            QMessageBox.critical(self, "Export CSV", str(e)); return
        QMessageBox.information(self, "Export CSV", f"File written:\n{out}")
