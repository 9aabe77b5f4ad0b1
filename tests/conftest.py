import pytest
from datetime import date

from ledger_core.config import Settings
from ledger_core.models.entry import LedgerEntry
from ledger_core.services.ledger_service import LedgerService


@pytest.fixture
def make_invoice():
    """Factory for INVOICE entries, PENDING unless told otherwise."""
    def _make(invoice_no="INV-1", amount=1000.0, on="2024-01-05", status="PENDING", **kw):
        return LedgerEntry(
            type="INVOICE",
            date=date.fromisoformat(on),
            invoice_no=invoice_no,
            invoice_amount=amount,
            status=status,
            **kw,
        )
    return _make


@pytest.fixture
def make_payment():
    def _make(amount=100.0, on="2024-01-10"):
        return LedgerEntry(type="PAYMENT", date=date.fromisoformat(on), invoice_no="-", payment_amount=amount)
    return _make


@pytest.fixture
def make_cn():
    def _make(amount=100.0, on="2024-01-10"):
        return LedgerEntry(type="CN", date=date.fromisoformat(on), invoice_no="CN-ADJ", cn_amount=amount)
    return _make



@pytest.fixture
def ledger_path(tmp_path):
    return tmp_path / "data" / "ledger_entries.json"


@pytest.fixture
def service(ledger_path):
    return LedgerService(ledger_path, settings=Settings(backup_keep=2))
