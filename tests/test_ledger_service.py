import json
from datetime import date

import pytest

from ledger_core.config import Settings
from ledger_core.errors import LedgerValidationError, RestoreError
from ledger_core.services.ledger_service import LedgerService

D = date(2024, 1, 5)


def _items():
    return [
        {"size": "195/55-R16", "pattern": "ECO", "quantity": 2, "unit_price": 2499.75},
        {"size": "90/100", "pattern": "TRAIL", "quantity": 1, "unit_price": 1000},
    ]


def test_add_invoice_derives_totals(service):
    inv = service.add_invoice(D, " INV-1 ", _items())

    assert inv.type == "INVOICE"
    assert inv.invoice_no == "INV-1"
    assert inv.invoice_amount == 6000.0  # 5999.5 rounds up
    assert inv.due_date == date(2024, 2, 4)
    assert inv.size == "195/55-R16, 90/100"
    assert inv.pattern == "ECO, TRAIL"
    assert inv.quantity == 3
    assert inv.unit_price == 0
    assert inv.status == "PENDING"
    assert len(inv.items) == 2
    assert service.version == 1


def test_due_days_come_from_settings(ledger_path):
    svc = LedgerService(ledger_path, settings=Settings(due_days=45))
    inv = svc.add_invoice(D, "INV-1", _items())
    assert inv.due_date == date(2024, 2, 19)


def test_mutations_are_persisted(service, ledger_path):
    service.add_invoice(D, "INV-1", _items())
    service.add_payment(D, 500)
    raw = json.loads(ledger_path.read_text(encoding="utf-8"))
    assert [r["type"] for r in raw] == ["INVOICE", "PAYMENT"]

    reopened = LedgerService(ledger_path, settings=Settings())
    assert [e.id for e in reopened.entries] == [e.id for e in service.entries]


@pytest.mark.parametrize("kwargs", [
    {"invoice_no": "  ", "items": _items()},
    {"invoice_no": "INV-1", "items": []},
    {"invoice_no": "INV-1", "items": [{"size": "R15", "quantity": 0, "unit_price": 10}]},
    {"invoice_no": "INV-1", "items": [{"size": "R15", "quantity": 1, "unit_price": -1}]},
])
def test_invalid_invoice_is_rejected_without_change(service, kwargs):
    with pytest.raises(LedgerValidationError):
        service.add_invoice(D, **kwargs)
    assert service.entries == []
    assert service.version == 0


def test_manual_status_cannot_be_adjusted(service):
    with pytest.raises(LedgerValidationError):
        service.add_invoice(D, "INV-1", _items(), status="ADJUSTED")


def test_update_invoice_recomputes_and_keeps_status(service):
    inv = service.add_invoice(D, "INV-1", _items(), status="PAID")
    updated = service.update_invoice(inv.id, date(2024, 3, 1), "INV-1A",
                                     [{"size": "R14", "quantity": 4, "unit_price": 100}])

    assert updated.id == inv.id
    assert updated.invoice_amount == 400.0
    assert updated.due_date == date(2024, 3, 31)
    assert updated.status == "PAID"
    assert service.get(inv.id).invoice_no == "INV-1A"
    assert len(service.entries) == 1


def test_update_unknown_entry_is_a_noop(service):
    service.add_payment(D, 10)
    version = service.version
    assert service.update_invoice("missing", D, "INV-1", _items()) is None
    assert service.update_transaction("missing", D, 5) is None
    assert service.delete_entry("missing") is False
    assert service.version == version


@pytest.mark.parametrize("amount", [0, -1, "abc", None, "nan", "inf", float("nan"), float("-inf")])
def test_payment_amount_must_be_positive(service, amount):
    with pytest.raises(LedgerValidationError):
        service.add_payment(D, amount)
    assert service.entries == []


def test_record_credit_note_runs_the_engine(service):
    inv = service.add_invoice(D, "INV-1", [{"size": "R15", "quantity": 1, "unit_price": 1000}])
    cn = service.record_credit_note(date(2024, 1, 20), "400", "damaged")

    assert cn.type == "CN"
    assert cn.cn_amount == 400.0
    entries = service.entries
    assert len(entries) == 3
    assert service.get(inv.id).status == "ADJUSTED"
    assert entries[1].invoice_no == "INV-1-BAL"
    assert service.stats().outstanding == 600.0


def test_invalid_credit_note_changes_nothing(service):
    service.add_invoice(D, "INV-1", _items())
    before = service.entries
    with pytest.raises(LedgerValidationError):
        service.record_credit_note(D, 0)
    assert service.entries == before


@pytest.mark.parametrize("amount", ["nan", "inf", float("nan"), float("inf")])
def test_non_finite_credit_note_changes_nothing(service, amount):
    inv = service.add_invoice(D, "INV-1", _items())
    before = service.entries
    version = service.version
    with pytest.raises(LedgerValidationError):
        service.record_credit_note(D, amount)
    assert service.entries == before
    assert service.version == version
    assert service.get(inv.id).status == "PENDING"
    assert service.stats().outstanding == inv.invoice_amount


def test_update_transaction_edits_amount_only(service):
    inv = service.add_invoice(D, "INV-1", [{"size": "R15", "quantity": 1, "unit_price": 1000}])
    cn = service.record_credit_note(D, 1000)
    updated = service.update_transaction(cn.id, date(2024, 1, 9), 800, "corrected")

    assert updated.cn_amount == 800.0
    assert updated.payment_amount is None
    assert updated.notes == "corrected"
    # CN application is not re-run on edit
    assert service.get(inv.id).status == "PAID"


def test_update_transaction_ignores_invoices(service):
    inv = service.add_invoice(D, "INV-1", _items())
    assert service.update_transaction(inv.id, D, 10) is None


def test_delete_entry(service):
    pay = service.add_payment(D, 100)
    assert service.delete_entry(pay.id) is True
    assert service.entries == []


def test_restore_replaces_everything(service, make_invoice):
    service.add_payment(D, 100)
    payload = json.dumps([make_invoice("INV-9", 900.0).to_json_dict()])

    assert service.restore(payload) == 1
    assert [e.invoice_no for e in service.entries] == ["INV-9"]


@pytest.mark.parametrize("payload", ["not json", '{"a": 1}', '[{"type": "CN"}]'])
def test_bad_restore_leaves_state_untouched(service, payload):
    pay = service.add_payment(D, 100)
    version = service.version
    with pytest.raises(RestoreError):
        service.restore(payload)
    assert [e.id for e in service.entries] == [pay.id]
    assert service.version == version


def test_read_side_views(service):
    service.add_invoice(date(2024, 1, 5), "INV-10", [{"size": "R15", "quantity": 2, "unit_price": 100}])
    service.add_invoice(date(2024, 1, 5), "INV-2", [{"size": "90/90", "quantity": 3, "unit_price": 100}])
    service.add_payment(date(2024, 2, 1), 150)

    assert service.months() == ["2024-02", "2024-01"]
    assert [e.invoice_no for e in service.visible("2024-01")] == ["INV-2", "INV-10"]

    jan = service.stats("2024-01")
    assert jan.total_invoiced == 500.0
    assert jan.total_paid == 0
    assert jan.qty_pcr == 2 and jan.qty_2wheeler == 3
    assert jan.outstanding == 350.0


def test_entries_property_is_a_copy(service):
    service.add_payment(D, 10)
    snapshot = service.entries
    snapshot.clear()
    assert len(service.entries) == 1


@pytest.mark.parametrize("amount", [0, "nan", "inf", float("nan")])
def test_update_transaction_rejects_invalid_amount(service, amount):
    pay = service.add_payment(D, 250)
    with pytest.raises(LedgerValidationError):
        service.update_transaction(pay.id, D, amount)
    assert service.get(pay.id).payment_amount == 250.0
