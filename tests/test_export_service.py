import csv
import io
import json
from datetime import date

import pytest

from ledger_core.errors import RestoreError
from ledger_core.models.entry import InvoiceItem
from ledger_core.services import export_service
from ledger_core.services.credit_note_service import apply_credit_note


def _rows(text):
    return list(csv.reader(io.StringIO(text)))


def test_csv_headers_and_multi_item_row(make_invoice):
    inv = make_invoice(
        "INV-5", 3500.0,
        quantity=3, unit_price=0.0, due_date=date(2024, 2, 4),
        items=[
            InvoiceItem(size="195/55-R16", pattern="ECO", quantity=2, unit_price=1000),
            InvoiceItem(size="90/100", pattern="TRAIL", quantity=1, unit_price=1500.5),
        ],
    )
    rows = _rows(export_service.export_csv([inv]))

    assert rows[0] == export_service.CSV_HEADERS
    assert rows[1] == [
        "2024-01-05", "INV-5", "195/55-R16; 90/100", "ECO; TRAIL", "3",
        "1000; 1500.5", "3500", "2024-02-04", "PENDING", "", "",
    ]


def test_csv_blanks_for_payments_and_cn(make_payment, make_cn):
    rows = _rows(export_service.export_csv([make_payment(250.0), make_cn(99.5)]))
    assert rows[1] == ["2024-01-10", "-", "", "", "", "", "", "", "", "250", ""]
    assert rows[2] == ["2024-01-10", "CN-ADJ", "", "", "", "", "", "", "", "", "99.5"]


def test_write_csv_creates_file(tmp_path, make_payment):
    out = export_service.write_csv([make_payment()], tmp_path / "exports" / "ledger_export.csv")
    assert out.endswith("ledger_export.csv")
    assert (tmp_path / "exports" / "ledger_export.csv").read_text(encoding="utf-8").startswith("DATE,")


def test_json_backup_keeps_every_field(make_invoice):
    inv = make_invoice("INV-1", 1000.0, due_date=date(2024, 2, 4),
                       items=[InvoiceItem(size="R15", pattern="P", quantity=4, unit_price=250)])
    entries = apply_credit_note([inv], 400.0, date(2024, 1, 20), "damaged")

    text = export_service.backup_json(entries)
    raw = json.loads(text)
    assert raw[1]["originalRefId"] == inv.id
    assert raw[1]["status"] == "PENDING"
    assert raw[0]["items"][0]["unitPrice"] == 250

    restored = export_service.parse_backup(text)
    assert [e.model_dump() for e in restored] == [e.model_dump() for e in entries]


def test_parse_backup_accepts_camel_case_payload_from_older_app():
    payload = json.dumps([{
        "id": "k3j9x2l1p",
        "type": "INVOICE",
        "date": "2024-01-05",
        "invoiceNo": "INV-2",
        "size": "195/55-R16",
        "pattern": "ECO",
        "quantity": 4,
        "unitPrice": 0,
        "invoiceAmount": 10000,
        "items": [{"id": "a", "size": "195/55-R16", "pattern": "ECO", "quantity": "4", "unitPrice": "2500"}],
        "dueDate": "2024-02-04",
        "status": "PENDING",
    }])
    (entry,) = export_service.parse_backup(payload)
    assert entry.invoice_no == "INV-2"
    assert entry.items[0].quantity == 4
    assert entry.items[0].unit_price == 2500.0


@pytest.mark.parametrize("payload,message", [
    ("{oops", "Error parsing JSON file."),
    ('{"id": 1}', "Invalid backup file format."),
    ("42", "Invalid backup file format."),
])
def test_parse_backup_rejects_bad_shape(payload, message):
    with pytest.raises(RestoreError, match=message):
        export_service.parse_backup(payload)


def test_parse_backup_rejects_invalid_entry():
    with pytest.raises(RestoreError, match="Invalid ledger entry"):
        export_service.parse_backup([{"type": "PAYMENT", "date": "2024-01-01"}])


def test_write_backup_writes_to_given_path(tmp_path, make_payment):
    target = tmp_path / "nested" / export_service.backup_filename()
    path = export_service.write_backup([make_payment()], target)
    assert path == str(target)
    assert json.loads(open(path, encoding="utf-8").read())[0]["paymentAmount"] == 100.0


def test_backup_filename():
    assert export_service.backup_filename(date(2024, 3, 9)) == "ledger_backup_2024-03-09.json"
