from __future__ import annotations
from pydantic import Field, model_validator
from typing import List, Literal, Optional
import datetime as dt
from .common import CamelModel, gen_id

EntryType = Literal["INVOICE", "PAYMENT", "CN"]
InvoiceStatus = Literal["PENDING", "PAID", "ADJUSTED"]

PAYMENT_INVOICE_NO = "-"
CN_INVOICE_NO = "CN-ADJ"

_AMOUNT_FIELDS = {
    "INVOICE": "invoice_amount",
    "PAYMENT": "payment_amount",
    "CN": "cn_amount",
}


class InvoiceItem(CamelModel):
    id: str = Field(default_factory=gen_id)
    size: str = ""           # tyre size code, e.g. 195/55-R16
    pattern: str = ""
    quantity: int = Field(default=1, gt=0)
    unit_price: float = Field(default=0.0, ge=0)

    @property
    def line_total(self) -> float:
        return self.quantity * self.unit_price


class LedgerEntry(CamelModel):
    id: str = Field(default_factory=gen_id)
    type: EntryType
    date: dt.date
    invoice_no: str = ""

    # legacy / aggregated fields, also the implicit item when `items` is empty
    size: Optional[str] = None
    pattern: Optional[str] = None
    quantity: Optional[int] = None
    unit_price: Optional[float] = None

    items: Optional[List[InvoiceItem]] = None

    invoice_amount: Optional[float] = None
    due_date: Optional[dt.date] = None
    payment_amount: Optional[float] = None
    cn_amount: Optional[float] = None

    status: Optional[InvoiceStatus] = None
    original_ref_id: Optional[str] = None
    notes: Optional[str] = None

    @model_validator(mode="after")
    def _check_amount_field(self) -> "LedgerEntry":
        own = _AMOUNT_FIELDS[self.type]
        if getattr(self, own) is None:
            raise ValueError(f"{self.type} entry requires '{own}'")
        for kind, field in _AMOUNT_FIELDS.items():
            if kind != self.type and getattr(self, field) is not None:
                raise ValueError(f"{self.type} entry cannot carry '{field}'")
        return self

    # helpers
    @property
    def amount(self) -> float:
        return getattr(self, _AMOUNT_FIELDS[self.type]) or 0.0

    @property
    def is_original_sale(self) -> bool:
        return self.type == "INVOICE" and not self.original_ref_id

    def resolved_items(self) -> List[InvoiceItem]:
        if self.items:
            return list(self.items)
        # model_construct: legacy rows may hold a zero quantity
        return [InvoiceItem.model_construct(
            id=self.id,
            size=self.size or "",
            pattern=self.pattern or "",
            quantity=self.quantity or 0,
            unit_price=self.unit_price or 0.0,
        )]

    def append_note(self, text: str) -> str:
        return (self.notes or "") + text
