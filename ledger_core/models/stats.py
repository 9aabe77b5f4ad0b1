from __future__ import annotations
from pydantic import BaseModel


class Stats(BaseModel):
    # scoped to the current view
    total_invoiced: float = 0.0
    total_paid: float = 0.0
    total_cn: float = 0.0
    # all-time, never filtered
    outstanding: float = 0.0
    # tyre category quantities, scoped
    qty_pcr: int = 0
    qty_nylon: int = 0
    qty_2wheeler: int = 0
