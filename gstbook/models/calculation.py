from __future__ import annotations
from typing import List
from pydantic import BaseModel, Field


class GstBreakdownDetail(BaseModel):
    rate: float
    taxable_amount: float = 0.0
    gst_amount: float = 0.0


class CalculationResult(BaseModel):
    total_net_amount: float = 0.0
    total_gst_amount: float = 0.0
    grand_total: float = 0.0
    gst_breakdown: List[GstBreakdownDetail] = Field(default_factory=list)


class TaxHeads(BaseModel):
    cgst: float = 0.0
    sgst: float = 0.0
    igst: float = 0.0

    @property
    def total(self) -> float:
        return self.cgst + self.sgst + self.igst
