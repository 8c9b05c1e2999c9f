"""
Monthly GST return helpers (GSTR-1 outward supplies, GSTR-3B summary).

Figures are aggregated from the stored calculation results. Nothing here
validates a return against tax law.
"""
from __future__ import annotations

import calendar
from datetime import date
from typing import Dict, List, Sequence, Tuple

from pydantic import BaseModel, Field

from gstbook.models.invoice import InvoiceRecord
from gstbook.models.purchase import PurchaseRecord
from gstbook.models.calculation import TaxHeads
from gstbook.services.report_service import filter_by_date
from gstbook.services.tax_service import item_amounts, total_tax_heads


def month_period(year: int, month: int) -> Tuple[date, date]:
    """First and last day of a month (month is 1-12)."""
    last = calendar.monthrange(year, month)[1]
    return date(year, month, 1), date(year, month, last)


class B2BRow(BaseModel):
    invoice_number: str
    issue_date: date
    client_name: str
    client_gstin: str
    taxable_value: float
    total_tax: float


class HsnRow(BaseModel):
    hsn: str
    description: str
    quantity: float = 0.0
    taxable_value: float = 0.0
    total_tax: float = 0.0


class Gstr1(BaseModel):
    b2b: List[B2BRow] = Field(default_factory=list)
    b2c_by_rate: Dict[float, float] = Field(default_factory=dict)  # rate -> taxable value
    hsn_summary: List[HsnRow] = Field(default_factory=list)


class OutwardSupplies(TaxHeads):
    taxable_value: float = 0.0


class Gstr3b(BaseModel):
    outward: OutwardSupplies = Field(default_factory=OutwardSupplies)
    itc: TaxHeads = Field(default_factory=TaxHeads)


def gstr1(invoices: Sequence[InvoiceRecord]) -> Gstr1:
    out = Gstr1()
    hsn_rows: Dict[str, HsnRow] = {}
    for inv in invoices:
        # a client with a GSTIN is a registered business
        if inv.client.gstin:
            out.b2b.append(B2BRow(
                invoice_number=inv.invoice_number,
                issue_date=inv.issue_date,
                client_name=inv.client.name,
                client_gstin=inv.client.gstin,
                taxable_value=inv.calculation_result.total_net_amount,
                total_tax=inv.calculation_result.total_gst_amount,
            ))
        else:
            for bd in inv.calculation_result.gst_breakdown:
                out.b2c_by_rate[bd.rate] = out.b2c_by_rate.get(bd.rate, 0.0) + bd.taxable_amount

        for it in inv.items:
            if not it.is_billable():
                continue
            code = it.hsn or "N/A"
            net, tax = item_amounts(it, inv.price_type)
            row = hsn_rows.get(code)
            if row is None:
                row = hsn_rows[code] = HsnRow(hsn=code, description=it.description)
            row.quantity += it.quantity
            row.taxable_value += net
            row.total_tax += tax
    out.hsn_summary = list(hsn_rows.values())
    return out


def gstr3b(invoices: Sequence[InvoiceRecord], purchases: Sequence[PurchaseRecord]) -> Gstr3b:
    heads = total_tax_heads(invoices)
    outward = OutwardSupplies(
        taxable_value=sum(i.calculation_result.total_net_amount for i in invoices),
        cgst=heads.cgst, sgst=heads.sgst, igst=heads.igst,
    )
    return Gstr3b(outward=outward, itc=total_tax_heads(purchases))


def monthly_returns(
    invoices: Sequence[InvoiceRecord], purchases: Sequence[PurchaseRecord], year: int, month: int
) -> Tuple[Gstr1, Gstr3b]:
    start, end = month_period(year, month)
    inv = filter_by_date(invoices, start, end)
    pur = filter_by_date(purchases, start, end)
    return gstr1(inv), gstr3b(inv, pur)
