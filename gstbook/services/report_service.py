from __future__ import annotations

import csv
import math
from datetime import date
from pathlib import Path
from typing import Iterable, List, Optional, Sequence, TypeVar, Union

from pydantic import BaseModel, Field

from gstbook.models.invoice import InvoiceRecord
from gstbook.models.product import Product
from gstbook.models.purchase import PurchaseRecord
from gstbook.services.stock_service import stock_status
from gstbook.services.tax_service import RateSummary, summarize_by_rate

R = TypeVar("R", InvoiceRecord, PurchaseRecord)


def filter_by_date(records: Iterable[R], start: Optional[date] = None, end: Optional[date] = None) -> List[R]:
    """Records issued between start and end, both days included."""
    return [
        r for r in records
        if (start is None or r.issue_date >= start) and (end is None or r.issue_date <= end)
    ]


# ---------- dashboard ---------- #

class FinancialSummary(BaseModel):
    total_invoiced: float = 0.0
    total_collected: float = 0.0
    total_outstanding: float = 0.0
    total_tax: float = 0.0
    total_cgst: float = 0.0
    total_sgst: float = 0.0
    total_igst: float = 0.0
    rate_summary: List[RateSummary] = Field(default_factory=list)
    unpaid_invoices: int = 0
    total_payables: float = 0.0
    total_itc_available: float = 0.0


class InventorySummary(BaseModel):
    tracked_products: int = 0
    low_stock_items: int = 0
    out_of_stock_items: int = 0
    total_stock_value: float = 0.0


def financial_summary(invoices: Sequence[InvoiceRecord], purchases: Sequence[PurchaseRecord]) -> FinancialSummary:
    out = FinancialSummary()
    for inv in invoices:
        out.total_invoiced += inv.total_amount
        if inv.status == "PAID":
            out.total_collected += inv.total_amount
        else:
            out.total_outstanding += inv.total_amount
            out.unpaid_invoices += 1
        out.total_tax += inv.calculation_result.total_gst_amount

    out.rate_summary = summarize_by_rate(invoices)
    for row in out.rate_summary:
        out.total_cgst += row.cgst
        out.total_sgst += row.sgst
        out.total_igst += row.igst

    for pur in purchases:
        out.total_payables += pur.total_amount
        out.total_itc_available += pur.calculation_result.total_gst_amount
    return out


def _stock_value(p: Product) -> float:
    # unpriced products count as zero
    return 0.0 if math.isnan(p.price) else p.stock * p.price


def inventory_summary(products: Iterable[Product]) -> InventorySummary:
    out = InventorySummary()
    for p in products:
        if not p.track_stock:
            continue
        out.tracked_products += 1
        if p.stock <= 0:
            out.out_of_stock_items += 1
        elif p.stock <= p.low_stock_threshold:
            out.low_stock_items += 1
        out.total_stock_value += _stock_value(p)
    return out


# ---------- reports ---------- #

class ProfitAndLoss(BaseModel):
    revenue: float = 0.0
    expenses: float = 0.0

    @property
    def profit(self) -> float:
        return self.revenue - self.expenses


class PartyTotal(BaseModel):
    name: str
    documents: int = 0
    total: float = 0.0


class ItemTotal(BaseModel):
    name: str
    quantity: float = 0.0
    total: float = 0.0  # taxable value, qty * unit price


def profit_and_loss(invoices: Iterable[InvoiceRecord], purchases: Iterable[PurchaseRecord]) -> ProfitAndLoss:
    # revenue counts only money actually collected
    return ProfitAndLoss(
        revenue=sum(i.total_amount for i in invoices if i.status == "PAID"),
        expenses=sum(p.total_amount for p in purchases),
    )


def _by_party(pairs) -> List[PartyTotal]:
    rows = {}
    for name, amount in pairs:
        row = rows.setdefault(name, PartyTotal(name=name))
        row.documents += 1
        row.total += amount
    return list(rows.values())


def sales_by_client(invoices: Iterable[InvoiceRecord]) -> List[PartyTotal]:
    return _by_party((i.client.name, i.total_amount) for i in invoices)


def purchases_by_vendor(purchases: Iterable[PurchaseRecord]) -> List[PartyTotal]:
    return _by_party((p.vendor.name, p.total_amount) for p in purchases)


def _by_item(records) -> List[ItemTotal]:
    rows = {}
    for rec in records:
        for it in rec.items:
            if not it.is_billable():
                continue
            row = rows.setdefault(it.description, ItemTotal(name=it.description))
            row.quantity += it.quantity
            row.total += it.quantity * it.unit_price
    return list(rows.values())


def sales_by_item(invoices: Iterable[InvoiceRecord]) -> List[ItemTotal]:
    return _by_item(invoices)


def purchases_by_item(purchases: Iterable[PurchaseRecord]) -> List[ItemTotal]:
    return _by_item(purchases)


def stock_summary(products: Iterable[Product]) -> List[List]:
    return [
        [p.name, p.stock, _stock_value(p), stock_status(p)]
        for p in products if p.track_stock
    ]


# ---------- export ---------- #

def write_csv(path: Union[str, Path], headers: Sequence[str], rows: Iterable[Sequence]) -> Path:
    p = Path(path)
    p.parent.mkdir(parents=True, exist_ok=True)
    with p.open("w", encoding="utf-8", newline="") as f:
        w = csv.writer(f, quoting=csv.QUOTE_ALL, lineterminator="\r\n")
        w.writerow(headers)
        for r in rows:
            w.writerow(r)
    return p


def rate_summary_rows(rows: Iterable[RateSummary]) -> List[List[str]]:
    return [
        [f"{r.rate:g}", f"{r.taxable_amount:.2f}", f"{r.cgst:.2f}", f"{r.sgst:.2f}", f"{r.igst:.2f}",
         f"{r.cgst + r.sgst + r.igst:.2f}"]
        for r in rows
    ]

RATE_SUMMARY_HEADERS = ["GST Rate (%)", "Taxable Value", "CGST", "SGST", "IGST", "Total Tax"]
