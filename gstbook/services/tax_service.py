"""
GST arithmetic.

Amounts are plain floats and are never rounded here: two-decimal formatting is
left to whoever displays or prints the figures.
"""
from __future__ import annotations

from typing import Dict, Iterable, List, Tuple

from gstbook.models.calculation import CalculationResult, GstBreakdownDetail, TaxHeads
from gstbook.models.common import PriceType, TransactionType
from gstbook.models.item import LineItem


def item_amounts(item: LineItem, price_type: PriceType) -> Tuple[float, float]:
    """(net, tax) of one line. Inert lines give (0.0, 0.0)."""
    if not item.is_billable():
        return 0.0, 0.0
    rate = item.gst_rate or 0
    if price_type == "INCLUSIVE":
        total = item.quantity * item.unit_price
        net = total / (1 + rate / 100)
        return net, total - net
    net = item.quantity * item.unit_price
    return net, net * (rate / 100)


def calculate(items: Iterable[LineItem], price_type: PriceType) -> CalculationResult:
    """
    Net amount, tax per rate and grand total of a list of line items.

    Lines with a NaN or non-positive quantity/price are silently skipped so a
    half-filled row never blocks the rest of the document. Breakdown entries
    are unique per rate, in the order each rate is first met.
    """
    total_net = 0.0
    total_gst = 0.0
    by_rate: Dict[float, GstBreakdownDetail] = {}

    for item in items:
        if not item.is_billable():
            continue
        net, tax = item_amounts(item, price_type)
        total_net += net
        total_gst += tax

        rate = item.gst_rate or 0
        entry = by_rate.get(rate)
        if entry is None:
            entry = by_rate[rate] = GstBreakdownDetail(rate=rate)
        entry.taxable_amount += net
        entry.gst_amount += tax

    return CalculationResult(
        total_net_amount=total_net,
        total_gst_amount=total_gst,
        grand_total=total_net + total_gst,
        gst_breakdown=list(by_rate.values()),
    )


def split_tax_heads(entry: GstBreakdownDetail, transaction_type: TransactionType) -> TaxHeads:
    # intra-state: half central, half state. inter-state: all integrated.
    if transaction_type == "INTER_STATE":
        return TaxHeads(igst=entry.gst_amount)
    half = entry.gst_amount / 2
    return TaxHeads(cgst=half, sgst=half)


class RateSummary(GstBreakdownDetail):
    cgst: float = 0.0
    sgst: float = 0.0
    igst: float = 0.0


def summarize_by_rate(records: Iterable) -> List[RateSummary]:
    """
    Fold the breakdowns of many invoices/purchases into one row per rate with
    taxable value and the three tax heads. Each record's own transaction type
    decides its split.
    """
    rows: Dict[float, RateSummary] = {}
    for rec in records:
        for bd in rec.calculation_result.gst_breakdown:
            heads = split_tax_heads(bd, rec.transaction_type)
            row = rows.get(bd.rate)
            if row is None:
                row = rows[bd.rate] = RateSummary(rate=bd.rate)
            row.taxable_amount += bd.taxable_amount
            row.gst_amount += bd.gst_amount
            row.cgst += heads.cgst
            row.sgst += heads.sgst
            row.igst += heads.igst
    return list(rows.values())


def total_tax_heads(records: Iterable) -> TaxHeads:
    out = TaxHeads()
    for row in summarize_by_rate(records):
        out.cgst += row.cgst
        out.sgst += row.sgst
        out.igst += row.igst
    return out
