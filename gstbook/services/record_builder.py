from __future__ import annotations

from datetime import date
from typing import Dict, Iterable, List, Optional, Tuple
from uuid import uuid4

from gstbook.models.calculation import CalculationResult
from gstbook.models.common import PriceType, TransactionType, gen_id
from gstbook.models.invoice import InvoiceRecord, LogisticsDetails
from gstbook.models.item import LineItem
from gstbook.models.party import BusinessDetails, ClientDetails, Vendor
from gstbook.models.purchase import PurchaseRecord
from gstbook.models.quote import QuotationRecord
from gstbook.models.settings import AppSettings


INVOICE_PREFIX = "INV"
QUOTATION_PREFIX = "QTN"
PAYMENT_LINK_BASE = "https://rzp.io/i/"


def format_number(prefix: str, seq: int) -> str:
    return f"{prefix}-{seq:03d}"


def make_payment_link(settings: Optional[AppSettings]) -> Optional[str]:
    # placeholder only, no gateway is called
    if settings is None or not settings.payment_gateway_configured():
        return None
    return PAYMENT_LINK_BASE + str(uuid4())[:14]


def snapshot_items(items: Iterable[LineItem], *, fresh_ids: bool = False) -> List[LineItem]:
    out = []
    for it in items:
        cp = it.model_copy(deep=True)
        if fresh_ids:
            cp.id = gen_id()
        out.append(cp)
    return out


def build_invoice(
    items: Iterable[LineItem],
    client: ClientDetails,
    business: BusinessDetails,
    price_type: PriceType,
    transaction_type: TransactionType,
    calc_result: CalculationResult,
    counter: int,
    *,
    issue_date: Optional[date] = None,
    payment_link: Optional[str] = None,
    logistics: Optional[LogisticsDetails] = None,
    custom_field_values: Optional[Dict[str, str]] = None,
    fresh_item_ids: bool = False,
) -> Tuple[InvoiceRecord, int]:
    """
    Freeze a calculation into an UNPAID invoice record.

    Returns the record and the counter value to persist (counter + 1).
    Client, business and items are copied so later edits to the address book
    or catalog never rewrite history.
    """
    seq = counter + 1
    record = InvoiceRecord(
        invoice_number=format_number(INVOICE_PREFIX, seq),
        client=client.model_copy(deep=True),
        business=business.model_copy(deep=True),
        items=snapshot_items(items, fresh_ids=fresh_item_ids),
        issue_date=issue_date or date.today(),
        total_amount=calc_result.grand_total,
        calculation_result=calc_result.model_copy(deep=True),
        transaction_type=transaction_type,
        price_type=price_type,
        status="UNPAID",
        payment_link=payment_link,
        logistics=logistics.model_copy() if logistics else None,
        custom_field_values=dict(custom_field_values) if custom_field_values else None,
    )
    return record, seq


def build_quotation(
    items: Iterable[LineItem],
    client: ClientDetails,
    business: BusinessDetails,
    price_type: PriceType,
    transaction_type: TransactionType,
    calc_result: CalculationResult,
    counter: int,
    *,
    issue_date: Optional[date] = None,
    custom_field_values: Optional[Dict[str, str]] = None,
) -> Tuple[QuotationRecord, int]:
    seq = counter + 1
    record = QuotationRecord(
        quotation_number=format_number(QUOTATION_PREFIX, seq),
        client=client.model_copy(deep=True),
        business=business.model_copy(deep=True),
        items=snapshot_items(items),
        issue_date=issue_date or date.today(),
        total_amount=calc_result.grand_total,
        calculation_result=calc_result.model_copy(deep=True),
        transaction_type=transaction_type,
        price_type=price_type,
        custom_field_values=dict(custom_field_values) if custom_field_values else None,
    )
    return record, seq


def build_purchase(
    items: Iterable[LineItem],
    vendor: Vendor,
    bill_number: str,
    price_type: PriceType,
    transaction_type: TransactionType,
    calc_result: CalculationResult,
    *,
    bill_date: Optional[date] = None,
) -> PurchaseRecord:
    if not bill_number:
        raise ValueError("bill_number is required")
    return PurchaseRecord(
        bill_number=bill_number,
        vendor=vendor.model_copy(deep=True),
        items=snapshot_items(items),
        issue_date=bill_date or date.today(),
        total_amount=calc_result.grand_total,
        calculation_result=calc_result.model_copy(deep=True),
        transaction_type=transaction_type,
        price_type=price_type,
        status="UNPAID",
    )
