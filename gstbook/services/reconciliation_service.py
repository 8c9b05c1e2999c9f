from __future__ import annotations

import logging
from datetime import date, datetime
from typing import Iterable, List, Optional, Tuple, Union

from pydantic import BaseModel, Field

from gstbook.models.banking import BankTransaction
from gstbook.models.calculation import CalculationResult, GstBreakdownDetail
from gstbook.models.invoice import InvoiceRecord
from gstbook.models.item import LineItem
from gstbook.models.party import Vendor
from gstbook.models.purchase import PurchaseRecord

log = logging.getLogger(__name__)

AMOUNT_TOLERANCE = 0.01


class MatchCandidates(BaseModel):
    invoices: List[InvoiceRecord] = Field(default_factory=list)
    purchases: List[PurchaseRecord] = Field(default_factory=list)

    def is_empty(self) -> bool:
        return not self.invoices and not self.purchases


def _same_amount(a: float, b: float) -> bool:
    return abs(a - b) < AMOUNT_TOLERANCE


def _check_open(tx: BankTransaction, record_status: str, label: str) -> None:
    if tx.status == "RECONCILED":
        raise ValueError(f"Bank line {tx.id} is already reconciled")
    if record_status != "UNPAID":
        raise ValueError(f"{label} is already {record_status}")


def find_matches(
    tx: BankTransaction,
    invoices: Iterable[InvoiceRecord],
    purchases: Iterable[PurchaseRecord],
) -> MatchCandidates:
    """
    Open records a bank line could settle: money in (CREDIT) against UNPAID
    invoices, money out (DEBIT) against UNPAID purchases, amount within a cent.
    An empty result is normal.
    """
    if tx.type == "CREDIT":
        return MatchCandidates(
            invoices=[i for i in invoices if i.status == "UNPAID" and _same_amount(i.total_amount, tx.amount)]
        )
    return MatchCandidates(
        purchases=[p for p in purchases if p.status == "UNPAID" and _same_amount(p.total_amount, tx.amount)]
    )


def unreconciled(transactions: Iterable[BankTransaction]) -> List[BankTransaction]:
    """Open bank lines, oldest first."""
    return sorted((t for t in transactions if t.status == "UNRECONCILED"), key=lambda t: t.date)


def reconcile_invoice(
    tx: BankTransaction, invoice: InvoiceRecord, now: Optional[datetime] = None
) -> Tuple[BankTransaction, InvoiceRecord]:
    if tx.type != "CREDIT":
        raise ValueError("Only a CREDIT transaction can settle an invoice")
    _check_open(tx, invoice.status, f"Invoice {invoice.invoice_number}")
    now = now or datetime.now()
    tx2 = tx.model_copy(update={"status": "RECONCILED"})
    inv2 = invoice.model_copy(update={
        "status": "PAID",
        "payment_date": now,
        "reconciliation_status": "RECONCILED",
        "reconciled_date": now,
    })
    log.info("Reconciled bank line %s with invoice %s", tx.id, invoice.invoice_number)
    return tx2, inv2


def reconcile_purchase(
    tx: BankTransaction, purchase: PurchaseRecord, now: Optional[datetime] = None
) -> Tuple[BankTransaction, PurchaseRecord]:
    if tx.type != "DEBIT":
        raise ValueError("Only a DEBIT transaction can settle a purchase")
    _check_open(tx, purchase.status, f"Bill {purchase.bill_number}")
    now = now or datetime.now()
    tx2 = tx.model_copy(update={"status": "RECONCILED"})
    pur2 = purchase.model_copy(update={
        "status": "PAID",
        "reconciliation_status": "RECONCILED",
        "reconciled_date": now,
    })
    log.info("Reconciled bank line %s with bill %s", tx.id, purchase.bill_number)
    return tx2, pur2


def create_expense_from_transaction(
    tx: BankTransaction,
    vendor: Vendor,
    description: str,
    now: Union[datetime, None] = None,
) -> Tuple[BankTransaction, PurchaseRecord]:
    """
    Book an unmatched DEBIT as a zero-tax expense, already paid and reconciled.
    Both sides come back together so the caller stores them in one step.
    """
    if tx.type != "DEBIT":
        raise ValueError("Only a DEBIT transaction can become an expense")
    if tx.status == "RECONCILED":
        raise ValueError(f"Bank line {tx.id} is already reconciled")
    if not description:
        raise ValueError("An expense needs a description")
    now = now or datetime.now()
    today: date = now.date()
    purchase = PurchaseRecord(
        bill_number=f"EXP-{today.isoformat()}",
        vendor=vendor.model_copy(deep=True),
        issue_date=tx.date,
        items=[LineItem(description=description, hsn="N/A", quantity=1, unit_price=tx.amount, gst_rate=0)],
        total_amount=tx.amount,
        price_type="EXCLUSIVE",
        transaction_type="INTRA_STATE",
        calculation_result=CalculationResult(
            total_net_amount=tx.amount,
            total_gst_amount=0.0,
            grand_total=tx.amount,
            gst_breakdown=[GstBreakdownDetail(rate=0, taxable_amount=tx.amount, gst_amount=0.0)],
        ),
        status="PAID",
        reconciliation_status="RECONCILED",
        reconciled_date=now,
    )
    tx2 = tx.model_copy(update={"status": "RECONCILED"})
    log.info("Booked bank line %s as expense %s", tx.id, purchase.bill_number)
    return tx2, purchase
