from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Optional
from datetime import date, datetime
from .common import gen_id, PaymentStatus, PriceType, ReconciliationStatus, TransactionType
from .calculation import CalculationResult
from .item import LineItem
from .party import Vendor

class PurchaseRecord(BaseModel):
    id: str = Field(default_factory=gen_id)
    bill_number: str
    vendor: Vendor
    items: List[LineItem] = Field(default_factory=list)
    issue_date: date = Field(default_factory=date.today)
    total_amount: float = 0.0
    calculation_result: CalculationResult = Field(default_factory=CalculationResult)
    transaction_type: TransactionType = "INTRA_STATE"
    price_type: PriceType = "EXCLUSIVE"
    status: PaymentStatus = "UNPAID"

    reconciliation_status: Optional[ReconciliationStatus] = None
    reconciled_date: Optional[datetime] = None
