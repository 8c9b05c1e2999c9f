from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date, datetime
from .common import gen_id, PaymentStatus, PriceType, ReconciliationStatus, TransactionType
from .calculation import CalculationResult
from .item import LineItem
from .party import BusinessDetails, ClientDetails


class LogisticsDetails(BaseModel):
    transporter_name: str = ""
    transporter_id: str = ""
    vehicle_number: str = ""
    eway_bill_number: str = ""


class InvoiceRecord(BaseModel):
    id: str = Field(default_factory=gen_id)
    invoice_number: str
    client: ClientDetails
    business: BusinessDetails
    items: List[LineItem] = Field(default_factory=list)
    issue_date: date = Field(default_factory=date.today)
    total_amount: float = 0.0
    calculation_result: CalculationResult = Field(default_factory=CalculationResult)
    transaction_type: TransactionType = "INTRA_STATE"
    price_type: PriceType = "EXCLUSIVE"
    status: PaymentStatus = "UNPAID"

    payment_date: Optional[datetime] = None
    payment_link: Optional[str] = None
    logistics: Optional[LogisticsDetails] = None
    custom_field_values: Optional[Dict[str, str]] = None

    reconciliation_status: Optional[ReconciliationStatus] = None
    reconciled_date: Optional[datetime] = None

    class Config:
        extra = "ignore"
