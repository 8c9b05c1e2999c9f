from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Dict, List, Optional
from datetime import date
from .common import gen_id, PriceType, TransactionType
from .calculation import CalculationResult
from .item import LineItem
from .party import BusinessDetails, ClientDetails

class QuotationRecord(BaseModel):
    id: str = Field(default_factory=gen_id)
    quotation_number: str
    client: ClientDetails
    business: BusinessDetails
    items: List[LineItem] = Field(default_factory=list)
    issue_date: date = Field(default_factory=date.today)
    total_amount: float = 0.0
    calculation_result: CalculationResult = Field(default_factory=CalculationResult)
    transaction_type: TransactionType = "INTRA_STATE"
    price_type: PriceType = "EXCLUSIVE"
    custom_field_values: Optional[Dict[str, str]] = None

    class Config:
        extra = "ignore"  # tolerate legacy keys in stored JSON
