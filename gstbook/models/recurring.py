from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Literal, Optional
from datetime import date
from .common import gen_id, PriceType, TransactionType
from .item import LineItem
from .party import ClientDetails

BillingFrequency = Literal["MONTHLY", "QUARTERLY", "YEARLY"]
ProfileStatus = Literal["ACTIVE", "PAUSED"]


class RecurringProfile(BaseModel):
    id: str = Field(default_factory=gen_id)
    client: ClientDetails
    items: List[LineItem] = Field(default_factory=list)  # template, copied per cycle
    frequency: BillingFrequency = "MONTHLY"
    start_date: date
    end_date: Optional[date] = None
    last_generated_date: Optional[date] = None
    next_due_date: date
    status: ProfileStatus = "ACTIVE"
    price_type: PriceType = "EXCLUSIVE"
    transaction_type: TransactionType = "INTRA_STATE"
