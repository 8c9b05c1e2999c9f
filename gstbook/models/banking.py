from __future__ import annotations
from pydantic import BaseModel, Field
from typing import Literal
import datetime as dt
from .common import gen_id, ReconciliationStatus

BankTransactionType = Literal["CREDIT", "DEBIT"]

class BankTransaction(BaseModel):
    id: str = Field(default_factory=gen_id)
    date: dt.date
    description: str
    amount: float  # always positive, direction is in `type`
    type: BankTransactionType
    status: ReconciliationStatus = "UNRECONCILED"
