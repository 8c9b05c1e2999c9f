from __future__ import annotations
from typing import Literal
import uuid

PriceType = Literal["EXCLUSIVE", "INCLUSIVE"]
TransactionType = Literal["INTRA_STATE", "INTER_STATE"]
PaymentStatus = Literal["UNPAID", "PAID"]
ReconciliationStatus = Literal["UNRECONCILED", "RECONCILED"]

def gen_id() -> str:
    return str(uuid.uuid4())
