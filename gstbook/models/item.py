from __future__ import annotations
import math
from pydantic import BaseModel, Field, field_validator
from .common import gen_id

GST_RATES = (0, 5, 12, 18, 28)


class LineItem(BaseModel):
    id: str = Field(default_factory=gen_id)
    description: str = ""
    hsn: str = ""  # HSN/SAC, opaque
    quantity: float = 1.0
    unit_price: float = math.nan
    gst_rate: float = 18

    @field_validator("quantity", "unit_price", mode="before")
    @classmethod
    def _blank_is_nan(cls, v):
        # an empty form cell means "unset", not zero
        if v is None or (isinstance(v, str) and not v.strip()):
            return math.nan
        return v

    def is_billable(self) -> bool:
        """False for work-in-progress rows (NaN or non-positive qty/price)."""
        return self.quantity > 0 and self.unit_price > 0
