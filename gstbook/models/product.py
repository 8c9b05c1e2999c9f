from __future__ import annotations
import math
from pydantic import BaseModel, Field, field_validator
from .common import gen_id


class Product(BaseModel):
  id: str = Field(default_factory=gen_id)
  name: str
  hsn: str = ""
  price: float = math.nan
  gst_rate: float = 18
  track_stock: bool = False
  stock: float = 0  # may go negative, never clamped
  low_stock_threshold: float = 0

  @field_validator("price", mode="before")
  @classmethod
  def _blank_price(cls, v):
    # stored NaN comes back as null
    return math.nan if v is None or v == "" else v
