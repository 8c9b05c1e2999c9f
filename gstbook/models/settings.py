from __future__ import annotations
from pydantic import BaseModel, Field
from typing import List, Literal

Template = Literal["CLASSIC", "MODERN"]

CURRENCY_SYMBOLS = {"INR": "₹", "USD": "$", "EUR": "€", "GBP": "£"}


class CustomField(BaseModel):
    id: Literal["customField1", "customField2"]
    label: str
    enabled: bool = False


def _default_custom_fields() -> List[CustomField]:
    return [
        CustomField(id="customField1", label="PO Number"),
        CustomField(id="customField2", label="Project Code"),
    ]


class AppSettings(BaseModel):
    currency_code: str = "INR"
    razorpay_key_id: str = ""
    razorpay_key_secret: str = ""
    template: Template = "CLASSIC"
    accent_color: str = "#4F46E5"
    custom_fields: List[CustomField] = Field(default_factory=_default_custom_fields)

    class Config:
        extra = "ignore"

    @property
    def currency_symbol(self) -> str:
        return CURRENCY_SYMBOLS.get(self.currency_code, "₹")

    def payment_gateway_configured(self) -> bool:
        return bool(self.razorpay_key_id and self.razorpay_key_secret)
