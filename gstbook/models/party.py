from pydantic import BaseModel, EmailStr, Field
from .common import gen_id

class BusinessDetails(BaseModel):
    name: str = ""
    gstin: str = ""
    address: str = ""
    logo: str | None = None  # data URL or path
    terms: str = ""
    bank_details: str = ""

class ClientDetails(BaseModel):
    id: str = Field(default_factory=gen_id)
    name: str = ""
    gstin: str = ""
    address: str = ""
    email: EmailStr | None = None

class Vendor(BaseModel):
    id: str = Field(default_factory=gen_id)
    name: str = ""
    gstin: str = ""
    address: str = ""
    email: EmailStr | None = None
