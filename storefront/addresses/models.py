from typing import Literal, Optional

from pydantic import BaseModel, field_validator

SHIPPING = "shipping"
BILLING = "billing"
AddressType = Literal["shipping", "billing"]

class Address(BaseModel):
    id: str
    street_address: str
    apartment: Optional[str] = None
    city: str
    state: str
    postal_code: str
    country: str = "India"
    address_type: AddressType = SHIPPING
    is_default: bool = False

    @field_validator("id", "postal_code", mode="before")
    @classmethod
    def _as_str(cls, v):
        return str(v) if v is not None else v
