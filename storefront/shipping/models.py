from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

class CourierOption(BaseModel):
    courier_company_id: Optional[str] = None
    courier_name: str = ""
    freight_charge: float = 0.0
    cod_charges: float = 0.0
    etd: Optional[str] = None
    rating: Optional[float] = None

    @field_validator("courier_company_id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if v is not None else v

    @field_validator("freight_charge", "cod_charges", mode="before")
    @classmethod
    def _amount_default(cls, v):
        return 0.0 if v in (None, "") else v

    def total_charge(self, is_cod: bool = False) -> float:
        return self.freight_charge + (self.cod_charges if is_cod else 0.0)

class TrackingEvent(BaseModel):
    status: str = ""
    activity: Optional[str] = None
    location: Optional[str] = None
    date: Optional[str] = None

class Shipment(BaseModel):
    shipment_id: Optional[str] = None
    awb_code: Optional[str] = None
    courier_name: Optional[str] = None
    status: str = "pending"
    tracking_history: List[TrackingEvent] = Field(default_factory=list)

    @field_validator("shipment_id", mode="before")
    @classmethod
    def _id_as_str(cls, v):
        return str(v) if v is not None else v

    @field_validator("status", mode="before")
    @classmethod
    def _status_default(cls, v):
        return v or "pending"
