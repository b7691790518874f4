"""
Booking model
Only the fields the payout flow reads; the booking itself is owned by
the booking-management side.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Any


class BookingStatus:
    UNPAID = "unpaid"
    PAID = "paid"


class Booking(BaseModel):
    id: str = Field(alias="_id")
    provider_id: str = Field("", alias="providerId")
    customer_id: str = Field("", alias="customerId")
    status: str = ""
    payment_confirmed: bool = Field(False, alias="paymentConfirmed")

    class Config:
        populate_by_name = True
        extra = "allow"

    @field_validator('id', 'provider_id', 'customer_id', 'status', mode='before')
    @classmethod
    def as_string(cls, v: Any) -> str:
        if isinstance(v, (dict, list)):
            raise ValueError(f"expected a scalar, got {type(v).__name__}")
        return "" if v is None else str(v)

    @field_validator('payment_confirmed', mode='before')
    @classmethod
    def as_bool(cls, v: Any) -> bool:
        return bool(v)

    @property
    def is_paid(self) -> bool:
        return self.status == BookingStatus.PAID
