"""
Payment models – the snapshot of a payment document as it was created
under a booking, and the event that announces it.
"""
from pydantic import BaseModel, Field, field_validator
from typing import Optional, Dict, Any

from app.config.settings import settings


def _scalar(v: Any, field: str) -> Any:
    if isinstance(v, (dict, list)):
        raise ValueError(f"{field} must be a scalar, got {type(v).__name__}")
    return v


class PaymentRecord(BaseModel):
    """Fields of a created payment document that the payout flow reads"""
    status: str = ""
    # Raw value; whether it is a usable amount is decided by the processor
    amount: Any = None
    currency: str = settings.DEFAULT_CURRENCY
    method: str = settings.DEFAULT_PAYMENT_METHOD
    gateway_meta: Optional[Any] = Field(None, alias="gatewayMeta")

    class Config:
        populate_by_name = True
        extra = "ignore"

    @field_validator('status', mode='before')
    @classmethod
    def coerce_status(cls, v):
        v = _scalar(v, "status")
        return "" if v is None else str(v)

    @field_validator('currency', mode='before')
    @classmethod
    def coerce_currency(cls, v):
        v = _scalar(v, "currency")
        return str(v) if v else settings.DEFAULT_CURRENCY

    @field_validator('method', mode='before')
    @classmethod
    def coerce_method(cls, v):
        v = _scalar(v, "method")
        return str(v) if v else settings.DEFAULT_PAYMENT_METHOD


class PaymentCreatedEvent(BaseModel):
    """
    Creation of a payment document at bookings/{booking_id}/payments/{payment_id}.
    `data` is the created document, or None when the event carried no snapshot.
    """
    booking_id: str
    payment_id: str
    data: Optional[Dict[str, Any]] = None

    @classmethod
    def from_change(cls, change: Dict[str, Any]) -> "PaymentCreatedEvent":
        """Build the event from a MongoDB change-stream insert on the payments collection"""
        document = change.get("fullDocument")
        payment_id = str(change.get("documentKey", {}).get("_id", ""))
        booking_id = str((document or {}).get("bookingId") or "")
        return cls(booking_id=booking_id, payment_id=payment_id, data=document)

    def payment(self) -> PaymentRecord:
        """Validated payment snapshot; raises pydantic.ValidationError on a malformed payload"""
        return PaymentRecord.model_validate(self.data)


class ProcessPaymentResponse(BaseModel):
    payout_id: str = Field(alias="payoutId")
    outcome: str
    # Stored payment without gateway metadata
    payment: Dict[str, Any]

    class Config:
        populate_by_name = True
