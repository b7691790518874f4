"""
Payout model – the immutable, backend-only ledger entry written once per
successful payment. Nothing here is exposed to client-facing reads.
"""
from dataclasses import dataclass
from decimal import Decimal
from pydantic import BaseModel, Field
from typing import Optional, Any, Dict
from datetime import datetime


def payout_key(booking_id: str, payment_id: str) -> str:
    """Deterministic payout document key for one payment"""
    return f"{booking_id}_{payment_id}"


@dataclass(frozen=True)
class CommissionSplit:
    """Result of splitting one payment between developer and provider"""
    amount: Decimal
    commission_rate: Decimal
    developer_commission: Decimal
    provider_amount: Decimal


class Payout(BaseModel):
    booking_id: str = Field(..., alias="bookingId")
    payment_id: str = Field(..., alias="paymentId")

    # Parties, copied from the booking
    provider_id: str = Field("", alias="providerId")
    customer_id: str = Field("", alias="customerId")

    # Amounts
    amount: float = Field(..., gt=0)
    currency: str
    method: str
    commission_rate: float = Field(..., alias="commissionRate")
    developer_commission: float = Field(..., ge=0, alias="developerCommission")
    provider_amount: float = Field(..., ge=0, alias="providerAmount")
    developer_account_id: str = Field(..., alias="developerAccountId")

    created_at: datetime = Field(..., alias="createdAt")
    # Optional trace data from the payment gateway
    gateway_meta: Optional[Any] = Field(None, alias="gatewayMeta")

    class Config:
        populate_by_name = True

    @classmethod
    def from_split(
        cls,
        booking_id: str,
        payment_id: str,
        split: CommissionSplit,
        **fields: Any,
    ) -> "Payout":
        return cls(
            booking_id=booking_id,
            payment_id=payment_id,
            amount=float(split.amount),
            commission_rate=float(split.commission_rate),
            developer_commission=float(split.developer_commission),
            provider_amount=float(split.provider_amount),
            **fields,
        )

    @property
    def key(self) -> str:
        return payout_key(self.booking_id, self.payment_id)

    def to_document(self) -> Dict[str, Any]:
        """Stored field names are the camelCase ones the apps already read"""
        return self.model_dump(by_alias=True)
