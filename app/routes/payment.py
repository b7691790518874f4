"""
Payment processing routes – backend-only. Lets an operator redeliver a
payment-created event when the change stream missed it. Payout amounts
and gateway metadata are never returned.
"""
from fastapi import APIRouter, HTTPException, status
from typing import Any, Dict

from app.config.database import Collections
from app.database.db_operations import db_ops
from app.models.payment import PaymentCreatedEvent, ProcessPaymentResponse
from app.models.payout import payout_key
from app.services.commission_service import on_payment_created
from app.utils.helpers import serialize_doc

router = APIRouter(prefix="/bookings", tags=["Payments"])

# Gateway payloads stay backend-only
CLIENT_HIDDEN_FIELDS = {"gatewayMeta"}


@router.post(
    "/{booking_id}/payments/{payment_id}/process",
    response_model=ProcessPaymentResponse,
)
async def process_payment(booking_id: str, payment_id: str):
    """Run the payout flow for one existing payment; safe to repeat"""
    payment: Dict[str, Any] = await db_ops.get_by_key(Collections.PAYMENTS, payment_id)
    if not payment or str(payment.get("bookingId") or "") != booking_id:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND, detail="Payment not found")

    event = PaymentCreatedEvent(booking_id=booking_id, payment_id=payment_id, data=payment)
    outcome = await on_payment_created(event)
    return {
        "payoutId": payout_key(booking_id, payment_id),
        "outcome": outcome.value,
        "payment": serialize_doc(
            {key: value for key, value in payment.items() if key not in CLIENT_HIDDEN_FIELDS}
        ),
    }
