"""
Commission Service – reacts to every payment created under a booking,
splits it between the developer and the provider, and writes the payout
ledger entry exactly once. Fully server-side; nothing is exposed to the
booking frontend.

Every anomaly in the payment or booking data is logged and treated as
terminal for that event. Only datastore failures propagate, so the
delivering side can redeliver the event.
"""
import enum
import logging
import math
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP
from typing import Any, Dict, Optional

from bson.decimal128 import Decimal128
from pydantic import ValidationError
from pymongo.errors import DuplicateKeyError

from app.config.database import db_config, Collections
from app.config.settings import settings
from app.database.db_operations import db_ops
from app.models.booking import Booking, BookingStatus
from app.models.payment import PaymentCreatedEvent
from app.models.payout import CommissionSplit, Payout, payout_key
from app.utils.helpers import utcnow

logger = logging.getLogger(__name__)

SUCCESS_STATUS = "success"
CENT = Decimal("0.01")
COMMISSION_RATE = Decimal(str(settings.COMMISSION_RATE))


class ProcessingOutcome(str, enum.Enum):
    CREATED = "created"
    NO_DATA = "no_data"
    NOT_SUCCESSFUL = "not_successful"
    ALREADY_PROCESSED = "already_processed"
    INVALID_AMOUNT = "invalid_amount"
    BOOKING_NOT_FOUND = "booking_not_found"
    MALFORMED = "malformed"


# ─── Calculation helpers ──────────────────────────────────────────────────────

def round_money(value: Decimal) -> Decimal:
    """Round to the currency's minor unit, halves away from zero."""
    return value.quantize(CENT, rounding=ROUND_HALF_UP)


def parse_amount(raw: Any) -> Optional[Decimal]:
    """
    Interpret a stored payment amount. Returns None unless it is a finite,
    strictly positive number. Numeric strings are accepted.
    """
    if raw is None or isinstance(raw, bool):
        return None
    if isinstance(raw, Decimal128):
        raw = raw.to_decimal()
    try:
        if isinstance(raw, Decimal):
            value = raw
        elif isinstance(raw, (int, float)):
            if not math.isfinite(raw):
                return None
            value = Decimal(repr(raw)) if isinstance(raw, float) else Decimal(raw)
        elif isinstance(raw, str):
            number = float(raw.strip())
            if not math.isfinite(number):
                return None
            value = Decimal(raw.strip())
        else:
            return None
    except (ValueError, InvalidOperation):
        return None

    if not value.is_finite() or value <= 0:
        return None
    try:
        # Sub-cent amounts round to nothing; huge ones overflow the context
        if round_money(value) <= 0:
            return None
    except InvalidOperation:
        return None
    return value


def compute_split(amount: Decimal, rate: Decimal = COMMISSION_RATE) -> CommissionSplit:
    """
    Split `amount` into developer commission and provider share.

    Order matters: the amount is rounded first, the commission is rounded
    from it, and the provider share is the difference of the two rounded
    values, so the shares always add up to the rounded amount.
    """
    amount = round_money(amount)
    developer_commission = round_money(amount * rate)
    provider_amount = round_money(amount - developer_commission)
    return CommissionSplit(
        amount=amount,
        commission_rate=rate,
        developer_commission=developer_commission,
        provider_amount=provider_amount,
    )


# ─── Booking transition ───────────────────────────────────────────────────────

async def _mark_booking_paid(booking: Booking, now) -> None:
    """Best effort: the payout is already written and stays authoritative."""
    if booking.is_paid:
        return
    try:
        await db_ops.update_fields(
            Collections.BOOKINGS,
            booking.id,
            {
                "status": BookingStatus.PAID,
                "paymentConfirmed": True,
                "paymentConfirmedAt": now,
                "updatedAt": now,
                "realTimePayment": True,
            },
            guard={"status": {"$ne": BookingStatus.PAID}},
        )
    except Exception as exc:
        logger.warning("⚠️  Booking status update skipped/failed for %s: %s", booking.id, exc)


# ─── Main entry-point ─────────────────────────────────────────────────────────

async def on_payment_created(event: PaymentCreatedEvent) -> ProcessingOutcome:
    """
    Called once per payment document created under a booking (possibly more
    than once for the same payment). Writes at most one payout per payment.
    """
    if not event.data:
        return ProcessingOutcome.NO_DATA

    payout_id = payout_key(event.booking_id, event.payment_id)
    try:
        payment = event.payment()
    except ValidationError as exc:
        logger.warning("Malformed payment payload for %s: %s", payout_id, exc)
        return ProcessingOutcome.MALFORMED

    # Only successful payments earn a payout
    if payment.status != SUCCESS_STATUS:
        return ProcessingOutcome.NOT_SUCCESSFUL

    # Skip redeliveries early; create_once below is the real guard
    if await db_ops.exists(Collections.PAYOUTS, payout_id):
        return ProcessingOutcome.ALREADY_PROCESSED

    amount = parse_amount(payment.amount)
    if amount is None:
        logger.warning("Invalid payment amount for %s: %r", payout_id, payment.amount)
        return ProcessingOutcome.INVALID_AMOUNT

    split = compute_split(amount)

    # Load booking to get parties
    booking_doc = await db_ops.get_by_key(Collections.BOOKINGS, event.booking_id)
    if not booking_doc:
        logger.error("❌ Booking not found for payout: %s", event.booking_id)
        return ProcessingOutcome.BOOKING_NOT_FOUND
    try:
        booking = Booking.model_validate(booking_doc)
    except ValidationError as exc:
        logger.warning("Malformed booking %s for payout %s: %s", event.booking_id, payout_id, exc)
        return ProcessingOutcome.MALFORMED

    now = utcnow()
    payout = Payout.from_split(
        event.booking_id,
        event.payment_id,
        split,
        provider_id=booking.provider_id,
        customer_id=booking.customer_id,
        currency=payment.currency,
        method=payment.method,
        developer_account_id=settings.developer_account_id,
        created_at=now,
        gateway_meta=payment.gateway_meta,
    )

    try:
        await db_ops.create_once(Collections.PAYOUTS, payout.key, payout.to_document())
    except DuplicateKeyError:
        logger.info("Payout %s already written by a concurrent delivery", payout_id)
        return ProcessingOutcome.ALREADY_PROCESSED

    logger.info(
        "💰 Payout %s created: amount=%s developer=%s provider=%s %s",
        payout_id,
        split.amount,
        split.developer_commission,
        split.provider_amount,
        payout.currency,
    )

    await _mark_booking_paid(booking, now)
    return ProcessingOutcome.CREATED


async def reprocess_payments(booking_id: Optional[str] = None) -> Dict[str, int]:
    """
    Run every successful payment (optionally of one booking) through
    on_payment_created again. Payments that already have a payout are
    skipped by the handler itself. Returns a count per outcome.
    """
    query: Dict[str, Any] = {"status": SUCCESS_STATUS}
    if booking_id:
        query["bookingId"] = booking_id

    counts: Dict[str, int] = {}
    payments = db_config.get_collection(Collections.PAYMENTS)
    async for payment in payments.find(query):
        event = PaymentCreatedEvent(
            booking_id=str(payment.get("bookingId") or ""),
            payment_id=str(payment["_id"]),
            data=payment,
        )
        outcome = await on_payment_created(event)
        counts[outcome.value] = counts.get(outcome.value, 0) + 1
    return counts
