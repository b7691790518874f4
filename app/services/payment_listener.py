"""
Payment Listener
Runs as a background asyncio task on app startup.
Tails a MongoDB change stream on the payments collection and hands every
inserted payment to the commission service.

Delivery is at-least-once: the resume token only moves past a change once
its handler returned, so after a datastore failure the stream is reopened
and the same payment is delivered again.
"""
import asyncio
import logging
from typing import Any, Dict, Optional

from pymongo.errors import OperationFailure

from app.config.database import db_config, Collections
from app.models.payment import PaymentCreatedEvent
from app.services.commission_service import on_payment_created, ProcessingOutcome

logger = logging.getLogger(__name__)

INSERTS_ONLY = [{"$match": {"operationType": "insert"}}]

# Server codes for a resume token the server can no longer resume from:
# InvalidResumeToken, ChangeStreamFatalError, ChangeStreamHistoryLost
NON_RESUMABLE_CODES = {260, 280, 286}


async def handle_change(change: Dict[str, Any]) -> ProcessingOutcome:
    """Process one change-stream insert"""
    event = PaymentCreatedEvent.from_change(change)
    outcome = await on_payment_created(event)
    logger.debug(
        "Payment %s on booking %s: %s", event.payment_id, event.booking_id, outcome.value
    )
    return outcome


class PaymentListener:
    def __init__(self, retry_seconds: int = 5):
        self.retry_seconds = retry_seconds
        # Token of the last change whose handler returned
        self.resume_token: Optional[Dict] = None

    async def listen_once(self) -> None:
        """Consume the change stream until it closes or a handler fails"""
        collection = db_config.get_collection(Collections.PAYMENTS)
        async with collection.watch(INSERTS_ONLY, resume_after=self.resume_token) as stream:
            async for change in stream:
                if change.get("operationType") == "invalidate":
                    # Resuming after an invalidate is rejected by the server
                    logger.warning("Payment change stream invalidated; reopening")
                    return
                await handle_change(change)
                self.resume_token = change["_id"]

    async def run(self) -> None:
        logger.info("🕐 Payment listener started on '%s'", Collections.PAYMENTS)
        while True:
            try:
                await self.listen_once()
            except asyncio.CancelledError:
                logger.info("Payment listener stopped")
                raise
            except OperationFailure as exc:
                if self.resume_token is not None and exc.code in NON_RESUMABLE_CODES:
                    logger.error(
                        "❌ Cannot resume payment change stream (%s); restarting from now. "
                        "Run scripts/reprocess_payouts.py to backfill missed payouts",
                        exc,
                    )
                    self.resume_token = None
                else:
                    logger.error(
                        "❌ Payment listener failed, retrying in %ss: %s", self.retry_seconds, exc
                    )
            except Exception as exc:
                logger.error(
                    "❌ Payment listener failed, retrying in %ss: %s", self.retry_seconds, exc
                )
            await asyncio.sleep(self.retry_seconds)


async def run_payment_listener(retry_seconds: int = 5) -> None:
    """
    Designed to be launched as an asyncio background task from the app
    lifespan and cancelled on shutdown.
    """
    await PaymentListener(retry_seconds).run()
