"""
Run successful payments through the payout flow again, creating any
payouts the change-stream listener missed. Safe to repeat.

Usage:
    python scripts/reprocess_payouts.py [<booking_id>]
"""
import asyncio
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

from app.config.database import db_config
from app.services.commission_service import reprocess_payments


async def main(booking_id=None):
    await db_config.connect_db()
    try:
        counts = await reprocess_payments(booking_id)
    finally:
        await db_config.close_db()

    scope = f"booking {booking_id}" if booking_id else "all bookings"
    print(f"Reprocessed successful payments for {scope}:")
    for outcome, count in sorted(counts.items()):
        print(f"  {outcome}: {count}")


if __name__ == '__main__':
    asyncio.run(main(sys.argv[1] if len(sys.argv) > 1 else None))
