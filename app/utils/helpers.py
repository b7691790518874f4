"""
Helper utility functions
"""
from bson import ObjectId
from bson.decimal128 import Decimal128
from typing import Dict, Optional
from datetime import datetime, timezone
import pytz

from app.config.settings import settings

IST = pytz.timezone(settings.TIMEZONE)

def utcnow() -> datetime:
    """Timezone-aware current UTC time, as stored in MongoDB"""
    return datetime.now(timezone.utc)

def serialize_doc(doc: Optional[Dict]) -> Optional[Dict]:
    """Convert MongoDB document to JSON-serializable format"""
    if doc is None:
        return None

    for key, value in doc.items():
        if isinstance(value, ObjectId):
            doc[key] = str(value)
        elif isinstance(value, Decimal128):
            doc[key] = float(value.to_decimal())
        elif isinstance(value, datetime):
            # Naive datetimes from the driver are UTC
            if value.tzinfo is None:
                value = pytz.utc.localize(value)
            doc[key] = value.astimezone(IST).isoformat()
        elif isinstance(value, list):
            doc[key] = [serialize_doc(item) if isinstance(item, dict) else item for item in value]
        elif isinstance(value, dict):
            doc[key] = serialize_doc(value)

    return doc
