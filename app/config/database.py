"""
Database configuration and connection management for MongoDB
"""
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase
from typing import Optional
import logging
import os
from dotenv import load_dotenv

load_dotenv()

logger = logging.getLogger(__name__)

class DatabaseConfig:
    """MongoDB database configuration.

    One handle per process. The client is created lazily on first use, and
    repeated connect attempts are no-ops.
    """

    def __init__(self):
        self.MONGO_URI = os.getenv("MONGO_URI", "mongodb://localhost:27017")
        self.DATABASE_NAME = os.getenv("DATABASE_NAME", "quickfix_db")
        self.client: Optional[AsyncIOMotorClient] = None
        self.database: Optional[AsyncIOMotorDatabase] = None

    def _init_client(self):
        if self.database is not None:
            return
        self.client = AsyncIOMotorClient(self.MONGO_URI)
        self.database = self.client[self.DATABASE_NAME]
        logger.info("Initialized MongoDB client for database '%s'", self.DATABASE_NAME)

    async def connect_db(self):
        """Connect to MongoDB"""
        if self.database is not None:
            return
        try:
            self._init_client()
            # Test connection
            await self.ping()
            logger.info("✅ Connected to MongoDB: %s", self.DATABASE_NAME)
        except Exception as e:
            logger.error("❌ Error connecting to MongoDB: %s", e)
            await self.close_db()
            raise

    async def ping(self) -> bool:
        """Round-trip to the server; raises if it is unreachable"""
        await self.get_database().client.admin.command('ping')
        return True

    async def close_db(self):
        """Close MongoDB connection"""
        if self.client:
            self.client.close()
            logger.info("✅ MongoDB connection closed")
        self.client = None
        self.database = None

    def get_database(self):
        if self.database is None:
            self._init_client()
        return self.database

    def get_collection(self, collection_name: str):
        """Get a specific collection"""
        return self.get_database()[collection_name]

# Global database instance
db_config = DatabaseConfig()

# Collection names
class Collections:
    BOOKINGS = "bookings"
    # Payment documents carry their parent booking in `bookingId`
    PAYMENTS = "payments"
    # Backend-only ledger, never read by client-facing paths
    PAYOUTS = "payouts"
