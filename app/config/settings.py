"""
Application settings and configuration
"""
import os
from dotenv import load_dotenv

load_dotenv()

class Settings:
    # Application
    APP_NAME = "QuickFix Payouts"
    VERSION = "1.0.0"
    LOG_LEVEL = os.getenv("LOG_LEVEL", "INFO").upper()

    # CORS
    ALLOWED_ORIGINS = [
        "http://localhost:3000",
        "http://localhost:5173",
        "http://127.0.0.1:3000",
    ]

    # Commission split (10% developer, 90% provider)
    COMMISSION_RATE = 0.10

    # Payment defaults when the payment document omits them
    DEFAULT_CURRENCY = "INR"
    DEFAULT_PAYMENT_METHOD = "unknown"
    DEFAULT_DEVELOPER_ACCOUNT_ID = "developer_account"

    # Change-stream listener on the payments collection
    PAYMENT_LISTENER_ENABLED = os.getenv("PAYMENT_LISTENER_ENABLED", "True") == "True"
    PAYMENT_LISTENER_RETRY_SECONDS = int(os.getenv("PAYMENT_LISTENER_RETRY_SECONDS", "5"))

    # Display timezone for serialized timestamps
    TIMEZONE = "Asia/Kolkata"

    @property
    def developer_account_id(self) -> str:
        """Ledger account credited with the developer commission.

        Read on every access so a secret mounted after startup is picked up.
        """
        return os.getenv("DEVELOPER_ACCOUNT_ID") or self.DEFAULT_DEVELOPER_ACCOUNT_ID

settings = Settings()
