"""
Application configuration for market-data-collector.

Centralizes environment variables using python-dotenv.

Note:
- All persisted state lives in a single SQLite file (DB_PATH).
- The .env contains only storage tuning + HTTP limits; there is no runtime config table.
"""

import os
from dotenv import load_dotenv

load_dotenv()


class Settings:
    """
    Configuration settings for the market-data-collector service.
    """

    LOG_LEVEL: str = os.getenv("LOG_LEVEL", "INFO").upper()
    APP_NAME: str = os.getenv("APP_NAME", "market-data-collector")

    # SQLite
    DB_PATH: str = os.getenv("DB_PATH", "data/market-data.db")
    DB_BUSY_TIMEOUT_MS: int = int(os.getenv("DB_BUSY_TIMEOUT_MS", "5000"))
    DB_CACHE_SIZE_KB: int = int(os.getenv("DB_CACHE_SIZE_KB", "1000000"))

    # Candle cache bucket width (candles_1m)
    CACHE_INTERVAL_MS: int = int(os.getenv("CACHE_INTERVAL_MS", "60000"))

    # HTTP
    MAX_BODY_BYTES: int = int(os.getenv("MAX_BODY_BYTES", str(50 * 1024 * 1024)))

    # Open-ended range queries
    DEFAULT_RANGE_END_MS: int = int(os.getenv("DEFAULT_RANGE_END_MS", "9999999999999"))


settings = Settings()
