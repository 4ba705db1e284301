# spoton/config.py
"""
Application configuration using Pydantic-Settings.
All settings can be overridden via environment variables or .env file.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class Settings(BaseSettings):
    # ── Database ──────────────────────────────────────────────────────────
    DATABASE_URL: str = "sqlite:///./spoton.db"

    # ── Network ───────────────────────────────────────────────────────────
    BACKEND_IP: str = "0.0.0.0"
    BACKEND_PORT: int = 8080

    # ── Security ──────────────────────────────────────────────────────────
    API_KEY: Optional[str] = None   # Set in .env to enable auth on API endpoints

    # ── Booking rules ─────────────────────────────────────────────────────
    DEFAULT_FINE_AMOUNT: float = 10.0      # Fine for not exiting properly
    FINE_CURRENCY: str = "AED"
    ALLOW_PAST_DATES: bool = False         # Reject past-dated queries/bookings

    # ── Seeding ───────────────────────────────────────────────────────────
    SPOTS_PER_BUILDING: int = 40
    SEED_BUILDINGS: list[str] = ["J2-A", "J2-B", "J2-C"]

    # ── Logging ───────────────────────────────────────────────────────────
    LOG_LEVEL: str = "INFO"
    LOG_DIR: Optional[str] = "logs"        # Empty disables the rotating file log
    LOG_FILE: str = "spoton.log"

    class Config:
        env_file = ".env"
        extra = "ignore"


settings = Settings()
