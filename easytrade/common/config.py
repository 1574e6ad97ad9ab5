"""
Configuration settings for the trade client.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path


class Config:
    """Central configuration class for all system settings."""

    def __init__(self) -> None:
        # Session supervision settings
        self.HEALTH_CHECK_INTERVAL: float = 120  # Seconds between health checks
        self.OFFER_RECENCY_WINDOW: float = (
            300  # An offer seen this recently proves the connection is alive
        )
        self.DISCONNECT_GRACE: float = 5  # Seconds to wait out a flapping transport
        self.RATE_LIMIT_COOLDOWN: float = 60  # Pause after RateLimitExceeded

        # Reconnect settings
        self.MAX_RECONNECT_ATTEMPTS: int = 5
        self.BACKOFF_BASE: float = 2.0  # Delay after failure n is BACKOFF_BASE**n
        self.BACKOFF_UNIT: float = 1.0  # Seconds

        # Offer policy
        self.AUTO_ACCEPT_GIFTS: bool = (
            os.getenv("EASYTRADE_AUTO_ACCEPT_GIFTS", "1") != "0"
        )

        # Steam Guard settings
        self.CODE_PERIOD: int = 30  # Seconds a one-time code stays valid
        self.TIME_SYNC_URL: str = (
            "https://api.steampowered.com/ITwoFactorService/QueryTime/v0001"
        )
        self.TIME_SYNC_TIMEOUT: float = 30

        # Bridge server settings
        self.SERVER_HOST: str = os.getenv("EASYTRADE_SERVER_HOST", "127.0.0.1")
        self.SERVER_PORT: int = int(os.getenv("EASYTRADE_SERVER_PORT", "8765"))
        self.EVENT_BUFFER_SIZE: int = 500  # Notifications kept for polling UIs

        # File paths
        self.BASE_DIR: Path = Path.cwd()
        self.MAFILES_DIR: Path = Path(
            os.getenv("EASYTRADE_MAFILES_DIR", str(self.BASE_DIR / "mafiles"))
        )

        # Logging
        self.LOG_LEVEL: int = logging.INFO
        log_file = os.getenv("EASYTRADE_LOG_FILE")
        self.LOG_FILE: Path | None = Path(log_file) if log_file else None
        self.LOG_FORMAT: str = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
