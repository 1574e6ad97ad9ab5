"""Infrastructure layer: Configuration loading.
"""

from __future__ import annotations

from pathlib import Path

from easytrade.client.domain.entities import RetryPolicy
from easytrade.common.config import Config
from easytrade.common.models import ClientConfig


class ConfigLoader:
    """Resolves client overrides against the configuration defaults."""

    def __init__(self, client_config: ClientConfig | None = None):
        self.config: Config = Config()
        client_config = client_config or ClientConfig()

        self.mafiles_dir: Path = client_config.mafiles_dir or self.config.MAFILES_DIR
        self.log_file: Path | None = client_config.log_file or self.config.LOG_FILE
        self.log_level: int = (
            client_config.log_level
            if client_config.log_level is not None
            else self.config.LOG_LEVEL
        )
        self.health_check_interval: float = (
            client_config.health_check_interval
            if client_config.health_check_interval is not None
            else self.config.HEALTH_CHECK_INTERVAL
        )
        self.offer_recency_window: float = (
            client_config.offer_recency_window
            if client_config.offer_recency_window is not None
            else self.config.OFFER_RECENCY_WINDOW
        )
        self.disconnect_grace: float = (
            client_config.disconnect_grace
            if client_config.disconnect_grace is not None
            else self.config.DISCONNECT_GRACE
        )
        self.rate_limit_cooldown: float = (
            client_config.rate_limit_cooldown
            if client_config.rate_limit_cooldown is not None
            else self.config.RATE_LIMIT_COOLDOWN
        )
        self.max_reconnect_attempts: int = (
            client_config.max_reconnect_attempts
            if client_config.max_reconnect_attempts is not None
            else self.config.MAX_RECONNECT_ATTEMPTS
        )
        self.backoff_base: float = (
            client_config.backoff_base
            if client_config.backoff_base is not None
            else self.config.BACKOFF_BASE
        )
        self.backoff_unit: float = (
            client_config.backoff_unit
            if client_config.backoff_unit is not None
            else self.config.BACKOFF_UNIT
        )
        self.auto_accept_gifts: bool = (
            client_config.auto_accept_gifts
            if client_config.auto_accept_gifts is not None
            else self.config.AUTO_ACCEPT_GIFTS
        )
        self.event_buffer_size: int = (
            client_config.event_buffer_size
            if client_config.event_buffer_size is not None
            else self.config.EVENT_BUFFER_SIZE
        )
        self.code_period: int = self.config.CODE_PERIOD

    def retry_policy(self) -> RetryPolicy:
        """Build the reconnect policy from the resolved settings."""
        return RetryPolicy(
            max_attempts=self.max_reconnect_attempts,
            backoff_base=self.backoff_base,
            delay_unit=self.backoff_unit,
        )
