import logging
import logging.handlers
from pathlib import Path
from typing import Any

from easytrade.client.infrastructure.config_loader import ConfigLoader
from easytrade.common.config import Config
from easytrade.common.logging_config import setup_logging
from easytrade.common.models import ClientConfig


def test_config_supervision_defaults() -> None:
    config = Config()
    assert config.HEALTH_CHECK_INTERVAL == 120  # noqa: PLR2004
    assert config.OFFER_RECENCY_WINDOW == 300  # noqa: PLR2004
    assert config.DISCONNECT_GRACE == 5  # noqa: PLR2004
    assert config.RATE_LIMIT_COOLDOWN == 60  # noqa: PLR2004
    assert config.MAX_RECONNECT_ATTEMPTS == 5  # noqa: PLR2004
    assert config.BACKOFF_BASE == 2.0  # noqa: PLR2004
    assert config.CODE_PERIOD == 30  # noqa: PLR2004


def test_config_environment(monkeypatch: Any, tmp_path: Path) -> None:
    """Test environment variables override the defaults."""
    monkeypatch.setenv("EASYTRADE_SERVER_HOST", "0.0.0.0")
    monkeypatch.setenv("EASYTRADE_SERVER_PORT", "9000")
    monkeypatch.setenv("EASYTRADE_MAFILES_DIR", str(tmp_path))
    monkeypatch.setenv("EASYTRADE_AUTO_ACCEPT_GIFTS", "0")
    monkeypatch.setenv("EASYTRADE_LOG_FILE", str(tmp_path / "easytrade.log"))

    config = Config()
    assert config.SERVER_HOST == "0.0.0.0"
    assert config.SERVER_PORT == 9000  # noqa: PLR2004
    assert tmp_path == config.MAFILES_DIR
    assert config.AUTO_ACCEPT_GIFTS is False
    assert tmp_path / "easytrade.log" == config.LOG_FILE


def test_config_paths(monkeypatch: Any, tmp_path: Path) -> None:
    """Test config paths with clean environment."""
    monkeypatch.delenv("EASYTRADE_MAFILES_DIR", raising=False)
    monkeypatch.delenv("EASYTRADE_LOG_FILE", raising=False)
    monkeypatch.chdir(tmp_path)

    config = Config()
    assert tmp_path / "mafiles" == config.MAFILES_DIR
    assert config.LOG_FILE is None


def test_config_loader_falls_back_to_defaults() -> None:
    loader = ConfigLoader()
    config = Config()
    assert loader.health_check_interval == config.HEALTH_CHECK_INTERVAL
    assert loader.disconnect_grace == config.DISCONNECT_GRACE
    assert loader.retry_policy().max_attempts == config.MAX_RECONNECT_ATTEMPTS


def test_config_loader_applies_overrides(tmp_path: Path) -> None:
    loader = ConfigLoader(
        ClientConfig(
            health_check_interval=10,
            max_reconnect_attempts=2,
            backoff_base=3,
            backoff_unit=0.5,
            auto_accept_gifts=False,
            mafiles_dir=tmp_path,
        )
    )

    policy = loader.retry_policy()
    assert loader.health_check_interval == 10  # noqa: PLR2004
    assert loader.auto_accept_gifts is False
    assert tmp_path == loader.mafiles_dir
    assert policy.max_attempts == 2  # noqa: PLR2004
    assert policy.delay_for(2) == 4.5  # noqa: PLR2004


def test_setup_logging_adds_rotating_file_handler(tmp_path: Path) -> None:
    log_file = tmp_path / "logs" / "easytrade.log"
    logger = setup_logging(logging.DEBUG, log_file)

    assert logger.level == logging.DEBUG
    assert any(
        isinstance(h, logging.handlers.RotatingFileHandler) for h in logger.handlers
    )
    assert log_file.parent.is_dir()
    for handler in logger.handlers:
        handler.close()
    logger.handlers.clear()
