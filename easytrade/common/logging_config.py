import logging
import logging.handlers
from pathlib import Path

from .config import Config


def setup_logging(
    log_level: int | None = None, log_file: Path | None = None
) -> logging.Logger:
    """Configure logging for the application."""
    config = Config()
    level = log_level if log_level is not None else config.LOG_LEVEL
    log_path = log_file or config.LOG_FILE

    # Create logger
    logger = logging.getLogger("easytrade")
    logger.setLevel(level)

    # Remove existing handlers
    logger.handlers.clear()

    # Create formatters
    formatter = logging.Formatter(config.LOG_FORMAT)

    # Console handler
    console_handler = logging.StreamHandler()
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    # File handler (rotating)
    if log_path:
        log_path = Path(log_path)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_path,
            maxBytes=10 * 1024 * 1024,  # 10MB
            backupCount=5,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.INFO)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    return logger
