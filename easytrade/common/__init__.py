# Common utilities
from easytrade.common.crypto import CryptoUtils as CryptoUtils
from easytrade.common.events import EventBus as EventBus
from easytrade.common.events import EventName as EventName
from easytrade.common.logging_config import setup_logging as setup_logging

__all__ = ["CryptoUtils", "EventBus", "EventName", "setup_logging"]
