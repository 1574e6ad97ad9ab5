"""Infrastructure layer: Steam server clock alignment.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

import requests

from easytrade.common.config import Config

logger = logging.getLogger(__name__)


class TimeSync:
    """Queries Steam for the offset between its clock and the local one."""

    def __init__(
        self,
        url: str | None = None,
        timeout: float | None = None,
        clock: Callable[[], float] = time.time,
        session: requests.Session | None = None,
    ):
        config = Config()
        self.url = url or config.TIME_SYNC_URL
        self.timeout = timeout if timeout is not None else config.TIME_SYNC_TIMEOUT
        self.clock = clock
        self.session = session or requests.Session()

    def query_offset(self) -> float:
        """Return ``server_time - local_time`` in seconds, 0.0 on failure."""
        try:
            r = self.session.post(self.url, timeout=self.timeout)
            r.raise_for_status()
            server_time = int(r.json()["response"]["server_time"])
        except requests.RequestException as e:
            logger.warning("Failed to query Steam server time: %s", e)
            return 0.0
        except (KeyError, TypeError, ValueError) as e:
            logger.warning("Unexpected Steam server time response: %s", e)
            return 0.0

        offset = server_time - self.clock()
        logger.debug("Steam server time offset: %.1f seconds", offset)
        return offset
