"""Infrastructure layer: Steam Guard secrets stored as .maFile records.
"""

from __future__ import annotations

import json
import logging
import time
from pathlib import Path
from typing import TYPE_CHECKING, Callable

from pydantic import ValidationError

from easytrade.common.crypto import CryptoUtils
from easytrade.common.models import AuthenticatorRecord

if TYPE_CHECKING:
    from easytrade.client.infrastructure.time_sync import TimeSync

MAFILE_SUFFIX = ".mafile"

logger = logging.getLogger(__name__)


class SecretStore:
    """Loads authenticator records and derives one-time codes from them."""

    def __init__(
        self,
        mafiles_dir: Path,
        code_period: int = 30,
        clock: Callable[[], float] = time.time,
    ):
        self.mafiles_dir = Path(mafiles_dir)
        self.code_period = code_period
        self.clock = clock
        self.time_offset: float = 0.0
        self._records: list[AuthenticatorRecord] = []

    @property
    def records(self) -> list[AuthenticatorRecord]:
        return list(self._records)

    def scan(self) -> list[AuthenticatorRecord]:
        """Rescan the directory; malformed files are skipped."""
        records: list[AuthenticatorRecord] = []
        if not self.mafiles_dir.is_dir():
            logger.info("maFiles directory not found: %s", self.mafiles_dir)
            self._records = records
            return self.records

        for path in sorted(self.mafiles_dir.iterdir()):
            if not path.is_file() or path.suffix.lower() != MAFILE_SUFFIX:
                continue
            record = self._load_record(path)
            if record is not None:
                records.append(record)

        self._records = records
        logger.info("Found %s maFiles in %s", len(records), self.mafiles_dir)
        return self.records

    @staticmethod
    def _load_record(path: Path) -> AuthenticatorRecord | None:
        try:
            with path.open(encoding="utf-8") as f:
                data = json.load(f)
        except (OSError, UnicodeDecodeError, json.JSONDecodeError) as e:
            logger.warning("Skipping unreadable maFile %s: %s", path.name, e)
            return None

        if not isinstance(data, dict):
            logger.warning("Skipping maFile %s: not a JSON object", path.name)
            return None
        if not data.get("account_name") or not data.get("shared_secret"):
            logger.warning(
                "Skipping maFile %s: missing account_name or shared_secret", path.name
            )
            return None

        session = data.get("Session")
        steam_id = data.get("SteamID")
        if steam_id is None and isinstance(session, dict):
            steam_id = session.get("SteamID")
        try:
            return AuthenticatorRecord(
                account_name=data["account_name"],
                shared_secret=data["shared_secret"],
                steam_id=steam_id,
                device_id=data.get("device_id"),
                filename=path.name,
            )
        except ValidationError as e:
            logger.warning("Skipping maFile %s: %s", path.name, e)
            return None

    def find_by_account(self, account_name: str) -> AuthenticatorRecord | None:
        wanted = account_name.lower()
        for record in self._records:
            if record.account_name.lower() == wanted:
                return record
        return None

    def generate_code(self, account_name: str) -> str | None:
        """Current Steam Guard code for an account, None when unavailable."""
        record = self.find_by_account(account_name)
        if record is None:
            return None
        try:
            return CryptoUtils.generate_auth_code(
                record.shared_secret.get_secret_value(),
                self.clock() + self.time_offset,
                self.code_period,
            )
        except ValueError as e:
            logger.error(
                "Cannot generate Steam Guard code for %s: %s", record.account_name, e
            )
            return None

    def align_time(self, time_sync: TimeSync) -> float:
        """Adopt the Steam server clock offset for future codes."""
        self.time_offset = time_sync.query_offset()
        return self.time_offset
