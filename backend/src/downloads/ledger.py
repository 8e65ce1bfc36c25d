"""Download ledger — one export per seed text, first recorder wins.

In-memory stand-in for the download datastore: an existence check plus an
insert guarded by a uniqueness constraint on the seed text.

Library-only interface for a hosting service to embed. The CLI never records
downloads: a per-process ledger would forget every entry on exit.
"""

import datetime
import logging
import threading
from dataclasses import dataclass

from engine.config import MAX_SEED_LENGTH
from engine.hashing import seed_length

logger = logging.getLogger(__name__)


class SeedAlreadyDownloaded(Exception):
    """Raised when a seed text has already been recorded."""

    def __init__(self, seed_text: str):
        self.seed_text = seed_text
        super().__init__("This design has already been downloaded")


@dataclass(frozen=True)
class DownloadRecord:
    seed_text: str
    wallet_address: str
    transaction_signature: str
    timestamp: datetime.datetime


class DownloadLedger:
    def __init__(self):
        self._records: dict[str, DownloadRecord] = {}
        self._lock = threading.Lock()

    def __len__(self) -> int:
        with self._lock:
            return len(self._records)

    def check(self, seed_text: str) -> dict:
        """Availability of a seed for download.

        Raises:
            ValueError: If the seed text is empty or too long.
        """
        if not seed_text or seed_length(seed_text) > MAX_SEED_LENGTH:
            raise ValueError("Invalid seed text")

        with self._lock:
            existing = self._records.get(seed_text)

        if existing is not None:
            return {
                "available": False,
                "message": "This design has already been downloaded",
                "downloaded_by": existing.wallet_address,
                "downloaded_at": existing.timestamp.isoformat(),
            }
        return {
            "available": True,
            "message": "This design is available for download",
        }

    def record(
        self, seed_text: str, wallet_address: str, transaction_signature: str
    ) -> DownloadRecord:
        """Record a paid download.

        Raises:
            ValueError:            If a field is missing or the seed is too long.
            SeedAlreadyDownloaded: If the seed was recorded before.
        """
        if not seed_text or not wallet_address or not transaction_signature:
            raise ValueError("Missing required fields")
        if seed_length(seed_text) > MAX_SEED_LENGTH:
            raise ValueError("Seed text too long")

        record = DownloadRecord(
            seed_text=seed_text,
            wallet_address=wallet_address,
            transaction_signature=transaction_signature,
            timestamp=datetime.datetime.now(tz=datetime.timezone.utc),
        )
        with self._lock:
            if seed_text in self._records:
                raise SeedAlreadyDownloaded(seed_text)
            self._records[seed_text] = record

        logger.info("Recorded download (seed_len=%d)", len(seed_text))
        return record
