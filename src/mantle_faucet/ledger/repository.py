"""In-memory cooldown ledger.

Tracks when each address last received funds. The ledger lives for the
process lifetime only; a restart resets every cooldown.
"""

import logging
from contextlib import asynccontextmanager
from datetime import datetime, timedelta
from typing import AsyncIterator, Optional

from mantle_faucet.ledger.models import AccountRecord
from mantle_faucet.utils.locks import KeyedLockRegistry

logger = logging.getLogger(__name__)


def normalize_address(address: str) -> str:
    """Ledger key for an address (hex is case-insensitive)."""
    return address.lower()


class CooldownLedger:
    """Address -> last withdrawal time, with per-address exclusive sections.

    ``is_eligible`` and ``record`` are individually atomic. Callers that need
    check-then-act semantics across an await (the whole disbursement) wrap the
    pair in ``hold(address)``.
    """

    def __init__(self, lock_timeout: Optional[float] = 30.0):
        self._records: dict[str, AccountRecord] = {}
        self._locks = KeyedLockRegistry(timeout=lock_timeout)

    def get(self, address: str) -> Optional[AccountRecord]:
        """Get the record for an address, if it ever withdrew."""
        return self._records.get(normalize_address(address))

    def is_eligible(self, address: str, cooldown: timedelta, now: datetime) -> bool:
        """True if ``address`` has no record or its cooldown has elapsed."""
        record = self.get(address)
        if record is None:
            return True
        return now - record.last_withdraw_time >= cooldown

    def record(self, address: str, now: datetime) -> AccountRecord:
        """Insert or overwrite the record for ``address``."""
        record = AccountRecord(address=address, last_withdraw_time=now)
        self._records[normalize_address(address)] = record
        logger.debug(f"Recorded withdrawal for {address} at {now.isoformat()}")
        return record

    @asynccontextmanager
    async def hold(self, address: str) -> AsyncIterator[None]:
        """Exclusive section for one address.

        Raises:
            LockTimeoutError: If another request holds the address too long
        """
        async with self._locks.hold(normalize_address(address), operation="withdraw"):
            yield

    def is_busy(self, address: str) -> bool:
        """True while a withdrawal for ``address`` is in progress."""
        return self._locks.is_locked(normalize_address(address))

    @property
    def in_flight(self) -> int:
        """Number of addresses with a withdrawal running or queued."""
        return len(self._locks)

    def __len__(self) -> int:
        return len(self._records)
