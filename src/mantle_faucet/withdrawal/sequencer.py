"""Operator nonce sequencing.

Disbursements on one chain share the operator account's nonce there, and each
chain keeps its own count. The sequencer holds a single global lock from nonce
acquisition until broadcast so that two concurrent disbursements never sign
with the same nonce.
"""

import asyncio
import logging
from contextlib import asynccontextmanager
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Hashable, Optional

from mantle_faucet.utils.locks import acquire_with_timeout

logger = logging.getLogger(__name__)


@dataclass
class NonceReservation:
    """A nonce handed out inside the sequencer's exclusive section."""
    address: str
    chain: Hashable
    nonce: int
    committed: bool = False

    def commit(self) -> None:
        """Mark the nonce as used by a broadcast transaction."""
        self.committed = True


class NonceSequencer:
    """Hands out operator nonces one disbursement at a time.

    The next nonce is the higher of the node's pending count and the last
    nonce this process broadcast plus one, which covers nodes that are slow to
    reflect pending transactions. A reservation that is not committed does
    not advance the counter. Counters are kept per chain, since the same
    operator address has an independent nonce on every network.
    """

    def __init__(self, lock_timeout: Optional[float] = 30.0):
        self.lock_timeout = lock_timeout
        self._lock = asyncio.Lock()
        self._next_nonce: dict[tuple[Hashable, str], int] = {}

    @asynccontextmanager
    async def reserve(
        self,
        address: str,
        chain: Hashable,
        fetch_pending_nonce: Callable[[], Awaitable[int]],
    ) -> AsyncIterator[NonceReservation]:
        """Reserve the next nonce for ``address`` on ``chain``.

        The lock is held for the whole block; commit the reservation once the
        transaction is broadcast.

        Raises:
            LockTimeoutError: If another disbursement holds the lock too long
        """
        await acquire_with_timeout(self._lock, self.lock_timeout, "operator nonce")
        try:
            key = (chain, address.lower())
            chain_nonce = await fetch_pending_nonce()
            cached_nonce = self._next_nonce.get(key, 0)
            reservation = NonceReservation(
                address=address, chain=chain, nonce=max(chain_nonce, cached_nonce)
            )

            yield reservation

            if reservation.committed:
                self._next_nonce[key] = reservation.nonce + 1
                logger.debug(f"Nonce {reservation.nonce} used for {address} on {chain}")
        finally:
            self._lock.release()
