"""Local operator signing.

The faucet signs with a single in-memory private key loaded from
configuration. The key is parsed lazily so a malformed key surfaces as an
``OperatorKeyError`` on the request that needs it rather than crashing the
process at import time.

WARNING: the key is held in memory. Keep the operator wallet funded with
faucet-sized amounts only.
"""

import logging
from dataclasses import dataclass
from typing import Any, Optional

from eth_account import Account
from eth_account.signers.local import LocalAccount
from web3 import Web3

from mantle_faucet.errors import OperatorKeyError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignedDisbursement:
    """A signed, not yet broadcast transaction."""
    raw_transaction: bytes
    tx_hash: str  # 0x-prefixed

    @property
    def raw_hex(self) -> str:
        return Web3.to_hex(self.raw_transaction)


class OperatorIdentity:
    """The faucet's single signing keypair."""

    def __init__(self, private_key: Optional[str]):
        self._private_key = private_key
        self._account: Optional[LocalAccount] = None

    @property
    def account(self) -> LocalAccount:
        """Resolve the eth_account LocalAccount.

        Raises:
            OperatorKeyError: If no key is configured or it cannot be decoded
        """
        if self._account is None:
            if not self._private_key:
                raise OperatorKeyError("Operator private key is not configured")
            try:
                self._account = Account.from_key(self._private_key)
            except Exception as e:
                logger.error(f"Failed to decode operator private key: {type(e).__name__}")
                raise OperatorKeyError() from e
            logger.info(f"Operator account loaded: {self._account.address}")
        return self._account

    @property
    def address(self) -> str:
        """Checksum address derived from the operator public key."""
        return self.account.address

    def sign_transaction(self, tx: dict[str, Any]) -> SignedDisbursement:
        """Sign a transaction dict (EIP-1559 fields) with the operator key."""
        signed = self.account.sign_transaction(tx)
        return SignedDisbursement(
            raw_transaction=bytes(signed.raw_transaction),
            tx_hash=Web3.to_hex(signed.hash),
        )

    def __repr__(self) -> str:
        # Never include key material
        state = "loaded" if self._account else ("configured" if self._private_key else "missing")
        return f"OperatorIdentity(key={state})"
