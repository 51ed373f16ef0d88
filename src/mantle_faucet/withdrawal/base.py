"""Base interfaces for faucet disbursements.

Disbursement flow:
1. Amount is normalized to wei
2. Chain endpoint is connected
3. Operator balance is checked
4. Nonce, fee caps and chain id are read
5. Gas is estimated
6. Transaction is built, signed and broadcast
"""

import logging
import re
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Optional

logger = logging.getLogger(__name__)

_HEX_BODY = re.compile(r"[0-9a-fA-F]{40}")


@dataclass
class WithdrawalRequest:
    """Request to receive funds from the faucet."""
    network: str   # Chain endpoint host or URL
    address: str   # Recipient account
    amount: str    # Decimal string in ether


@dataclass
class UnsignedDisbursement:
    """Fee-market (EIP-1559) transfer, built fresh for every request."""
    from_address: str
    to_address: str
    amount_wei: int
    nonce: int
    gas_fee_cap: int
    gas_tip_cap: int
    gas_limit: int
    chain_id: int

    def to_transaction(self) -> dict[str, Any]:
        """Transaction dict in the form eth_account signs."""
        return {
            "type": 2,
            "chainId": self.chain_id,
            "nonce": self.nonce,
            "maxFeePerGas": self.gas_fee_cap,
            "maxPriorityFeePerGas": self.gas_tip_cap,
            "gas": self.gas_limit,
            "to": self.to_address,
            "value": self.amount_wei,
            "data": "0x",
        }


@dataclass
class DisbursementResult:
    """Result of a broadcast disbursement."""
    tx_id: str
    explorer_url: str
    amount_wei: int
    nonce: int
    from_address: str
    to_address: str


class ChainRPCError(Exception):
    """A chain endpoint call failed (transport, HTTP, JSON-RPC or decoding)."""

    def __init__(self, method: str, reason: str, code: Optional[int] = None):
        self.method = method
        self.reason = reason
        self.code = code
        super().__init__(f"{method}: {reason}")


class ChainClient(ABC):
    """Chain access capability used by the disbursement engine.

    Quantities are plain ints (wei, gas units, nonces).
    """

    def __init__(self, network: str):
        self.network = network

    @abstractmethod
    async def get_balance(self, address: str) -> int:
        """Latest balance of ``address`` in wei."""
        pass

    @abstractmethod
    async def get_pending_nonce(self, address: str) -> int:
        """Next usable nonce for ``address``, counting pending transactions."""
        pass

    @abstractmethod
    async def suggest_gas_price(self) -> int:
        """Suggested fee cap per gas unit in wei."""
        pass

    @abstractmethod
    async def suggest_gas_tip_cap(self) -> int:
        """Suggested priority fee per gas unit in wei."""
        pass

    @abstractmethod
    async def get_chain_id(self) -> int:
        """Numeric chain identifier used for replay protection."""
        pass

    @abstractmethod
    async def estimate_gas(
        self,
        from_address: str,
        to_address: str,
        value: int,
        gas_fee_cap: int,
        gas_tip_cap: int,
    ) -> int:
        """Gas units needed for a plain value transfer."""
        pass

    @abstractmethod
    async def send_raw_transaction(self, raw_tx: str) -> str:
        """Submit a signed transaction (0x hex). Returns the node's tx hash."""
        pass

    async def close(self) -> None:
        """Release connection resources."""
        pass

    async def __aenter__(self) -> "ChainClient":
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb):
        await self.close()
        return False

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}(network={self.network})"


# Opens a connected ChainClient for a network name
ChainConnector = Callable[[str], Awaitable[ChainClient]]


def is_valid_address(address: str) -> bool:
    """Validate EVM address format (0x + 40 hex chars)."""
    if not address:
        return False

    # Must start with 0x and be 42 chars
    if not address.startswith("0x"):
        return False

    if len(address) != 42:
        return False

    return _HEX_BODY.fullmatch(address[2:]) is not None
