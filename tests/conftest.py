"""Pytest configuration and fixtures."""

import asyncio
import os
from datetime import datetime, timedelta, timezone
from typing import Optional

import pytest
from web3 import Web3

# Set test environment
os.environ["ENVIRONMENT"] = "test"
os.environ["DEBUG"] = "false"
os.environ["INTERVAL_HOURS"] = "24"
os.environ["EXPLORER_URL"] = "https://explorer.test/tx/"
os.environ["OPERATOR_PRIVATE_KEY"] = "0x4c0883a69102937d6231471b5dbb6204fe5129617082792ae468d01a3f362318"
os.environ["ALLOWED_NETWORKS"] = ""
os.environ["MAX_WITHDRAW_AMOUNT"] = "0"

from mantle_faucet.ledger.repository import CooldownLedger
from mantle_faucet.services.faucet import FaucetService
from mantle_faucet.signing.local import OperatorIdentity
from mantle_faucet.withdrawal.base import ChainClient, ChainRPCError
from mantle_faucet.withdrawal.engine import DisbursementEngine
from mantle_faucet.withdrawal.sequencer import NonceSequencer

OPERATOR_KEY = os.environ["OPERATOR_PRIVATE_KEY"]
EXPLORER_URL = "https://explorer.test/tx/"
RECIPIENT = "0x" + "ab" * 20
ONE_ETHER = 10**18


class FakeChainClient(ChainClient):
    """In-process chain endpoint with configurable answers and failures."""

    def __init__(
        self,
        network: str = "example-testnet",
        balance: int = 100 * ONE_ETHER,
        nonce: int = 7,
        gas_price: int = 2 * 10**9,
        gas_tip_cap: int = 10**9,
        chain_id: int = 5003,
        gas: int = 21000,
        fail: Optional[set[str]] = None,
        send_delay: float = 0.0,
    ):
        super().__init__(network)
        self.balance = balance
        self.nonce = nonce
        self.gas_price = gas_price
        self.gas_tip_cap = gas_tip_cap
        self.chain_id = chain_id
        self.gas = gas
        self.fail = set(fail or ())
        self.send_delay = send_delay
        self.calls: list[str] = []
        self.estimates: list[dict] = []
        self.sent: list[str] = []
        self.closed = False

    def _check(self, method: str) -> None:
        self.calls.append(method)
        if method in self.fail:
            raise ChainRPCError(method, "simulated failure")

    async def get_balance(self, address: str) -> int:
        self._check("get_balance")
        return self.balance

    async def get_pending_nonce(self, address: str) -> int:
        self._check("get_pending_nonce")
        return self.nonce

    async def suggest_gas_price(self) -> int:
        self._check("suggest_gas_price")
        return self.gas_price

    async def suggest_gas_tip_cap(self) -> int:
        self._check("suggest_gas_tip_cap")
        return self.gas_tip_cap

    async def get_chain_id(self) -> int:
        self._check("get_chain_id")
        return self.chain_id

    async def estimate_gas(self, from_address, to_address, value, gas_fee_cap, gas_tip_cap) -> int:
        self._check("estimate_gas")
        self.estimates.append({
            "from": from_address,
            "to": to_address,
            "value": value,
            "gas_fee_cap": gas_fee_cap,
            "gas_tip_cap": gas_tip_cap,
        })
        return self.gas

    async def send_raw_transaction(self, raw_tx: str) -> str:
        self._check("send_raw_transaction")
        if self.send_delay:
            await asyncio.sleep(self.send_delay)
        self.sent.append(raw_tx)
        return Web3.to_hex(Web3.keccak(hexstr=raw_tx))

    async def close(self) -> None:
        self.closed = True


class FakeConnector:
    """Connector handing out one shared FakeChainClient."""

    def __init__(self, client: Optional[FakeChainClient] = None, fail: bool = False):
        self.client = client or FakeChainClient()
        self.fail = fail
        self.networks: list[str] = []

    async def __call__(self, network: str) -> FakeChainClient:
        self.networks.append(network)
        if self.fail:
            raise ChainRPCError("eth_chainId", "connection refused")
        return self.client


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: Optional[datetime] = None):
        self.now = start or datetime(2024, 1, 1, 12, 0, tzinfo=timezone.utc)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def chain() -> FakeChainClient:
    """Fake chain endpoint."""
    return FakeChainClient()


@pytest.fixture
def connector(chain: FakeChainClient) -> FakeConnector:
    """Connector returning the fake chain."""
    return FakeConnector(chain)


@pytest.fixture
def operator() -> OperatorIdentity:
    """Operator identity with the test key."""
    return OperatorIdentity(OPERATOR_KEY)


@pytest.fixture
def engine(connector: FakeConnector, operator: OperatorIdentity) -> DisbursementEngine:
    """Disbursement engine wired to the fake chain."""
    return DisbursementEngine(
        connector=connector,
        operator=operator,
        sequencer=NonceSequencer(lock_timeout=5.0),
        explorer_url=EXPLORER_URL,
    )


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def ledger() -> CooldownLedger:
    return CooldownLedger(lock_timeout=5.0)


@pytest.fixture
def faucet_service(engine: DisbursementEngine, ledger: CooldownLedger, clock: FakeClock) -> FaucetService:
    """Faucet service with a 24h cooldown and a controllable clock."""
    return FaucetService(engine=engine, ledger=ledger, interval_hours=24, clock=clock)
