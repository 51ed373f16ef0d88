"""JSON-RPC chain client.

Talks to an EVM node over HTTP JSON-RPC 2.0 using httpx.
"""

import logging
from typing import Any, Optional

import httpx
from web3 import Web3

from mantle_faucet.withdrawal.base import ChainClient, ChainRPCError

logger = logging.getLogger(__name__)


class JsonRpcChainClient(ChainClient):
    """EVM chain client backed by an httpx.AsyncClient.

    ``connect()`` probes the endpoint with ``eth_chainId`` and caches the
    result, so a dead endpoint fails at connect time.
    """

    def __init__(
        self,
        rpc_url: str,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        super().__init__(rpc_url)
        self.rpc_url = rpc_url
        self._client = httpx.AsyncClient(timeout=timeout, transport=transport)
        self._chain_id: Optional[int] = None
        self._request_id = 0

    async def _call(self, method: str, params: Optional[list] = None) -> Any:
        """Send one JSON-RPC request and return its ``result``."""
        self._request_id += 1
        payload = {
            "jsonrpc": "2.0",
            "method": method,
            "params": params or [],
            "id": self._request_id,
        }

        try:
            response = await self._client.post(self.rpc_url, json=payload)
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            raise ChainRPCError(method, f"transport error: {e}") from e

        if response.status_code != 200:
            raise ChainRPCError(method, f"HTTP {response.status_code}")

        try:
            data = response.json()
        except ValueError as e:
            raise ChainRPCError(method, "invalid JSON response") from e

        if not isinstance(data, dict):
            raise ChainRPCError(method, "unexpected response shape")

        error = data.get("error")
        if error:
            if isinstance(error, dict):
                raise ChainRPCError(method, str(error.get("message", error)), code=error.get("code"))
            raise ChainRPCError(method, str(error))

        if "result" not in data:
            raise ChainRPCError(method, "missing result")

        return data["result"]

    async def _call_quantity(self, method: str, params: Optional[list] = None) -> int:
        """Call a method whose result is a hex quantity."""
        result = await self._call(method, params)
        try:
            return int(result, 16)
        except (TypeError, ValueError) as e:
            raise ChainRPCError(method, f"malformed quantity {result!r}") from e

    async def connect(self) -> "JsonRpcChainClient":
        """Probe the endpoint and cache its chain id."""
        self._chain_id = await self._call_quantity("eth_chainId")
        logger.debug(f"Connected to {self.rpc_url} (chain id {self._chain_id})")
        return self

    async def get_balance(self, address: str) -> int:
        return await self._call_quantity("eth_getBalance", [address, "latest"])

    async def get_pending_nonce(self, address: str) -> int:
        return await self._call_quantity("eth_getTransactionCount", [address, "pending"])

    async def suggest_gas_price(self) -> int:
        return await self._call_quantity("eth_gasPrice")

    async def suggest_gas_tip_cap(self) -> int:
        return await self._call_quantity("eth_maxPriorityFeePerGas")

    async def get_chain_id(self) -> int:
        if self._chain_id is None:
            self._chain_id = await self._call_quantity("eth_chainId")
        return self._chain_id

    async def estimate_gas(
        self,
        from_address: str,
        to_address: str,
        value: int,
        gas_fee_cap: int,
        gas_tip_cap: int,
    ) -> int:
        call = {
            "from": from_address,
            "to": to_address,
            "value": Web3.to_hex(value),
            "maxFeePerGas": Web3.to_hex(gas_fee_cap),
            "maxPriorityFeePerGas": Web3.to_hex(gas_tip_cap),
            "data": "0x",
        }
        return await self._call_quantity("eth_estimateGas", [call])

    async def send_raw_transaction(self, raw_tx: str) -> str:
        if not raw_tx.startswith("0x"):
            raw_tx = f"0x{raw_tx}"
        result = await self._call("eth_sendRawTransaction", [raw_tx])
        if not isinstance(result, str):
            raise ChainRPCError("eth_sendRawTransaction", f"unexpected result {result!r}")
        return result

    async def close(self) -> None:
        await self._client.aclose()


class JsonRpcConnector:
    """Opens connected JSON-RPC clients for network names.

    A bare host such as ``rpc.sepolia.mantle.xyz`` gets ``scheme://`` prefixed;
    full URLs are used as given.
    """

    def __init__(
        self,
        scheme: str = "https",
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.scheme = scheme
        self.timeout = timeout
        self.transport = transport

    def build_url(self, network: str) -> str:
        """RPC URL for a network name."""
        network = network.strip()
        if "://" in network:
            return network
        return f"{self.scheme}://{network}"

    async def __call__(self, network: str) -> JsonRpcChainClient:
        client = JsonRpcChainClient(
            self.build_url(network),
            timeout=self.timeout,
            transport=self.transport,
        )
        try:
            return await client.connect()
        except ChainRPCError:
            await client.close()
            raise
