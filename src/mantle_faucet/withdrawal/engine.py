"""Disbursement engine.

Turns a validated, cooldown-approved request into a broadcast transaction.
Each stage either succeeds or raises its own ``FaucetError``; nothing is
retried.
"""

import logging
from typing import Optional

from web3 import Web3

from mantle_faucet.errors import (
    BalanceFetchError,
    BroadcastError,
    ChainConnectivityError,
    FaucetError,
    FeeEstimationError,
    GasEstimationError,
    InsufficientFundsError,
    InvalidAddressError,
    NonceFetchError,
    TipCapFetchError,
)
from mantle_faucet.signing.local import OperatorIdentity
from mantle_faucet.withdrawal.amounts import to_smallest_unit
from mantle_faucet.withdrawal.base import (
    ChainClient,
    ChainConnector,
    ChainRPCError,
    DisbursementResult,
    UnsignedDisbursement,
    WithdrawalRequest,
)
from mantle_faucet.withdrawal.sequencer import NonceSequencer

logger = logging.getLogger(__name__)


class DisbursementEngine:
    """Builds, signs and broadcasts faucet transfers from the operator wallet."""

    def __init__(
        self,
        connector: ChainConnector,
        operator: OperatorIdentity,
        sequencer: Optional[NonceSequencer] = None,
        explorer_url: str = "",
        decimals: int = 18,
    ):
        """Initialize engine.

        Args:
            connector: Opens a connected ChainClient for a network name
            operator: Signing identity of the faucet wallet
            sequencer: Shared nonce sequencer (one per process)
            explorer_url: Base URL the tx hash is appended to
            decimals: Decimals of the native asset
        """
        self.connector = connector
        self.operator = operator
        self.sequencer = sequencer if sequencer is not None else NonceSequencer()
        self.explorer_url = explorer_url
        self.decimals = decimals

    @staticmethod
    def _fail(error: FaucetError, network: str, cause: Exception) -> FaucetError:
        logger.error(f"{error.message} on {network}: {cause}")
        return error

    async def disburse(self, request: WithdrawalRequest) -> DisbursementResult:
        """Send ``request.amount`` to ``request.address`` on ``request.network``.

        Raises:
            FaucetError: The stage-specific failure that aborted the pipeline
        """
        amount_wei = to_smallest_unit(request.amount, self.decimals)

        try:
            to_address = Web3.to_checksum_address(request.address)
        except ValueError:
            raise InvalidAddressError()

        try:
            client = await self.connector(request.network)
        except ChainRPCError as e:
            raise self._fail(ChainConnectivityError(), request.network, e) from e

        async with client:
            return await self._disburse(client, request.network, to_address, amount_wei)

    async def _disburse(
        self,
        client: ChainClient,
        network: str,
        to_address: str,
        amount_wei: int,
    ) -> DisbursementResult:
        from_address = self.operator.address

        try:
            balance = await client.get_balance(from_address)
        except ChainRPCError as e:
            raise self._fail(BalanceFetchError(), network, e) from e

        if balance < amount_wei:
            logger.warning(
                f"Operator {from_address} balance {balance} below requested {amount_wei} on {network}"
            )
            raise InsufficientFundsError()

        try:
            chain_id = await client.get_chain_id()
        except ChainRPCError as e:
            raise self._fail(ChainConnectivityError("Failed to get network ID"), network, e) from e

        # Nonces are counted per endpoint and chain
        chain = (network.strip().lower(), chain_id)

        async def fetch_pending_nonce() -> int:
            try:
                return await client.get_pending_nonce(from_address)
            except ChainRPCError as e:
                raise self._fail(NonceFetchError(), network, e) from e

        async with self.sequencer.reserve(from_address, chain, fetch_pending_nonce) as reservation:
            try:
                gas_fee_cap = await client.suggest_gas_price()
            except ChainRPCError as e:
                raise self._fail(FeeEstimationError(), network, e) from e

            try:
                gas_tip_cap = await client.suggest_gas_tip_cap()
            except ChainRPCError as e:
                raise self._fail(TipCapFetchError(), network, e) from e

            # A fee cap below the tip is rejected by every node
            gas_fee_cap = max(gas_fee_cap, gas_tip_cap)

            try:
                gas_limit = await client.estimate_gas(
                    from_address, to_address, amount_wei, gas_fee_cap, gas_tip_cap
                )
            except ChainRPCError as e:
                raise self._fail(GasEstimationError(), network, e) from e

            unsigned = UnsignedDisbursement(
                from_address=from_address,
                to_address=to_address,
                amount_wei=amount_wei,
                nonce=reservation.nonce,
                gas_fee_cap=gas_fee_cap,
                gas_tip_cap=gas_tip_cap,
                gas_limit=gas_limit,
                chain_id=chain_id,
            )

            try:
                signed = self.operator.sign_transaction(unsigned.to_transaction())
            except (TypeError, ValueError) as e:
                raise self._fail(BroadcastError("Failed to sign transaction"), network, e) from e

            try:
                node_hash = await client.send_raw_transaction(signed.raw_hex)
            except ChainRPCError as e:
                logger.error(f"Signed tx {signed.tx_hash} (nonce {unsigned.nonce}) was not accepted")
                raise self._fail(BroadcastError(tx_hash=signed.tx_hash), network, e) from e

            reservation.commit()

        if node_hash.lower() != signed.tx_hash.lower():
            logger.warning(f"Node returned tx hash {node_hash}, expected {signed.tx_hash}")

        logger.info(
            f"Disbursed {amount_wei} wei to {to_address} on {network}: "
            f"{signed.tx_hash} (nonce {unsigned.nonce})"
        )

        return DisbursementResult(
            tx_id=signed.tx_hash,
            explorer_url=f"{self.explorer_url}{signed.tx_hash}",
            amount_wei=amount_wei,
            nonce=unsigned.nonce,
            from_address=from_address,
            to_address=to_address,
        )
