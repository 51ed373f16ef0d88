"""Factory for the disbursement engine."""

from typing import Optional

import httpx

from mantle_faucet.config import Settings, get_settings
from mantle_faucet.signing.local import OperatorIdentity
from mantle_faucet.withdrawal.engine import DisbursementEngine
from mantle_faucet.withdrawal.rpc import JsonRpcConnector
from mantle_faucet.withdrawal.sequencer import NonceSequencer


def create_disbursement_engine(
    settings: Optional[Settings] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> DisbursementEngine:
    """Build a DisbursementEngine wired to JSON-RPC endpoints.

    Args:
        settings: Settings to use (defaults to the cached environment settings)
        transport: Optional httpx transport, e.g. a MockTransport in tests
    """
    settings = settings or get_settings()

    connector = JsonRpcConnector(
        scheme=settings.rpc_scheme,
        timeout=settings.rpc_timeout,
        transport=transport,
    )

    return DisbursementEngine(
        connector=connector,
        operator=OperatorIdentity(settings.operator_private_key),
        sequencer=NonceSequencer(lock_timeout=settings.lock_timeout),
        explorer_url=settings.explorer_url,
        decimals=settings.asset_decimals,
    )
