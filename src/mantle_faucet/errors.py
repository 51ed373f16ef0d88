"""Faucet error taxonomy.

Every failure a withdrawal can hit maps to one subclass here. The HTTP layer
only needs ``status_code`` and ``message``; ``operational`` decides whether the
failure is logged as infrastructure trouble or as an expected rejection.
"""

from typing import Optional


class FaucetError(Exception):
    """Base class for all withdrawal failures."""

    status_code: int = 500
    kind: str = "internal"
    default_message: str = "Internal error"
    operational: bool = True

    def __init__(self, message: Optional[str] = None):
        self.message = message or self.default_message
        super().__init__(self.message)


# ======================
# Validation (400)
# ======================


class ValidationError(FaucetError):
    """Request is malformed. Never retried, never logged as an error."""

    status_code = 400
    kind = "validation"
    default_message = "Invalid request"
    operational = False


class InvalidAddressError(ValidationError):
    default_message = "Please check and enter a valid wallet address."


class InvalidAmountError(ValidationError):
    default_message = "Please enter a valid amount."


class AmountLimitError(ValidationError):
    default_message = "Requested amount exceeds the faucet limit."


class UnsupportedNetworkError(ValidationError):
    default_message = "Unsupported network."


# ======================
# Expected rejections
# ======================


class CooldownActiveError(FaucetError):
    """Address withdrew too recently."""

    status_code = 403
    kind = "cooldown"
    default_message = "You can only withdraw once every 24 hours."
    operational = False

    def __init__(self, interval_hours: int):
        self.interval_hours = interval_hours
        super().__init__(f"You can only withdraw once every {interval_hours} hours.")


class InsufficientFundsError(FaucetError):
    """Operator wallet cannot cover the requested amount."""

    status_code = 400
    kind = "insufficient_funds"
    default_message = "Insufficient balance"
    operational = False


# ======================
# Operational failures (5xx)
# ======================


class ChainConnectivityError(FaucetError):
    kind = "connectivity"
    default_message = "Failed to connect to Mantle client"


class BalanceFetchError(ChainConnectivityError):
    default_message = "Failed to get balance"


class OperatorKeyError(FaucetError):
    kind = "operator_key"
    default_message = "Failed to decode private key"


class NonceFetchError(FaucetError):
    kind = "nonce"
    default_message = "Failed to get nonce"


class FeeEstimationError(FaucetError):
    kind = "fee_estimation"
    default_message = "Failed to get gas price"


class TipCapFetchError(FeeEstimationError):
    default_message = "Failed to get gas tip cap"


class GasEstimationError(FeeEstimationError):
    default_message = "Failed to estimate gas"


class BroadcastError(FaucetError):
    """Broadcast failed. The node may still have accepted the transaction."""

    kind = "broadcast"
    default_message = "Failed to broadcast transaction"

    def __init__(self, message: Optional[str] = None, tx_hash: Optional[str] = None):
        self.tx_hash = tx_hash
        super().__init__(message)


class FaucetBusyError(FaucetError):
    """A faucet lock could not be acquired in time."""

    status_code = 503
    kind = "busy"
    default_message = "Faucet is busy, please try again later."
