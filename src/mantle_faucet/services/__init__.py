"""Application services."""

from mantle_faucet.services.faucet import (
    FaucetService,
    WithdrawalFailure,
    WithdrawalOutcome,
    WithdrawalSuccess,
)

__all__ = [
    "FaucetService",
    "WithdrawalFailure",
    "WithdrawalOutcome",
    "WithdrawalSuccess",
]
