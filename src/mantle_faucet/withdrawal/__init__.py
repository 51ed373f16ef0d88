"""Withdrawal module for sending faucet transactions.

This module handles building, signing, and broadcasting disbursements.
"""

from mantle_faucet.withdrawal.base import DisbursementResult, WithdrawalRequest
from mantle_faucet.withdrawal.engine import DisbursementEngine
from mantle_faucet.withdrawal.factory import create_disbursement_engine

__all__ = [
    "DisbursementEngine",
    "DisbursementResult",
    "WithdrawalRequest",
    "create_disbursement_engine",
]
