"""Transaction signing for the operator wallet."""

from mantle_faucet.signing.local import OperatorIdentity, SignedDisbursement

__all__ = ["OperatorIdentity", "SignedDisbursement"]
