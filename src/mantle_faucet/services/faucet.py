"""Faucet service.

Validates a withdrawal request, enforces the per-address cooldown and runs the
disbursement engine. Outcomes are returned as a tagged result rather than
raised, so the HTTP layer only has to render them.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from decimal import Decimal
from typing import Callable, Optional, Sequence, Union

from mantle_faucet.config import Settings, get_settings
from mantle_faucet.errors import (
    AmountLimitError,
    CooldownActiveError,
    FaucetBusyError,
    FaucetError,
    InvalidAddressError,
    UnsupportedNetworkError,
)
from mantle_faucet.ledger.repository import CooldownLedger
from mantle_faucet.utils.locks import LockTimeoutError
from mantle_faucet.withdrawal.amounts import parse_amount
from mantle_faucet.withdrawal.base import (
    DisbursementResult,
    WithdrawalRequest,
    is_valid_address,
)
from mantle_faucet.withdrawal.engine import DisbursementEngine
from mantle_faucet.withdrawal.factory import create_disbursement_engine

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class WithdrawalSuccess:
    """Funds were broadcast."""
    tx_id: str
    explorer_url: str
    success: bool = True
    status_code: int = 200


@dataclass
class WithdrawalFailure:
    """Request was rejected or a disbursement stage failed."""
    kind: str
    message: str
    status_code: int
    success: bool = False

    @classmethod
    def from_error(cls, error: FaucetError) -> "WithdrawalFailure":
        return cls(kind=error.kind, message=error.message, status_code=error.status_code)


WithdrawalOutcome = Union[WithdrawalSuccess, WithdrawalFailure]


class FaucetService:
    """Cooldown-gated disbursements.

    The ledger check, the disbursement and the ledger update run inside one
    per-address exclusive section, so concurrent requests for the same
    address cannot both pass the cooldown check.
    """

    def __init__(
        self,
        engine: DisbursementEngine,
        ledger: Optional[CooldownLedger] = None,
        interval_hours: int = 24,
        allowed_networks: Sequence[str] = (),
        max_amount: Optional[Decimal] = None,
        clock: Callable[[], datetime] = utc_now,
    ):
        self.engine = engine
        self.ledger = ledger if ledger is not None else CooldownLedger()
        self.interval_hours = interval_hours
        self.cooldown = timedelta(hours=interval_hours)
        self.allowed_networks = [n.lower() for n in allowed_networks]
        self.max_amount = max_amount
        self.clock = clock

    @classmethod
    def from_settings(cls, settings: Optional[Settings] = None, **engine_kwargs) -> "FaucetService":
        """Build the service (and its engine) from settings."""
        settings = settings or get_settings()
        max_amount = Decimal(str(settings.max_withdraw_amount)) if settings.max_withdraw_amount else None

        return cls(
            engine=create_disbursement_engine(settings, **engine_kwargs),
            ledger=CooldownLedger(lock_timeout=settings.lock_timeout),
            interval_hours=settings.interval_hours,
            allowed_networks=settings.network_allowlist,
            max_amount=max_amount,
        )

    def validate(self, request: WithdrawalRequest) -> None:
        """Reject a bad address or network before the cooldown check.

        Raises:
            ValidationError: On a bad address or network
        """
        if not is_valid_address(request.address):
            raise InvalidAddressError()

        network = request.network.strip().lower()
        if not network:
            raise UnsupportedNetworkError("Please specify a network.")
        if self.allowed_networks and network not in self.allowed_networks:
            raise UnsupportedNetworkError(f"Unsupported network: {request.network}")

    def validate_amount(self, request: WithdrawalRequest) -> None:
        """Reject a malformed or over-limit amount.

        Raises:
            ValidationError: On a bad amount
        """
        amount = parse_amount(request.amount)
        if self.max_amount is not None and amount > self.max_amount:
            raise AmountLimitError(f"You can request at most {self.max_amount} per withdrawal.")

    async def withdraw(self, request: WithdrawalRequest) -> DisbursementResult:
        """Run one cooldown-gated withdrawal.

        Raises:
            FaucetError: Validation, cooldown or disbursement failure
        """
        self.validate(request)

        if self.ledger.is_busy(request.address):
            logger.info(f"Withdrawal for {request.address} already in progress, waiting")

        try:
            async with self.ledger.hold(request.address):
                if not self.ledger.is_eligible(request.address, self.cooldown, self.clock()):
                    raise CooldownActiveError(self.interval_hours)

                # Amount is checked after the cooldown, before any chain access
                self.validate_amount(request)

                result = await self.engine.disburse(request)
                self.ledger.record(request.address, self.clock())
                return result
        except LockTimeoutError as e:
            logger.error(f"Withdrawal for {request.address} timed out waiting for a lock: {e}")
            raise FaucetBusyError() from e

    async def request_withdrawal(self, request: WithdrawalRequest) -> WithdrawalOutcome:
        """Run a withdrawal and return its tagged outcome."""
        try:
            result = await self.withdraw(request)
        except FaucetError as e:
            if e.operational:
                logger.error(f"Withdrawal to {request.address} on {request.network} failed: {e.message}")
            else:
                logger.info(f"Withdrawal to {request.address} rejected ({e.kind}): {e.message}")
            return WithdrawalFailure.from_error(e)

        return WithdrawalSuccess(tx_id=result.tx_id, explorer_url=result.explorer_url)

    def operator_address(self) -> Optional[str]:
        """Operator address, or None if the key cannot be decoded."""
        try:
            return self.engine.operator.address
        except FaucetError:
            return None
