"""Cooldown ledger."""

from mantle_faucet.ledger.models import AccountRecord
from mantle_faucet.ledger.repository import CooldownLedger

__all__ = ["AccountRecord", "CooldownLedger"]
