"""Ledger data models."""

from dataclasses import dataclass
from datetime import datetime


@dataclass(frozen=True)
class AccountRecord:
    """Last successful withdrawal for one address."""
    address: str
    last_withdraw_time: datetime
