"""Mantle faucet: cooldown-gated native token disbursements over HTTP."""

__version__ = "0.1.0"
