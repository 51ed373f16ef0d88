"""Utility modules for the faucet."""

from mantle_faucet.utils.locks import KeyedLockRegistry, LockTimeoutError

__all__ = ["KeyedLockRegistry", "LockTimeoutError"]
