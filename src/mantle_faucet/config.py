"""Application configuration using pydantic-settings.

All values come from environment variables (or a local .env file).
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # API
    # ======================
    api_host: str = Field(default="0.0.0.0", description="API server host")
    api_port: int = Field(default=8080, description="API server port")

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug mode")

    # ======================
    # Faucet policy
    # ======================
    interval_hours: int = Field(
        default=24, ge=0, description="Hours an address must wait between withdrawals"
    )
    max_withdraw_amount: float = Field(
        default=0.0, ge=0, description="Maximum amount per request (0 = unlimited)"
    )
    allowed_networks: str = Field(
        default="", description="Comma-separated list of accepted network hosts (empty = any)"
    )
    asset_decimals: int = Field(default=18, description="Decimals of the native asset")

    # ======================
    # Operator wallet
    # ======================
    operator_private_key: Optional[str] = Field(
        default=None, description="Hex private key of the faucet operator wallet"
    )

    # ======================
    # Chain access
    # ======================
    rpc_scheme: str = Field(
        default="https", description="Scheme prefixed to bare network host names"
    )
    rpc_timeout: float = Field(default=30.0, description="JSON-RPC request timeout in seconds")
    explorer_url: str = Field(
        default="https://explorer.sepolia.mantle.xyz/tx/",
        description="Block explorer base URL; the tx hash is appended",
    )

    # ======================
    # Concurrency
    # ======================
    lock_timeout: float = Field(
        default=30.0, description="Seconds to wait for an address or nonce lock"
    )

    @property
    def network_allowlist(self) -> list[str]:
        """Parse allowed networks into a list of lower-cased hosts."""
        if not self.allowed_networks:
            return []
        return [n.strip().lower() for n in self.allowed_networks.split(",") if n.strip()]

    @property
    def has_operator_key(self) -> bool:
        """Check if an operator key is configured."""
        return bool(self.operator_private_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "api_host": self.api_host,
            "api_port": self.api_port,
            "interval_hours": self.interval_hours,
            "max_withdraw_amount": self.max_withdraw_amount,
            "allowed_networks": self.network_allowlist or "(any)",
            "asset_decimals": self.asset_decimals,
            "operator_private_key": "***" if self.has_operator_key else "(not set)",
            "rpc_scheme": self.rpc_scheme,
            "rpc_timeout": self.rpc_timeout,
            "explorer_url": self.explorer_url,
            "lock_timeout": self.lock_timeout,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
