"""Application configuration using pydantic-settings.

Network, token and collaborator endpoints for the custodial transfer flow.
"""

from enum import Enum
from functools import lru_cache
from typing import Optional

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

# USDC precision is fixed for the token in scope
TOKEN_DECIMALS = 6

BASE_NETWORK_ID = 8453
BASE_USDC_CONTRACT = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"


class WalletSelection(str, Enum):
    """How a wallet/account is picked when the provider lists several."""
    FIRST = "first"     # Index 0, whatever the count
    SINGLE = "single"   # Exactly one expected, more is an error


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # ======================
    # Environment
    # ======================
    environment: str = Field(default="development", description="Runtime environment")
    debug: bool = Field(default=False, description="Enable debug logging")
    dry_run: bool = Field(
        default=True, description="Use simulated custody and relay services (no real transfers)"
    )

    # ======================
    # Key management (Turnkey)
    # ======================
    turnkey_api_url: str = Field(
        default="https://api.turnkey.com", description="Turnkey API base URL"
    )
    turnkey_organization_id: str = Field(default="", description="Parent organization ID")
    turnkey_api_public_key: Optional[str] = Field(
        default=None, description="API key public half (compressed P-256, hex)"
    )
    turnkey_api_private_key: Optional[str] = Field(
        default=None, description="API key private half (P-256 scalar, hex)"
    )
    wallet_selection: WalletSelection = Field(
        default=WalletSelection.FIRST, description="Wallet/account selection policy"
    )

    # ======================
    # Account-abstraction relay (Enclave)
    # ======================
    enclave_api_url: str = Field(
        default="https://api.enclave.money", description="Enclave relay base URL"
    )
    enclave_api_key: str = Field(default="", description="Enclave relay API key")

    # ======================
    # Network / token
    # ======================
    network_id: int = Field(default=BASE_NETWORK_ID, description="Target chain ID")
    token_contract: str = Field(default=BASE_USDC_CONTRACT, description="ERC-20 token contract")
    token_symbol: str = Field(default="USDC", description="Token display symbol")

    # ======================
    # Runtime
    # ======================
    poll_interval_ms: int = Field(default=2000, gt=0, description="Balance polling cadence")
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP timeout in seconds")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    @property
    def has_api_key(self) -> bool:
        """Check if a Turnkey API key pair is configured."""
        return bool(self.turnkey_api_public_key and self.turnkey_api_private_key)

    def get_safe_dict(self) -> dict:
        """Return settings dict with secrets redacted."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "dry_run": self.dry_run,
            "turnkey": {
                "api_url": self.turnkey_api_url,
                "organization_id": self.turnkey_organization_id or "(not set)",
                "api_key": "***" if self.has_api_key else "(not set)",
                "wallet_selection": self.wallet_selection.value,
            },
            "enclave": {
                "api_url": self.enclave_api_url,
                "api_key": "***" if self.enclave_api_key else "(not set)",
            },
            "network_id": self.network_id,
            "token": {
                "symbol": self.token_symbol,
                "contract": self.token_contract,
                "decimals": TOKEN_DECIMALS,
            },
            "poll_interval_ms": self.poll_interval_ms,
        }


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
