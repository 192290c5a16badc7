"""Application configuration using pydantic-settings.

All values can be overridden through environment variables or a local .env file.
"""

from functools import lru_cache
from typing import Optional

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

SUPPORTED_NETWORKS = ("Mainnet", "Testnet", "Devnet")


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
    debug: bool = Field(default=True, description="Enable debug logging")
    log_level: Optional[str] = Field(default=None, description="Explicit log level override")

    # ======================
    # Protocol
    # ======================
    network: str = Field(default="Mainnet", description="Bridging network (Mainnet, Testnet, Devnet)")
    protocol_backend: str = Field(default="simulated", description="Protocol backend name")
    dry_run: bool = Field(default=True, description="Only allow the simulated backend")

    # ======================
    # Quoting / Transfers
    # ======================
    quote_ttl_seconds: int = Field(default=60, gt=0, description="Quote validity window")
    default_native_gas: float = Field(
        default=0.0, ge=0.0, le=1.0, description="Fraction of amount converted to destination gas"
    )
    tx_confirmation_timeout: float = Field(
        default=300.0, gt=0, description="Seconds to wait for a submitted transaction"
    )
    tx_poll_interval: float = Field(default=2.0, gt=0, description="Receipt polling interval")
    signer_lock_timeout: float = Field(
        default=30.0, gt=0, description="Seconds to wait for a busy signer"
    )

    # ======================
    # Tracking
    # ======================
    scan_api_url: str = Field(
        default="https://api.wormholescan.io", description="Transfer scanner API URL"
    )
    scan_ui_url: str = Field(
        default="https://wormholescan.io", description="Transfer scanner web URL"
    )
    http_timeout: float = Field(default=30.0, gt=0, description="HTTP client timeout")

    # ======================
    # Chain RPC Endpoints
    # ======================
    ethereum_rpc_url: str = Field(default="https://eth.llamarpc.com", description="Ethereum RPC URL")
    polygon_rpc_url: str = Field(default="https://polygon-rpc.com", description="Polygon RPC URL")
    arbitrum_rpc_url: str = Field(
        default="https://arb1.arbitrum.io/rpc", description="Arbitrum RPC URL"
    )
    optimism_rpc_url: str = Field(
        default="https://mainnet.optimism.io", description="Optimism RPC URL"
    )
    base_rpc_url: str = Field(default="https://mainnet.base.org", description="Base RPC URL")
    bsc_rpc_url: str = Field(default="https://bsc-dataseed.binance.org", description="BSC RPC URL")
    avalanche_rpc_url: str = Field(
        default="https://api.avax.network/ext/bc/C/rpc", description="Avalanche RPC URL"
    )

    @field_validator("network")
    @classmethod
    def _check_network(cls, value: str) -> str:
        for name in SUPPORTED_NETWORKS:
            if value.lower() == name.lower():
                return name
        raise ValueError(f"network must be one of {', '.join(SUPPORTED_NETWORKS)}")

    @property
    def is_production(self) -> bool:
        """Check if running in production environment."""
        return self.environment.lower() == "production"

    def get_rpc_url(self, chain: str) -> str:
        """Get RPC URL for a chain by protocol chain name."""
        rpc_map = {
            "ETHEREUM": self.ethereum_rpc_url,
            "POLYGON": self.polygon_rpc_url,
            "ARBITRUM": self.arbitrum_rpc_url,
            "OPTIMISM": self.optimism_rpc_url,
            "BASE": self.base_rpc_url,
            "BSC": self.bsc_rpc_url,
            "AVALANCHE": self.avalanche_rpc_url,
        }
        return rpc_map.get(chain.upper(), "")

    def get_safe_dict(self) -> dict:
        """Return settings dict suitable for diagnostics output."""
        return {
            "environment": self.environment,
            "debug": self.debug,
            "network": self.network,
            "protocol_backend": self.protocol_backend,
            "dry_run": self.dry_run,
            "quote_ttl_seconds": self.quote_ttl_seconds,
            "default_native_gas": self.default_native_gas,
            "tracking": {
                "api": self.scan_api_url,
                "ui": self.scan_ui_url,
            },
            "rpc": {
                name: self._redact_url(self.get_rpc_url(name))
                for name in ("Ethereum", "Polygon", "Arbitrum", "Optimism", "Base", "BSC", "Avalanche")
            },
        }

    @staticmethod
    def _redact_url(url: str) -> str:
        """Redact API keys embedded in RPC URL paths or credentials."""
        if "://" in url and "@" in url:
            proto, rest = url.split("://", 1)
            creds, host = rest.rsplit("@", 1)
            if ":" in creds:
                user, _ = creds.split(":", 1)
                return f"{proto}://{user}:***@{host}"
        return url


@lru_cache
def get_settings() -> Settings:
    """Get cached settings instance."""
    return Settings()
