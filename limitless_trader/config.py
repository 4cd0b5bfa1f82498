"""
Configuration module for the Limitless trader.
Loads settings from environment variables with validation.
"""

import os
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Optional
from dotenv import load_dotenv

# Load .env file if present
load_dotenv()


LIMITLESS_API_URL = "https://api.limitless.exchange"


@dataclass
class ChainConfig:
    """RPC and chain configuration."""
    rpc_urls: list[str]

    # Base mainnet
    chain_id: int = 8453


@dataclass
class WalletConfig:
    """Wallet configuration."""
    private_keys: list[str]


@dataclass(frozen=True)
class TxSettings:
    """Settings consumed by the transaction layer."""
    confirmations: int = 1
    gas_price_gwei: Decimal = Decimal("0.005")
    max_rpc_attempts: int = 5
    gas_limit_buffer: int = 10_000  # Added on top of estimate * 1.2
    allowance_timeout_seconds: float = 10.0
    # None waits for the receipt indefinitely
    receipt_timeout_seconds: Optional[float] = None


@dataclass
class MarketConfig:
    """Market discovery configuration."""
    price_oracle_ids: list[int]
    frequency: str = "hourly"
    api_url: str = LIMITLESS_API_URL


@dataclass
class LogConfig:
    """Logging configuration."""
    log_level: str
    json_logging: bool


@dataclass
class Config:
    """Main configuration container."""
    chain: ChainConfig
    wallet: WalletConfig
    tx: TxSettings
    market: MarketConfig
    logging: LogConfig = field(default_factory=lambda: LogConfig("INFO", True))


def get_env(key: str, default: Optional[str] = None, required: bool = True) -> str:
    """Get environment variable with validation."""
    value = os.getenv(key, default)
    if required and not value:
        raise ValueError(f"Required environment variable {key} is not set")
    return value or ""


def get_env_bool(key: str, default: bool = False) -> bool:
    """Get boolean environment variable."""
    value = os.getenv(key, str(default)).lower()
    return value in ("true", "1", "yes")


def get_env_int(key: str, default: int) -> int:
    """Get integer environment variable."""
    value = os.getenv(key, str(default))
    return int(value)


def get_env_decimal(key: str, default: str) -> Decimal:
    """Get decimal environment variable."""
    value = os.getenv(key, default)
    return Decimal(value)


def get_env_optional_float(key: str) -> Optional[float]:
    """Get float environment variable, None if unset or blank."""
    value = os.getenv(key, "").strip()
    return float(value) if value else None


def get_env_list(key: str) -> list[str]:
    """Get comma-separated environment variable, blanks dropped."""
    value = os.getenv(key, "")
    return [item.strip() for item in value.split(",") if item.strip()]


def load_config() -> Config:
    """Load and validate configuration from environment."""
    rpc_urls = get_env_list("RPC_URL")
    if not rpc_urls:
        raise ValueError("No RPC_URL configured")

    private_keys = get_env_list("PRIVATE_KEYS")
    if not private_keys:
        raise ValueError("No PRIVATE_KEYS configured")

    oracle_ids = [int(item) for item in get_env_list("PRICE_ORACLE_ID")]
    if not oracle_ids:
        raise ValueError("No PRICE_ORACLE_ID configured")

    return Config(
        chain=ChainConfig(
            rpc_urls=rpc_urls,
            chain_id=get_env_int("CHAIN_ID", 8453),
        ),
        wallet=WalletConfig(
            private_keys=private_keys,
        ),
        tx=TxSettings(
            confirmations=get_env_int("CONFIRMATIONS", 1),
            gas_price_gwei=get_env_decimal("GAS_PRICE_GWEI", "0.005"),
            max_rpc_attempts=get_env_int("MAX_RPC_ATTEMPTS", 5),
            receipt_timeout_seconds=get_env_optional_float("RECEIPT_TIMEOUT_SECONDS"),
        ),
        market=MarketConfig(
            price_oracle_ids=oracle_ids,
            frequency=get_env("FREQUENCY", "hourly", required=False).lower(),
            api_url=get_env("LIMITLESS_API_URL", LIMITLESS_API_URL, required=False),
        ),
        logging=LogConfig(
            log_level=get_env("LOG_LEVEL", "INFO", required=False),
            json_logging=get_env_bool("JSON_LOGGING", True),
        ),
    )
