"""
Configuration management for Sui DEX Adapter

Loads settings from environment variables and .env file.
Includes logging configuration with file output and correlation ID support.
"""

import os
import logging
from dataclasses import dataclass, field
from logging.handlers import RotatingFileHandler
from pathlib import Path
from typing import Dict, Optional, List

from dotenv import load_dotenv


def _load_env_file():
    """Load .env file from project root"""
    current = Path(__file__).parent.parent  # sui_dex_adapter package parent
    env_file = current / ".env"

    if env_file.exists():
        load_dotenv(env_file)


# Load .env on module import
_load_env_file()


def _get_env(key: str, default: Optional[str] = "") -> Optional[str]:
    """Get environment variable with default"""
    value = os.getenv(key)
    if value is None:
        return default
    return value


def _get_env_float(key: str, default: float) -> float:
    """Get environment variable as float"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return float(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid float value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_int(key: str, default: int) -> int:
    """Get environment variable as int"""
    value = os.getenv(key)
    if value is None:
        return default
    try:
        return int(value)
    except ValueError:
        logging.getLogger(__name__).warning(
            f"Invalid int value for {key}='{value}', using default={default}"
        )
        return default


def _get_env_bool(key: str, default: bool) -> bool:
    """Get environment variable as bool"""
    value = os.getenv(key)
    if value is None:
        return default
    return value.lower() in ("true", "1", "yes", "on")


MAINNET_RPC_URL = "https://fullnode.mainnet.sui.io:443"


@dataclass
class RpcConfig:
    """RPC client configuration"""
    url: str = field(default_factory=lambda: _get_env("SUI_RPC_URL", MAINNET_RPC_URL))
    timeout_seconds: float = field(default_factory=lambda: _get_env_float("RPC_TIMEOUT_SECONDS", 30.0))


@dataclass
class SignerConfig:
    """Signer configuration for local keypair signing"""
    private_key: str = field(default_factory=lambda: _get_env("SUI_PRIVATE_KEY", ""))
    keystore_path: str = field(default_factory=lambda: _get_env("SUI_KEYSTORE_PATH", ""))


@dataclass
class TxConfig:
    """Transaction configuration"""
    # Gas budget in MIST (1 SUI = 1e9 MIST)
    gas_budget: int = field(default_factory=lambda: _get_env_int("TX_GAS_BUDGET", 50_000_000))
    # local_execution | effects_cert | full_block
    wait_mode: str = field(default_factory=lambda: _get_env("TX_WAIT_MODE", "local_execution"))


@dataclass
class RetryConfig:
    """
    Retry presets

    rpc_*: read calls against the node (rate limits, timeouts, dropped connections)
    tx_*: transaction submission (gas estimation, object locks, congestion)
    """
    rpc_max_attempts: int = field(default_factory=lambda: _get_env_int("RETRY_RPC_MAX_ATTEMPTS", 5))
    rpc_base_delay: float = field(default_factory=lambda: _get_env_float("RETRY_RPC_BASE_DELAY", 0.5))
    rpc_max_delay: float = field(default_factory=lambda: _get_env_float("RETRY_RPC_MAX_DELAY", 10.0))
    tx_max_attempts: int = field(default_factory=lambda: _get_env_int("RETRY_TX_MAX_ATTEMPTS", 3))
    tx_base_delay: float = field(default_factory=lambda: _get_env_float("RETRY_TX_BASE_DELAY", 2.0))
    tx_max_delay: float = field(default_factory=lambda: _get_env_float("RETRY_TX_MAX_DELAY", 15.0))
    backoff_multiplier: float = field(default_factory=lambda: _get_env_float("RETRY_BACKOFF_MULTIPLIER", 2.0))
    jitter: bool = field(default_factory=lambda: _get_env_bool("RETRY_JITTER", True))


@dataclass
class CacheConfig:
    """
    Per-namespace cache TTLs in seconds

    These reflect staleness tolerance, not correctness requirements.
    """
    pool_ttl: float = field(default_factory=lambda: _get_env_float("CACHE_TTL_POOL", 60.0))
    price_ttl: float = field(default_factory=lambda: _get_env_float("CACHE_TTL_PRICE", 30.0))
    liquidity_ttl: float = field(default_factory=lambda: _get_env_float("CACHE_TTL_LIQUIDITY", 120.0))
    balance_ttl: float = field(default_factory=lambda: _get_env_float("CACHE_TTL_BALANCE", 300.0))
    opportunity_ttl: float = field(default_factory=lambda: _get_env_float("CACHE_TTL_OPPORTUNITY", 10.0))

    def as_dict(self) -> Dict[str, float]:
        return {
            "pool": self.pool_ttl,
            "price": self.price_ttl,
            "liquidity": self.liquidity_ttl,
            "balance": self.balance_ttl,
            "opportunity": self.opportunity_ttl,
        }


@dataclass
class DexConfig:
    """On-chain program (package) identifiers per DEX"""
    cetus_package_id: str = field(default_factory=lambda: _get_env(
        "CETUS_PACKAGE_ID",
        "0x1eabed72c53feb3805120a081dc15963c204dc8d091542592abaf7a35689b2fb",
    ))
    turbos_package_id: str = field(default_factory=lambda: _get_env(
        "TURBOS_PACKAGE_ID",
        "0x91bfbc386a41af6d3f9c8c308dcaa68c2540e725",
    ))
    # No public default: must be configured before the adapter is registered
    momentum_package_id: str = field(default_factory=lambda: _get_env("MOMENTUM_PACKAGE_ID", ""))
    # Most recent pool-creation events returned by monitor_new_pools()
    pool_monitor_limit: int = field(default_factory=lambda: _get_env_int("POOL_MONITOR_LIMIT", 20))
    # Upper bound on events scanned when enumerating candidate pools for a pair
    pool_scan_limit: int = field(default_factory=lambda: _get_env_int("POOL_SCAN_LIMIT", 200))

    def package_ids(self) -> Dict[str, str]:
        return {
            "cetus": self.cetus_package_id,
            "turbos": self.turbos_package_id,
            "momentum": self.momentum_package_id,
        }


def _get_default_log_path() -> str:
    """Get default log file path under sui_dex_adapter/log/ with UTC timestamp"""
    from datetime import datetime, timezone
    timestamp = datetime.now(timezone.utc).strftime("%Y%m%d_%H%M%S")
    log_dir = Path(__file__).parent / "log"
    return str(log_dir / f"sui_dex_adapter_{timestamp}.log")


@dataclass
class LoggingConfig:
    """
    Logging configuration with file output and correlation ID support.

    Environment variables:
        LOG_FILE: Path to log file (empty disables file output)
        LOG_LEVEL: DEBUG, INFO, WARNING, ERROR, CRITICAL (default: INFO)
        LOG_FORMAT: Custom log format string
        LOG_CONSOLE: Enable console output (default: true)
        LOG_MAX_BYTES: Max log file size before rotation (default: 10MB)
        LOG_BACKUP_COUNT: Number of backup files to keep (default: 5)
    """
    log_file: str = field(default_factory=lambda: _get_env("LOG_FILE", _get_default_log_path()))
    log_level: str = field(default_factory=lambda: _get_env("LOG_LEVEL", "INFO"))
    log_format: str = field(default_factory=lambda: _get_env(
        "LOG_FORMAT",
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s"
    ))
    console_output: bool = field(default_factory=lambda: _get_env_bool("LOG_CONSOLE", True))
    max_bytes: int = field(default_factory=lambda: _get_env_int("LOG_MAX_BYTES", 10 * 1024 * 1024))  # 10MB
    backup_count: int = field(default_factory=lambda: _get_env_int("LOG_BACKUP_COUNT", 5))

    @property
    def level(self) -> int:
        """Get numeric log level"""
        return getattr(logging, self.log_level.upper(), logging.INFO)


@dataclass
class TradingConfig:
    """Default trading parameters"""
    # Percent, converted to basis points with floor(slippage * 100)
    default_slippage: float = field(default_factory=lambda: _get_env_float("DEFAULT_SLIPPAGE_PERCENT", 1.5))


@dataclass
class Config:
    """
    Main configuration container

    Loads all settings from environment variables and .env file.
    Loaded once at process start and treated as read-only afterwards.

    Usage:
        from sui_dex_adapter.config import config

        print(config.rpc.url)
        print(config.dex.cetus_package_id)
    """
    rpc: RpcConfig = field(default_factory=RpcConfig)
    signer: SignerConfig = field(default_factory=SignerConfig)
    tx: TxConfig = field(default_factory=TxConfig)
    retry: RetryConfig = field(default_factory=RetryConfig)
    cache: CacheConfig = field(default_factory=CacheConfig)
    dex: DexConfig = field(default_factory=DexConfig)
    trading: TradingConfig = field(default_factory=TradingConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    @classmethod
    def reload(cls) -> "Config":
        """Reload configuration from environment"""
        _load_env_file()
        return cls()


# Global config instance
config = Config()


def get_config() -> Config:
    """Get global configuration instance"""
    return config


def reload_config() -> Config:
    """Reload and return new configuration"""
    global config
    config = Config.reload()
    return config


def setup_logging(
    log_config: Optional[LoggingConfig] = None,
    logger_name: str = "sui_dex_adapter",
) -> logging.Logger:
    """
    Set up logging based on configuration.

    Creates handlers for file and/or console output with optional rotation.
    The log file directory is created automatically if it doesn't exist.

    Args:
        log_config: Logging configuration (uses global config if None)
        logger_name: Name of the logger to configure (default: sui_dex_adapter)

    Returns:
        Configured logger instance
    """
    if log_config is None:
        log_config = config.logging

    logger = logging.getLogger(logger_name)
    logger.setLevel(log_config.level)

    # Close handlers before removing to flush buffers and release file handles
    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)

    formatter = logging.Formatter(log_config.log_format)

    handlers: List[logging.Handler] = []

    if log_config.log_file:
        log_path = Path(log_config.log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = RotatingFileHandler(
            log_config.log_file,
            maxBytes=log_config.max_bytes,
            backupCount=log_config.backup_count,
            encoding='utf-8',
        )
        file_handler.setLevel(log_config.level)
        file_handler.setFormatter(formatter)
        handlers.append(file_handler)

    if log_config.console_output:
        console_handler = logging.StreamHandler()
        console_handler.setLevel(log_config.level)
        console_handler.setFormatter(formatter)
        handlers.append(console_handler)

    for handler in handlers:
        logger.addHandler(handler)

    # Child loggers inherit handlers from parent
    for name in [
        f"{logger_name}.infra",
        f"{logger_name}.protocols",
    ]:
        logging.getLogger(name).setLevel(log_config.level)

    if log_config.log_file:
        logger.info(f"Logging initialized: file={log_config.log_file}, level={log_config.log_level}")

    return logger
