"""
Test Configuration Module

Tests for sui_dex_adapter.config sections and component config defaults.
"""

import logging

from sui_dex_adapter.config import (
    CacheConfig,
    Config,
    DexConfig,
    LoggingConfig,
    RetryConfig,
    TradingConfig,
    TxConfig,
    get_config,
    reload_config,
    setup_logging,
)
from sui_dex_adapter.infra import RpcClientConfig


def test_retry_defaults(monkeypatch):
    """Retry presets fall back to built-in defaults"""
    for key in ("RETRY_RPC_MAX_ATTEMPTS", "RETRY_TX_MAX_ATTEMPTS", "RETRY_JITTER"):
        monkeypatch.delenv(key, raising=False)

    retry = RetryConfig()
    assert retry.rpc_max_attempts == 5
    assert retry.rpc_base_delay == 0.5
    assert retry.tx_max_attempts == 3
    assert retry.tx_base_delay == 2.0
    assert retry.jitter is True


def test_env_overrides(monkeypatch):
    """Environment variables override defaults"""
    monkeypatch.setenv("RETRY_RPC_MAX_ATTEMPTS", "9")
    monkeypatch.setenv("RETRY_JITTER", "off")
    monkeypatch.setenv("CACHE_TTL_PRICE", "12.5")
    monkeypatch.setenv("TX_GAS_BUDGET", "1234")
    monkeypatch.setenv("DEFAULT_SLIPPAGE_PERCENT", "0.5")

    assert RetryConfig().rpc_max_attempts == 9
    assert RetryConfig().jitter is False
    assert CacheConfig().price_ttl == 12.5
    assert TxConfig().gas_budget == 1234
    assert TradingConfig().default_slippage == 0.5


def test_invalid_numbers_fall_back(monkeypatch):
    """Malformed numeric values keep the default"""
    monkeypatch.setenv("RETRY_RPC_MAX_ATTEMPTS", "many")
    monkeypatch.setenv("CACHE_TTL_POOL", "soon")

    assert RetryConfig().rpc_max_attempts == 5
    assert CacheConfig().pool_ttl == 60.0


def test_cache_as_dict(monkeypatch):
    for key in ("CACHE_TTL_POOL", "CACHE_TTL_PRICE", "CACHE_TTL_LIQUIDITY",
                "CACHE_TTL_BALANCE", "CACHE_TTL_OPPORTUNITY"):
        monkeypatch.delenv(key, raising=False)

    assert CacheConfig().as_dict() == {
        "pool": 60.0,
        "price": 30.0,
        "liquidity": 120.0,
        "balance": 300.0,
        "opportunity": 10.0,
    }


def test_dex_package_ids(monkeypatch):
    monkeypatch.setenv("MOMENTUM_PACKAGE_ID", "0xabc")
    monkeypatch.delenv("CETUS_PACKAGE_ID", raising=False)

    ids = DexConfig().package_ids()
    assert set(ids) == {"cetus", "turbos", "momentum"}
    assert ids["momentum"] == "0xabc"
    assert ids["cetus"].startswith("0x1eabed72")


def test_rpc_client_config():
    """RpcClientConfig pulls unset values from the global config"""
    assert RpcClientConfig().timeout_seconds == get_config().rpc.timeout_seconds
    assert RpcClientConfig(timeout_seconds=60).timeout_seconds == 60


def test_reload_config(monkeypatch):
    monkeypatch.setenv("SUI_RPC_URL", "https://fullnode.testnet.sui.io:443")
    try:
        reloaded = reload_config()
        assert isinstance(reloaded, Config)
        assert reloaded.rpc.url == "https://fullnode.testnet.sui.io:443"
        assert get_config() is reloaded
    finally:
        monkeypatch.delenv("SUI_RPC_URL")
        reload_config()


def test_setup_logging_writes_file(tmp_path):
    log_file = tmp_path / "logs" / "adapter.log"
    log_config = LoggingConfig(
        log_file=str(log_file),
        log_level="DEBUG",
        console_output=False,
    )

    logger = setup_logging(log_config, logger_name="sui_dex_adapter_test")
    logger.info("hello")
    for handler in logger.handlers:
        handler.flush()

    assert logger.level == logging.DEBUG
    assert log_file.exists()
    assert "hello" in log_file.read_text(encoding="utf-8")

    for handler in logger.handlers[:]:
        handler.close()
        logger.removeHandler(handler)


def test_logging_level_fallback():
    assert LoggingConfig(log_file="", log_level="chatty").level == logging.INFO
    assert LoggingConfig(log_file="", log_level="warning").level == logging.WARNING
