"""Application settings read from environment variables."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass
from typing import Callable, Mapping, Optional, TypeVar

from dotenv import load_dotenv

log = logging.getLogger(__name__)

T = TypeVar("T")

_UINT_RE = re.compile(r"\+?[0-9]+")
_FLOAT_RE = re.compile(
    r"[+-]?(?:inf|infinity|nan|(?:[0-9]+\.?[0-9]*|\.[0-9]+)(?:e[+-]?[0-9]+)?)",
    re.IGNORECASE,
)


class ConfigError(ValueError):
    """Raised when the configuration is unusable."""


def _uint_parser(bits: int) -> Callable[[str], Optional[int]]:
    limit = 1 << bits

    def parse(text: str) -> Optional[int]:
        if not _UINT_RE.fullmatch(text):
            return None
        value = int(text)
        return value if value < limit else None

    return parse


_parse_u8 = _uint_parser(8)
_parse_u64 = _uint_parser(64)


def _parse_float(text: str) -> Optional[float]:
    return float(text) if _FLOAT_RE.fullmatch(text) else None


def _parse_bool(text: str) -> Optional[bool]:
    return {"true": True, "false": False}.get(text)


def _parse_ttl_map(text: str) -> dict[str, int]:
    """Parse "name:secs,name:secs", skipping entries that do not parse."""
    ttls: dict[str, int] = {}
    for part in text.split(","):
        pieces = part.split(":")
        if len(pieces) < 2:
            continue
        value = _parse_u64(pieces[1].strip())
        if value is not None:
            ttls[pieces[0].strip()] = value
    return ttls


@dataclass
class Config:
    """All tunable settings of the bot."""

    redis_url: str = "redis://localhost"
    redis_default_ttl_secs: int = 60
    dex_quote_cache_ttl_secs: Optional[dict[str, int]] = None
    volatility_tracker_window: Optional[int] = None
    dynamic_threshold_update_interval_secs: Optional[int] = None
    volatility_threshold_factor: Optional[float] = None
    congestion_update_interval_secs: Optional[int] = None
    execution_chunk_size: Optional[int] = None
    sol_price_usd: Optional[float] = None
    degradation_profit_factor: Optional[float] = None
    degradation_slippage_factor: Optional[float] = None
    pool_read_timeout_ms: Optional[int] = None
    health_check_token_symbol: Optional[str] = None
    rpc_url: str = "http://127.0.0.1:8899"
    rpc_url_backup: Optional[list[str]] = None
    rpc_max_retries: Optional[int] = None
    rpc_retry_delay_ms: Optional[int] = None
    trader_wallet_keypair_path: str = ".config/solana/id.json"
    default_priority_fee_lamports: int = 10000
    max_transaction_timeout_seconds: int = 60
    paper_trading: bool = False
    ws_url: str = "ws://127.0.0.1:8900"
    ws_update_channel_size: Optional[int] = None
    min_profit_pct: float = 0.001
    max_slippage_pct: float = 0.005
    cycle_interval_seconds: int = 5
    health_check_interval_secs: Optional[int] = None
    max_ws_reconnect_attempts: Optional[int] = None
    metrics_log_path: Optional[str] = None

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "Config":
        """Build a config from environment variables; unparsable values fall back to defaults."""
        env = os.environ if environ is None else environ

        def optional(name: str, parser: Callable[[str], Optional[T]]) -> Optional[T]:
            raw = env.get(name)
            return None if raw is None else parser(raw)

        def required(name: str, default: T, parser: Callable[[str], Optional[T]]) -> T:
            value = optional(name, parser)
            return default if value is None else value

        backup = env.get("RPC_URL_BACKUP")
        ttl_map = env.get("DEX_QUOTE_CACHE_TTL_SECS")

        return cls(
            redis_url=env.get("REDIS_URL", "redis://localhost"),
            redis_default_ttl_secs=required("REDIS_DEFAULT_TTL_SECS", 60, _parse_u64),
            dex_quote_cache_ttl_secs=None if ttl_map is None else _parse_ttl_map(ttl_map),
            volatility_tracker_window=optional("VOLATILITY_TRACKER_WINDOW", _parse_u64),
            dynamic_threshold_update_interval_secs=optional(
                "DYNAMIC_THRESHOLD_UPDATE_INTERVAL_SECS", _parse_u64
            ),
            volatility_threshold_factor=optional("VOLATILITY_THRESHOLD_FACTOR", _parse_float),
            congestion_update_interval_secs=optional("CONGESTION_UPDATE_INTERVAL_SECS", _parse_u64),
            execution_chunk_size=optional("EXECUTION_CHUNK_SIZE", _parse_u8),
            sol_price_usd=optional("SOL_PRICE_USD", _parse_float),
            degradation_profit_factor=optional("DEGRADATION_PROFIT_FACTOR", _parse_float),
            degradation_slippage_factor=optional("DEGRADATION_SLIPPAGE_FACTOR", _parse_float),
            pool_read_timeout_ms=optional("POOL_READ_TIMEOUT_MS", _parse_u64),
            health_check_token_symbol=env.get("HEALTH_CHECK_TOKEN_SYMBOL"),
            rpc_url=env.get("RPC_URL", "http://127.0.0.1:8899"),
            rpc_url_backup=None if backup is None else backup.split(","),
            rpc_max_retries=optional("RPC_MAX_RETRIES", _parse_u64),
            rpc_retry_delay_ms=optional("RPC_RETRY_DELAY_MS", _parse_u64),
            trader_wallet_keypair_path=env.get("TRADER_WALLET_KEYPAIR_PATH", ".config/solana/id.json"),
            default_priority_fee_lamports=required("DEFAULT_PRIORITY_FEE_LAMPORTS", 10000, _parse_u64),
            max_transaction_timeout_seconds=required("MAX_TRANSACTION_TIMEOUT_SECONDS", 60, _parse_u64),
            paper_trading=required("PAPER_TRADING", False, _parse_bool),
            ws_url=env.get("WS_URL", "ws://127.0.0.1:8900"),
            ws_update_channel_size=optional("WS_UPDATE_CHANNEL_SIZE", _parse_u64),
            min_profit_pct=required("MIN_PROFIT_PCT", 0.001, _parse_float),
            max_slippage_pct=required("MAX_SLIPPAGE_PCT", 0.005, _parse_float),
            cycle_interval_seconds=required("CYCLE_INTERVAL_SECONDS", 5, _parse_u64),
            health_check_interval_secs=optional("HEALTH_CHECK_INTERVAL_SECS", _parse_u64),
            max_ws_reconnect_attempts=optional("MAX_WS_RECONNECT_ATTEMPTS", _parse_u8),
            metrics_log_path=env.get("METRICS_LOG_PATH"),
        )

    def validate_and_log(self) -> None:
        """Log the configuration and complain about suspicious values."""
        log.info("Application Configuration Loaded: %r", self)
        if not self.rpc_url:
            log.error("CRITICAL: RPC_URL environment variable is not set or empty.")
        if not self.trader_wallet_keypair_path:
            log.error("CRITICAL: TRADER_WALLET_KEYPAIR_PATH environment variable is not set or empty.")
        if self.min_profit_pct <= 0.0 or self.min_profit_pct >= 1.0:
            log.warning(
                "MIN_PROFIT_PCT (%s) is outside the typical range (0.0 to 1.0, exclusive of 0). "
                "Ensure it's a fraction (e.g., 0.001 for 0.1%%).",
                self.min_profit_pct,
            )


def load_config(environ: Optional[Mapping[str, str]] = None) -> Config:
    """Load and check the configuration; reads a .env file when no mapping is given."""
    if environ is None:
        load_dotenv()
        environ = os.environ
    config = Config.from_env(environ)
    if not config.rpc_url:
        raise ConfigError("RPC_URL cannot be empty")
    if not config.redis_url:
        raise ConfigError("REDIS_URL cannot be empty")
    config.validate_and_log()
    return config