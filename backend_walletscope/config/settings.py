"""
Application settings and environment configuration.

Responsibilities:
- Load configuration from environment variables and .env files.
- Validate settings and provide defaults for optional ones.
- Expose typed settings (RPC URL, API port, wallet file directories and the
  per-path retrieval constants) for the retrieval engine, analysis service,
  API server and CLI.

The mint-activity and volume-analysis paths have separate retrieval
constants. They are kept as two named RetrievalConfig values rather than
unified.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from functools import lru_cache
from pathlib import Path

from backend_walletscope.config.env import (
    get_project_root,
    get_solana_rpc_url,
    load_walletscope_env,
)
from backend_walletscope.core.exceptions import ConfigError

LAMPORTS_PER_SOL = 1_000_000_000

# Gateway maximum for getSignaturesForAddress
MAX_SIGNATURES_PAGE_SIZE = 1000
MINT_PAGE_SIZE = 20
MAX_PAGES = 50
BATCH_SIZE = 5
MINT_BATCH_DELAY_SEC = 0.5
VOLUME_BATCH_DELAY_SEC = 0.3
MAX_ATTEMPTS = 3
BACKOFF_BASE_SEC = 1.0
BACKOFF_MAX_SEC = 10.0

DEFAULT_REQUEST_TIMEOUT_SEC = 60.0
DEFAULT_COMMITMENT = "confirmed"
DEFAULT_API_HOST = "0.0.0.0"
DEFAULT_API_PORT = 3000


@dataclass(frozen=True)
class RetrievalConfig:
    """Paging, batching and retry constants for one retrieval path."""

    page_size: int
    batch_delay_sec: float
    max_pages: int = MAX_PAGES
    batch_size: int = BATCH_SIZE
    max_attempts: int = MAX_ATTEMPTS
    backoff_base_sec: float = BACKOFF_BASE_SEC
    backoff_max_sec: float = BACKOFF_MAX_SEC


def default_mint_retrieval() -> RetrievalConfig:
    return RetrievalConfig(page_size=MINT_PAGE_SIZE, batch_delay_sec=MINT_BATCH_DELAY_SEC)


def default_volume_retrieval() -> RetrievalConfig:
    return RetrievalConfig(page_size=MAX_SIGNATURES_PAGE_SIZE, batch_delay_sec=VOLUME_BATCH_DELAY_SEC)


@dataclass(frozen=True)
class Settings:
    solana_rpc_url: str
    request_timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC
    commitment: str = DEFAULT_COMMITMENT
    api_host: str = DEFAULT_API_HOST
    api_port: int = DEFAULT_API_PORT
    wallets_dir: Path = field(default_factory=lambda: get_project_root() / "data" / "wallets")
    mints_dir: Path = field(default_factory=lambda: get_project_root() / "data" / "mints")
    mint_retrieval: RetrievalConfig = field(default_factory=default_mint_retrieval)
    volume_retrieval: RetrievalConfig = field(default_factory=default_volume_retrieval)


def _env_str(name: str, default: str) -> str:
    return (os.getenv(name) or "").strip() or default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be a number, got {raw!r}") from e


def _env_int(name: str, default: int) -> int:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError as e:
        raise ConfigError(f"{name} must be an integer, got {raw!r}") from e


def load_settings() -> Settings:
    """Build Settings from the environment (and .env) and validate them."""
    load_walletscope_env()
    data_dir = Path(_env_str("WALLETSCOPE_DATA_DIR", str(get_project_root() / "data")))
    mint = RetrievalConfig(
        page_size=_env_int("MINT_PAGE_SIZE", MINT_PAGE_SIZE),
        batch_delay_sec=_env_float("MINT_BATCH_DELAY_MS", MINT_BATCH_DELAY_SEC * 1000) / 1000,
        max_pages=_env_int("MAX_PAGES", MAX_PAGES),
        batch_size=_env_int("BATCH_SIZE", BATCH_SIZE),
        max_attempts=_env_int("MINT_MAX_RETRIES", MAX_ATTEMPTS),
    )
    volume = RetrievalConfig(
        page_size=_env_int("VOLUME_PAGE_SIZE", MAX_SIGNATURES_PAGE_SIZE),
        batch_delay_sec=_env_float("VOLUME_BATCH_DELAY_MS", VOLUME_BATCH_DELAY_SEC * 1000) / 1000,
        max_pages=_env_int("MAX_PAGES", MAX_PAGES),
        batch_size=_env_int("BATCH_SIZE", BATCH_SIZE),
        max_attempts=_env_int("VOLUME_MAX_RETRIES", MAX_ATTEMPTS),
    )
    settings = Settings(
        solana_rpc_url=get_solana_rpc_url(),
        request_timeout_sec=_env_float("RPC_TIMEOUT_SEC", DEFAULT_REQUEST_TIMEOUT_SEC),
        commitment=_env_str("SOLANA_COMMITMENT", DEFAULT_COMMITMENT),
        api_host=_env_str("API_HOST", DEFAULT_API_HOST),
        api_port=_env_int("API_PORT", DEFAULT_API_PORT),
        wallets_dir=data_dir / "wallets",
        mints_dir=data_dir / "mints",
        mint_retrieval=mint,
        volume_retrieval=volume,
    )
    validate_settings(settings)
    return settings


def validate_settings(settings: Settings) -> None:
    """Raise ConfigError when a setting is missing or out of range."""
    url = settings.solana_rpc_url.strip()
    if not url:
        raise ConfigError("RPC endpoint is required (SOLANA_RPC_URL)")
    if not url.startswith(("http://", "https://")):
        raise ConfigError("Invalid RPC endpoint URL format")
    if not (0 < settings.api_port <= 65535):
        raise ConfigError(f"Invalid server port: {settings.api_port}")
    if settings.request_timeout_sec <= 0:
        raise ConfigError("request_timeout_sec must be positive")
    for name, cfg in (("mint", settings.mint_retrieval), ("volume", settings.volume_retrieval)):
        if not (1 <= cfg.page_size <= MAX_SIGNATURES_PAGE_SIZE):
            raise ConfigError(f"{name} page_size must be between 1 and {MAX_SIGNATURES_PAGE_SIZE}")
        if cfg.max_pages < 1 or cfg.batch_size < 1 or cfg.max_attempts < 1:
            raise ConfigError(f"{name} max_pages, batch_size and max_attempts must be >= 1")
        if cfg.batch_delay_sec < 0 or cfg.backoff_base_sec < 0 or cfg.backoff_max_sec < 0:
            raise ConfigError(f"{name} delays must be non-negative")


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """
    Return the current application settings (loaded once per process).

    Call get_settings.cache_clear() after changing the environment.
    """
    return load_settings()
