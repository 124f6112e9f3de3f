"""
Configuration management for Backend WalletScope.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for service configuration.
"""

from backend_walletscope.config.settings import (  # noqa: F401
    RetrievalConfig,
    Settings,
    get_settings,
)

__all__ = ["RetrievalConfig", "Settings", "get_settings"]
