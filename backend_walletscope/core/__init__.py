"""
Core cross-cutting pieces: the domain exception hierarchy shared by the
RPC gateway, retrieval engine, analysis service and API server.
"""

from backend_walletscope.core.exceptions import (
    ConfigError,
    InvalidAddress,
    InvalidWindow,
    RemoteFailure,
    TransientRemoteError,
    WalletFilesNotFound,
    WalletScopeError,
)

__all__ = [
    "ConfigError",
    "InvalidAddress",
    "InvalidWindow",
    "RemoteFailure",
    "TransientRemoteError",
    "WalletFilesNotFound",
    "WalletScopeError",
]
