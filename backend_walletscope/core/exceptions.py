"""
Application-level exceptions.

InvalidAddress and InvalidWindow reject bad input before any remote call.
TransientRemoteError is what the RPC gateway raises for any failed call; the
retry policy retries it and, once the attempt ceiling is reached, raises
RemoteFailure chained to the last underlying error.
"""

from __future__ import annotations


class WalletScopeError(Exception):
    """Base class for all WalletScope errors."""


class InvalidAddress(WalletScopeError, ValueError):
    """Wallet address cannot be parsed as a Solana public key."""

    def __init__(self, address: str) -> None:
        self.address = address
        super().__init__(f"Invalid Solana wallet address: {address!r}")


class InvalidWindow(WalletScopeError, ValueError):
    """Analysis window must be a positive, finite number of hours."""

    def __init__(self, window_hours: float) -> None:
        self.window_hours = window_hours
        super().__init__(f"window_hours must be a finite number > 0, got {window_hours!r}")


class TransientRemoteError(WalletScopeError):
    """A single remote call failed (transport, HTTP status, JSON or RPC error)."""

    def __init__(self, message: str, *, method: str | None = None, code: int | None = None) -> None:
        self.method = method
        self.code = code
        super().__init__(message)


class RemoteFailure(WalletScopeError):
    """Remote call still failing after the retry ceiling; aborts the invocation."""

    def __init__(self, message: str, *, attempts: int, description: str | None = None) -> None:
        self.attempts = attempts
        self.description = description
        super().__init__(message)


class ConfigError(WalletScopeError):
    """Settings failed validation."""


class WalletFilesNotFound(WalletScopeError):
    """No readable wallet list files are available."""
