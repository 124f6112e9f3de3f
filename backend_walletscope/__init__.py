"""
Backend WalletScope: on-chain activity reports for Solana wallets.

Pages through a wallet's transaction history over Solana JSON-RPC, fetches
transaction bodies in rate-limited batches, and folds them into two reports:
per-mint activity and time-windowed volume/frequency analysis.
"""

__version__ = "0.1.0"
