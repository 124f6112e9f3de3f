"""Wallet validation utilities."""

from solders.pubkey import Pubkey

from backend_walletscope.core.exceptions import InvalidAddress


def is_valid_wallet(w: str) -> bool:
    """Return True if w is a valid Solana wallet (Pubkey) address."""
    try:
        Pubkey.from_string(w.strip())
        return True
    except Exception:
        return False


def parse_wallet(w: str) -> str:
    """Return the stripped address, or raise InvalidAddress if it is not a Pubkey."""
    if not isinstance(w, str) or not w.strip():
        raise InvalidAddress(str(w))
    address = w.strip()
    if not is_valid_wallet(address):
        raise InvalidAddress(address)
    return address


def short_wallet(w: str) -> str:
    """Shorten an address for log fields."""
    return w[:16] + "..." if len(w) > 16 else w
