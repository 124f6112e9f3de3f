"""Local JSON files: wallet lists in, mint lists out."""

from backend_walletscope.storage.wallet_files import get_latest_wallet_ids, save_to_json

__all__ = ["get_latest_wallet_ids", "save_to_json"]
