"""
Wallet list JSON files.

Discovered wallet lists are stored as `<prefix>-<timestamp>.json` files shaped
{"timestamp": ..., "walletIds": [...], "rawData": ...}. File names sort
chronologically, so the newest files are the last ones by name.
"""

from __future__ import annotations

import json
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from backend_walletscope.core.exceptions import WalletFilesNotFound
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)


def get_latest_wallet_ids(directory: str | Path, max_files: int = 10) -> list[str]:
    """De-duplicated wallet ids from the newest `max_files` wallet files."""
    wallets_dir = Path(directory)
    if not wallets_dir.is_dir():
        raise WalletFilesNotFound(f"Wallets directory not found: {wallets_dir}")
    files = sorted((p for p in wallets_dir.glob("*.json") if p.is_file()), key=lambda p: p.name, reverse=True)
    if not files:
        raise WalletFilesNotFound(f"No wallet files found in {wallets_dir}")

    ids: dict[str, None] = {}
    for path in files[:max_files]:
        try:
            payload = json.loads(path.read_text(encoding="utf-8"))
        except ValueError as e:
            raise WalletFilesNotFound(f"Unreadable wallet file {path.name}: {e}") from e
        wallet_ids = payload.get("walletIds") if isinstance(payload, dict) else None
        if not isinstance(wallet_ids, list):
            raise WalletFilesNotFound(f"Wallet file {path.name} has no walletIds list")
        for wallet_id in wallet_ids:
            if isinstance(wallet_id, str) and wallet_id.strip():
                ids.setdefault(wallet_id.strip(), None)
    logger.info("wallet_files_loaded", file_count=min(len(files), max_files), wallet_count=len(ids))
    return list(ids)


def save_to_json(data: Any, directory: str | Path, prefix: str = "data") -> Path:
    """Write data to `<directory>/<prefix>-<UTC timestamp>.json`; create the directory if needed."""
    out_dir = Path(directory)
    out_dir.mkdir(parents=True, exist_ok=True)
    stamp = datetime.now(timezone.utc).strftime("%Y-%m-%dT%H-%M-%S-%fZ")
    path = out_dir / f"{prefix}-{stamp}.json"
    path.write_text(json.dumps(data, indent=2), encoding="utf-8")
    logger.info("json_saved", path=str(path))
    return path
