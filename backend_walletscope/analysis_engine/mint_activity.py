"""
Per-mint activity reducer.

For every transaction, the token balances (pre and post) owned by the target
wallet name the mints it touched. Each distinct mint gets one count per
transaction, split by success/failure, and remembers the latest block time.
Counter updates are commutative, so stream order does not matter.
"""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Any, AsyncIterable

from backend_walletscope.solana_rpc.models import Transaction

TOKEN_TYPE_DEFAULT = "TOKEN"


def _iso(ts: int | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


@dataclass
class MintCounter:
    mint: str
    total_count: int = 0
    success_count: int = 0
    failed_count: int = 0
    last_seen_time: int = 0


@dataclass(frozen=True)
class MintActivityRecord:
    mint_address: str
    total_count: int
    success_count: int
    failed_count: int
    last_transaction_time: int
    type: str = TOKEN_TYPE_DEFAULT

    def to_dict(self) -> dict[str, Any]:
        return {
            "mintAddress": self.mint_address,
            "totalCount": self.total_count,
            "successCount": self.success_count,
            "failedCount": self.failed_count,
            "lastTransactionTime": _iso(self.last_transaction_time),
            "type": self.type,
        }


@dataclass(frozen=True)
class MintActivityReport:
    data: list[MintActivityRecord]
    truncated: bool = False

    def mint_addresses(self) -> list[str]:
        return [r.mint_address for r in self.data]

    def to_dict(self) -> dict[str, Any]:
        return {
            "data": [r.to_dict() for r in self.data],
            "truncated": self.truncated,
        }


class MintActivityReducer:
    """Folds transactions into MintCounter entries keyed by mint (first-encounter order)."""

    def __init__(self, target_owner: str, *, filter_failed: bool = False) -> None:
        self.target_owner = target_owner
        self.filter_failed = filter_failed
        self._counters: dict[str, MintCounter] = {}

    def add(self, tx: Transaction) -> None:
        if tx.block_time is None:
            return
        for mint in tx.mints_owned_by(self.target_owner):
            counter = self._counters.get(mint)
            if counter is None:
                counter = self._counters[mint] = MintCounter(mint=mint)
            counter.total_count += 1
            if tx.succeeded:
                counter.success_count += 1
            else:
                counter.failed_count += 1
            counter.last_seen_time = max(counter.last_seen_time, tx.block_time)

    def finalize(self) -> list[MintActivityRecord]:
        return [
            MintActivityRecord(
                mint_address=c.mint,
                total_count=c.total_count,
                success_count=c.success_count,
                failed_count=c.failed_count,
                last_transaction_time=c.last_seen_time,
            )
            for c in self._counters.values()
            if not self.filter_failed or c.success_count > 0
        ]

    async def reduce(self, stream: AsyncIterable[Transaction]) -> list[MintActivityRecord]:
        async for tx in stream:
            self.add(tx)
        return self.finalize()
