"""
Time-windowed volume / frequency / direction reducer.

Every streamed transaction counts toward the total and the observed time
range. Only successful ones contribute volume: the lamport delta of account
index 0 (the fee payer / wallet) decides direction. Volumes are summed in
lamports and converted to SOL once at finalize(), so the result does not
depend on stream order.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, AsyncIterable

from backend_walletscope.config.settings import LAMPORTS_PER_SOL
from backend_walletscope.solana_rpc.models import Transaction

VOLUME_DECIMALS = 4
FREQUENCY_DECIMALS = 2
WALLET_ACCOUNT_INDEX = 0


def _iso(ts: int | None) -> str | None:
    if ts is None:
        return None
    return datetime.fromtimestamp(ts, tz=timezone.utc).isoformat()


def _ratio(numerator: float, denominator: float) -> float:
    """numerator / denominator, or 0.0 when the denominator is zero."""
    if not denominator:
        return 0.0
    return numerator / denominator


@dataclass
class VolumeAccumulator:
    """Running scalars; volumes in lamports."""

    total_volume: int = 0
    incoming_volume: int = 0
    outgoing_volume: int = 0
    incoming_count: int = 0
    outgoing_count: int = 0
    success_count: int = 0
    total_count: int = 0
    first_time: int | None = None
    last_time: int | None = None


@dataclass(frozen=True)
class AdditionalMetrics:
    average_incoming: float = 0.0
    average_outgoing: float = 0.0
    net_balance: float = 0.0
    truncated: bool = False

    def to_dict(self) -> dict[str, Any]:
        return {
            "averageIncoming": self.average_incoming,
            "averageOutgoing": self.average_outgoing,
            "netBalance": self.net_balance,
            "truncated": self.truncated,
        }


@dataclass(frozen=True)
class TransactionAnalysis:
    """Volume/frequency report for one wallet over one window. Volumes in SOL."""

    total_transactions: int = 0
    successful_transactions: int = 0
    failed_transactions: int = 0
    transaction_frequency: float = 0.0
    total_volume: float = 0.0
    average_volume: float = 0.0
    first_transaction_time: int | None = None
    last_transaction_time: int | None = None
    incoming_volume: float = 0.0
    outgoing_volume: float = 0.0
    incoming_count: int = 0
    outgoing_count: int = 0
    additional_metrics: AdditionalMetrics = field(default_factory=AdditionalMetrics)

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalTransactions": self.total_transactions,
            "successfulTransactions": self.successful_transactions,
            "failedTransactions": self.failed_transactions,
            "transactionFrequency": self.transaction_frequency,
            "totalVolume": self.total_volume,
            "averageVolume": self.average_volume,
            "firstTransactionTime": _iso(self.first_transaction_time),
            "lastTransactionTime": _iso(self.last_transaction_time),
            "incomingVolume": self.incoming_volume,
            "outgoingVolume": self.outgoing_volume,
            "incomingCount": self.incoming_count,
            "outgoingCount": self.outgoing_count,
            "additionalMetrics": self.additional_metrics.to_dict(),
        }


class VolumeReducer:
    def __init__(self, window_hours: float) -> None:
        if not math.isfinite(window_hours) or window_hours <= 0:
            raise ValueError("window_hours must be a finite number > 0")
        self.window_hours = window_hours
        self.acc = VolumeAccumulator()

    def add(self, tx: Transaction) -> None:
        if tx.block_time is None:
            return
        acc = self.acc
        acc.total_count += 1
        acc.first_time = tx.block_time if acc.first_time is None else min(acc.first_time, tx.block_time)
        acc.last_time = tx.block_time if acc.last_time is None else max(acc.last_time, tx.block_time)
        if not tx.succeeded:
            return

        acc.success_count += 1
        delta = tx.delta_for(WALLET_ACCOUNT_INDEX)
        acc.total_volume += abs(delta)
        if delta > 0:
            acc.incoming_volume += delta
            acc.incoming_count += 1
        elif delta < 0:
            acc.outgoing_volume += -delta
            acc.outgoing_count += 1

    def finalize(self, *, truncated: bool = False) -> TransactionAnalysis:
        acc = self.acc
        total_sol = acc.total_volume / LAMPORTS_PER_SOL
        incoming_sol = acc.incoming_volume / LAMPORTS_PER_SOL
        outgoing_sol = acc.outgoing_volume / LAMPORTS_PER_SOL
        net_sol = (acc.incoming_volume - acc.outgoing_volume) / LAMPORTS_PER_SOL
        return TransactionAnalysis(
            total_transactions=acc.total_count,
            successful_transactions=acc.success_count,
            failed_transactions=acc.total_count - acc.success_count,
            transaction_frequency=round(_ratio(acc.total_count, self.window_hours), FREQUENCY_DECIMALS),
            total_volume=round(total_sol, VOLUME_DECIMALS),
            average_volume=round(_ratio(total_sol, acc.success_count), VOLUME_DECIMALS),
            first_transaction_time=acc.first_time,
            last_transaction_time=acc.last_time,
            incoming_volume=round(incoming_sol, VOLUME_DECIMALS),
            outgoing_volume=round(outgoing_sol, VOLUME_DECIMALS),
            incoming_count=acc.incoming_count,
            outgoing_count=acc.outgoing_count,
            additional_metrics=AdditionalMetrics(
                average_incoming=round(_ratio(incoming_sol, acc.incoming_count), VOLUME_DECIMALS),
                average_outgoing=round(_ratio(outgoing_sol, acc.outgoing_count), VOLUME_DECIMALS),
                net_balance=round(net_sol, VOLUME_DECIMALS),
                truncated=truncated,
            ),
        )

    async def reduce(self, stream: AsyncIterable[Transaction]) -> TransactionAnalysis:
        async for tx in stream:
            self.add(tx)
        return self.finalize(truncated=bool(getattr(stream, "truncated", False)))
