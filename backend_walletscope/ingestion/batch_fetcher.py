"""
Bounded-concurrency transaction body fetcher.

Signature references are resolved in fixed-size chunks; every fetch in a
chunk runs concurrently under its own retry, and a fixed delay follows each
chunk to stay under the RPC rate limit. Absent bodies are dropped.
"""

from __future__ import annotations

import asyncio
from typing import Awaitable, Callable, Sequence

from backend_walletscope.config.settings import BATCH_SIZE
from backend_walletscope.ingestion.retry import RetryPolicy
from backend_walletscope.solana_rpc.gateway import RpcGateway
from backend_walletscope.solana_rpc.models import SignatureRef, Transaction
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)


class BatchFetcher:
    def __init__(
        self,
        gateway: RpcGateway,
        retry: RetryPolicy,
        *,
        batch_size: int = BATCH_SIZE,
        batch_delay_sec: float = 0.0,
        max_supported_version: int = 0,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        if batch_size < 1:
            raise ValueError("batch_size must be >= 1")
        self._gateway = gateway
        self._retry = retry
        self._batch_size = batch_size
        self._batch_delay_sec = batch_delay_sec
        self._max_supported_version = max_supported_version
        self._sleep = sleep

    async def _fetch_one(self, ref: SignatureRef) -> Transaction | None:
        return await self._retry.execute(
            lambda: self._gateway.get_transaction(
                ref.signature,
                max_supported_version=self._max_supported_version,
            ),
            description=f"getTransaction:{ref.signature[:16]}",
        )

    async def _fetch_chunk(self, chunk: Sequence[SignatureRef]) -> list[Transaction | None]:
        tasks = [asyncio.ensure_future(self._fetch_one(ref)) for ref in chunk]
        try:
            return await asyncio.gather(*tasks)
        except BaseException:
            for task in tasks:
                task.cancel()
            raise

    async def fetch(self, refs: Sequence[SignatureRef]) -> list[Transaction]:
        """Resolve refs to bodies; output order within a chunk is not significant."""
        out: list[Transaction] = []
        for batch_no, start in enumerate(range(0, len(refs), self._batch_size), start=1):
            chunk = refs[start:start + self._batch_size]
            bodies = await self._fetch_chunk(chunk)
            found = [tx for tx in bodies if tx is not None]
            out.extend(found)
            logger.debug(
                "batch_fetched",
                batch=batch_no,
                batch_size=len(chunk),
                body_count=len(found),
            )
            if self._batch_delay_sec > 0:
                await self._sleep(self._batch_delay_sec)
        return out
