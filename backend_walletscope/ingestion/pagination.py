"""
Signature pagination and the transaction stream built on top of it.

PaginationCursor walks getSignaturesForAddress newest → oldest using the
`before` cursor and decides when to stop:

- empty page, or a page shorter than the requested limit (end of history);
- CountBound: enough bodies fetched;
- TimeBound: the newest reference of a page already precedes the window
  start (no bodies are fetched for that page), or nothing in the page is
  inside the window;
- page ceiling reached. This is a degraded success: the stream is marked
  `truncated` and whatever was emitted so far stands.

TransactionStream pairs the cursor with a BatchFetcher and yields validated
Transaction objects lazily, one page at a time. It is finite and can only be
iterated once.
"""

from __future__ import annotations

import asyncio
import enum
from dataclasses import dataclass
from typing import AsyncIterator, Awaitable, Callable, Sequence, Union

from backend_walletscope.config.settings import MAX_PAGES, RetrievalConfig
from backend_walletscope.ingestion.batch_fetcher import BatchFetcher
from backend_walletscope.ingestion.retry import RetryPolicy
from backend_walletscope.solana_rpc.gateway import RpcGateway
from backend_walletscope.solana_rpc.models import SignatureRef, Transaction
from backend_walletscope.utils.wallet_utils import short_wallet
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class CountBound:
    """Stop once max_count transaction bodies have been fetched."""

    max_count: int


@dataclass(frozen=True)
class TimeBound:
    """Stop once history is older than start_epoch_seconds."""

    start_epoch_seconds: int


StopCondition = Union[CountBound, TimeBound]


class CursorState(enum.Enum):
    FETCHING_PAGE = "fetching_page"
    FILTERING = "filtering"
    DONE = "done"


class PaginationCursor:
    """
    Per-retrieval cursor state machine. Never shared between invocations.

    next_page() performs FETCHING_PAGE and returns the references to fetch
    (entering FILTERING), or [] once DONE. accept() performs FILTERING on the
    fetched bodies, advances `before` and either returns to FETCHING_PAGE or
    finishes.
    """

    def __init__(
        self,
        gateway: RpcGateway,
        address: str,
        stop: StopCondition,
        *,
        retry: RetryPolicy,
        page_size: int,
        max_pages: int = MAX_PAGES,
    ) -> None:
        if page_size < 1:
            raise ValueError("page_size must be >= 1")
        self._gateway = gateway
        self._address = address
        self._stop = stop
        self._retry = retry
        self._page_size = page_size
        self._max_pages = max_pages

        self.before: str | None = None
        self.page_index = 1
        self.fetched_count = 0
        self.state = CursorState.FETCHING_PAGE
        self.truncated = False
        self.stop_reason: str | None = None

        self._raw_page: list[SignatureRef] = []
        self._requested_limit = 0

    @property
    def done(self) -> bool:
        return self.state is CursorState.DONE

    def _finish(self, reason: str) -> None:
        self.state = CursorState.DONE
        self.stop_reason = reason
        logger.info(
            "pagination_done",
            wallet_id=short_wallet(self._address),
            reason=reason,
            page_index=self.page_index,
            fetched_count=self.fetched_count,
            truncated=self.truncated,
        )

    def _request_limit(self) -> int:
        if isinstance(self._stop, CountBound):
            return min(self._page_size, self._stop.max_count - self.fetched_count)
        return self._page_size

    def _in_window(self, block_time: int | None) -> bool:
        if block_time is None:
            return False
        if isinstance(self._stop, TimeBound):
            return block_time >= self._stop.start_epoch_seconds
        return True

    async def next_page(self) -> list[SignatureRef]:
        if self.state is CursorState.DONE:
            return []
        if self.state is not CursorState.FETCHING_PAGE:
            raise RuntimeError(f"next_page() called in state {self.state.value}")

        limit = self._request_limit()
        if limit <= 0:
            self._finish("count_satisfied")
            return []

        before = self.before
        raw = await self._retry.execute(
            lambda: self._gateway.list_signatures(self._address, before=before, limit=limit),
            description="getSignaturesForAddress",
        )
        logger.info(
            "pagination_page_fetched",
            wallet_id=short_wallet(self._address),
            page_index=self.page_index,
            signature_count=len(raw),
            newest_time=raw[0].block_time if raw else None,
            oldest_time=raw[-1].block_time if raw else None,
        )
        if not raw:
            self._finish("end_of_history")
            return []

        refs = list(raw)
        if isinstance(self._stop, TimeBound):
            newest = raw[0].block_time
            if newest is not None and newest < self._stop.start_epoch_seconds:
                self._finish("before_window")
                return []
            refs = [r for r in raw if self._in_window(r.block_time)]
            if not refs:
                self._finish("no_refs_in_window")
                return []

        self._raw_page = list(raw)
        self._requested_limit = limit
        self.state = CursorState.FILTERING
        return refs

    def accept(self, bodies: Sequence[Transaction]) -> list[Transaction]:
        if self.state is not CursorState.FILTERING:
            raise RuntimeError(f"accept() called in state {self.state.value}")

        self.fetched_count += len(bodies)
        survivors = [tx for tx in bodies if self._in_window(tx.block_time)]
        dropped = len(bodies) - len(survivors)
        if dropped:
            logger.debug(
                "pagination_bodies_dropped",
                wallet_id=short_wallet(self._address),
                page_index=self.page_index,
                dropped=dropped,
            )

        raw = self._raw_page
        self.before = raw[-1].signature
        page_index = self.page_index
        self.page_index += 1
        self._raw_page = []

        if len(raw) < self._requested_limit:
            self._finish("short_page")
        elif isinstance(self._stop, CountBound) and self.fetched_count >= self._stop.max_count:
            self._finish("count_satisfied")
        elif page_index >= self._max_pages:
            self.truncated = True
            logger.warning(
                "pagination_page_ceiling_reached",
                wallet_id=short_wallet(self._address),
                max_pages=self._max_pages,
            )
            self._finish("page_ceiling")
        else:
            self.state = CursorState.FETCHING_PAGE
        return survivors


class TransactionStream:
    """Lazy, single-use async iterator of validated transactions."""

    def __init__(self, cursor: PaginationCursor, fetcher: BatchFetcher) -> None:
        self._cursor = cursor
        self._fetcher = fetcher
        self._started = False
        self.emitted_count = 0

    @property
    def truncated(self) -> bool:
        return self._cursor.truncated

    @property
    def pages_fetched(self) -> int:
        return self._cursor.page_index - 1

    @property
    def cursor(self) -> PaginationCursor:
        return self._cursor

    def __aiter__(self) -> AsyncIterator[Transaction]:
        if self._started:
            raise RuntimeError("TransactionStream can only be iterated once")
        self._started = True
        return self._iterate()

    async def _iterate(self) -> AsyncIterator[Transaction]:
        while not self._cursor.done:
            refs = await self._cursor.next_page()
            if not refs:
                break
            bodies = await self._fetcher.fetch(refs)
            for tx in self._cursor.accept(bodies):
                self.emitted_count += 1
                yield tx


def open_stream(
    gateway: RpcGateway,
    address: str,
    stop: StopCondition,
    retrieval: RetrievalConfig,
    *,
    sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
) -> TransactionStream:
    """Wire retry policy, batch fetcher and cursor for one retrieval."""
    retry = RetryPolicy(
        retrieval.max_attempts,
        base_delay_sec=retrieval.backoff_base_sec,
        max_delay_sec=retrieval.backoff_max_sec,
        sleep=sleep,
    )
    fetcher = BatchFetcher(
        gateway,
        retry,
        batch_size=retrieval.batch_size,
        batch_delay_sec=retrieval.batch_delay_sec,
        sleep=sleep,
    )
    cursor = PaginationCursor(
        gateway,
        address,
        stop,
        retry=retry,
        page_size=retrieval.page_size,
        max_pages=retrieval.max_pages,
    )
    return TransactionStream(cursor, fetcher)
