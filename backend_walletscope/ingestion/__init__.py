# Transaction retrieval: retry policy, batch fetcher, pagination cursor, stream.

from backend_walletscope.ingestion.batch_fetcher import BatchFetcher
from backend_walletscope.ingestion.pagination import (
    CountBound,
    CursorState,
    PaginationCursor,
    StopCondition,
    TimeBound,
    TransactionStream,
    open_stream,
)
from backend_walletscope.ingestion.retry import RetryPolicy

__all__ = [
    "BatchFetcher",
    "CountBound",
    "CursorState",
    "PaginationCursor",
    "RetryPolicy",
    "StopCondition",
    "TimeBound",
    "TransactionStream",
    "open_stream",
]
