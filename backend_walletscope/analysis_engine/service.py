"""
Wallet analysis service: the two reports exposed to the API server and CLI.

- analyze_mint_activity(): count-bounded retrieval → MintActivityReducer.
- analyze_wallet_transactions(): time-bounded retrieval → VolumeReducer.
- analyze_latest_mints(): one mint search per wallet, run concurrently.

The service holds no per-call state; every invocation builds its own cursor,
fetcher and reducer, so concurrent invocations share nothing but the gateway.
"""

from __future__ import annotations

import asyncio
import math
import time
from typing import Awaitable, Callable, Iterable

from backend_walletscope.analysis_engine.mint_activity import MintActivityReducer, MintActivityReport
from backend_walletscope.analysis_engine.volume import TransactionAnalysis, VolumeReducer
from backend_walletscope.config.settings import Settings
from backend_walletscope.core.exceptions import InvalidWindow, WalletScopeError
from backend_walletscope.ingestion.pagination import CountBound, TimeBound, open_stream
from backend_walletscope.solana_rpc.gateway import RpcGateway
from backend_walletscope.utils.wallet_utils import parse_wallet, short_wallet
from backend_walletscope.walletscope_logging import bind_wallet, get_logger

logger = get_logger(__name__)

DEFAULT_MAX_TX_COUNT = 50
LATEST_MINTS_MAX_TX_COUNT = 500


class WalletAnalysisService:
    def __init__(
        self,
        gateway: RpcGateway,
        settings: Settings,
        *,
        clock: Callable[[], float] = time.time,
        sleep: Callable[[float], Awaitable[None]] = asyncio.sleep,
    ) -> None:
        self._gateway = gateway
        self._settings = settings
        self._clock = clock
        self._sleep = sleep

    async def analyze_mint_activity(
        self,
        address: str,
        filter_failed: bool = False,
        max_tx_count: int = DEFAULT_MAX_TX_COUNT,
    ) -> MintActivityReport:
        """Mint activity over the wallet's most recent `max_tx_count` transactions."""
        wallet = parse_wallet(address)
        log = bind_wallet(wallet, __name__)
        log.info("mint_activity_started", filter_failed=filter_failed, max_tx_count=max_tx_count)

        stream = open_stream(
            self._gateway,
            wallet,
            CountBound(max_tx_count),
            self._settings.mint_retrieval,
            sleep=self._sleep,
        )
        reducer = MintActivityReducer(wallet, filter_failed=filter_failed)
        try:
            records = await reducer.reduce(stream)
        except WalletScopeError as e:
            log.error("mint_activity_failed", error=str(e))
            raise

        log.info(
            "mint_activity_completed",
            mint_count=len(records),
            transactions=stream.emitted_count,
            pages=stream.pages_fetched,
            truncated=stream.truncated,
        )
        return MintActivityReport(data=records, truncated=stream.truncated)

    async def analyze_wallet_transactions(
        self,
        address: str,
        window_hours: float,
    ) -> TransactionAnalysis:
        """Volume, direction and frequency over the last `window_hours` hours."""
        wallet = parse_wallet(address)
        if not math.isfinite(window_hours) or window_hours <= 0:
            raise InvalidWindow(window_hours)
        log = bind_wallet(wallet, __name__)

        now = int(self._clock())
        start = int(now - window_hours * 3600)
        log.info("wallet_analysis_started", window_hours=window_hours, window_start=start, window_end=now)

        stream = open_stream(
            self._gateway,
            wallet,
            TimeBound(start),
            self._settings.volume_retrieval,
            sleep=self._sleep,
        )
        reducer = VolumeReducer(window_hours)
        try:
            analysis = await reducer.reduce(stream)
        except WalletScopeError as e:
            log.error("wallet_analysis_failed", error=str(e))
            raise

        log.info(
            "wallet_analysis_completed",
            total_transactions=analysis.total_transactions,
            successful_transactions=analysis.successful_transactions,
            failed_transactions=analysis.failed_transactions,
            transaction_frequency=analysis.transaction_frequency,
            total_volume=analysis.total_volume,
            pages=stream.pages_fetched,
            truncated=stream.truncated,
        )
        return analysis

    async def analyze_latest_mints(
        self,
        wallet_ids: Iterable[str],
        max_tx_count: int = LATEST_MINTS_MAX_TX_COUNT,
    ) -> list[str]:
        """
        Union of mint addresses across wallets, first-seen order.

        Each wallet is an independent invocation; one that fails is logged
        and contributes no mints.
        """
        wallets = list(dict.fromkeys(w for w in wallet_ids if w))

        async def _one(wallet: str) -> list[str]:
            try:
                report = await self.analyze_mint_activity(wallet, False, max_tx_count)
            except WalletScopeError as e:
                logger.error("latest_mints_wallet_failed", wallet_id=short_wallet(wallet), error=str(e))
                return []
            return report.mint_addresses()

        results = await asyncio.gather(*(_one(w) for w in wallets))
        mints = list(dict.fromkeys(m for batch in results for m in batch))
        logger.info("latest_mints_completed", wallet_count=len(wallets), mint_count=len(mints))
        return mints
