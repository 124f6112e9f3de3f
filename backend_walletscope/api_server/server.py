"""
FastAPI server: thin HTTP façade over WalletAnalysisService.

Routes:
  GET  /health
  POST /api/mint-search           per-mint activity for one wallet
  POST /api/wallet-analysis       time-windowed volume/frequency analysis
  GET  /api/latest-mintslist      mints across wallets from the newest wallet files

The service and settings are provided through dependencies so tests can
override them; the RPC gateway lives for the lifetime of the app.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
from typing import Any

from fastapi import Depends, FastAPI, Query, Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from backend_walletscope import __version__
from backend_walletscope.analysis_engine.service import (
    DEFAULT_MAX_TX_COUNT,
    LATEST_MINTS_MAX_TX_COUNT,
    WalletAnalysisService,
)
from backend_walletscope.config.env import mask_rpc_url
from backend_walletscope.config.settings import Settings, get_settings
from backend_walletscope.core.exceptions import InvalidAddress, WalletFilesNotFound
from backend_walletscope.solana_rpc.gateway import SolanaRpcGateway
from backend_walletscope.storage.wallet_files import get_latest_wallet_ids, save_to_json
from backend_walletscope.utils.wallet_utils import short_wallet
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Request models
# -----------------------------------------------------------------------------

class MintSearchRequest(BaseModel):
    """POST /api/mint-search body."""

    walletAddress: str | None = Field(None, description="Solana wallet address (base58)")
    filterFailed: bool = Field(False, description="Drop mints with no successful transaction")
    maxTxCount: int = Field(DEFAULT_MAX_TX_COUNT, ge=1, le=5000, description="Transactions to scan")


class WalletAnalysisRequest(BaseModel):
    """POST /api/wallet-analysis body."""

    walletAddress: str = Field(..., min_length=1, description="Solana wallet address (base58)")
    timeframeHours: float = Field(24.0, gt=0, description="Analysis window in hours")


# -----------------------------------------------------------------------------
# Lifespan and dependencies
# -----------------------------------------------------------------------------

@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open one RPC gateway for the app; close it on shutdown."""
    settings = get_settings()
    gateway = SolanaRpcGateway(
        settings.solana_rpc_url,
        timeout_sec=settings.request_timeout_sec,
        commitment=settings.commitment,
    )
    app.state.analysis_service = WalletAnalysisService(gateway, settings)
    logger.info("api_started", rpc_url=mask_rpc_url(settings.solana_rpc_url))
    try:
        yield
    finally:
        await gateway.aclose()
        logger.info("api_stopped")


def get_app_settings() -> Settings:
    return get_settings()


def get_service(request: Request) -> WalletAnalysisService:
    return request.app.state.analysis_service


def _failure(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    content: dict[str, Any] = {"success": False, "error": error}
    if details is not None:
        content["details"] = details
    return JSONResponse(status_code=status_code, content=content)


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="Backend WalletScope API",
    description="Mint activity and volume analysis for Solana wallets.",
    version=__version__,
    lifespan=lifespan,
)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness probe: API is up."""
    return {"status": "ok"}


@app.post("/api/mint-search")
async def mint_search(
    body: MintSearchRequest,
    service: WalletAnalysisService = Depends(get_service),
):
    wallet = (body.walletAddress or "").strip()
    if not wallet:
        return _failure(400, "Wallet address is required")
    logger.info(
        "api_mint_search",
        wallet_id=short_wallet(wallet),
        filter_failed=body.filterFailed,
        max_tx_count=body.maxTxCount,
    )
    try:
        report = await service.analyze_mint_activity(wallet, body.filterFailed, body.maxTxCount)
    except InvalidAddress as e:
        return _failure(400, "Invalid wallet address", str(e))
    except Exception as e:
        logger.exception("api_mint_search_failed", wallet_id=short_wallet(wallet), error=str(e))
        return _failure(500, "Mint search failed", str(e))
    return {"success": True, "data": report.to_dict()}


@app.post("/api/wallet-analysis")
async def wallet_analysis(
    body: WalletAnalysisRequest,
    service: WalletAnalysisService = Depends(get_service),
):
    wallet = body.walletAddress.strip()
    logger.info("api_wallet_analysis", wallet_id=short_wallet(wallet), timeframe_hours=body.timeframeHours)
    try:
        analysis = await service.analyze_wallet_transactions(wallet, body.timeframeHours)
    except InvalidAddress as e:
        return _failure(400, "Invalid wallet address", str(e))
    except Exception as e:
        logger.exception("api_wallet_analysis_failed", wallet_id=short_wallet(wallet), error=str(e))
        return _failure(500, "Wallet analysis failed", str(e))
    return {"success": True, "data": analysis.to_dict()}


@app.get("/api/latest-mintslist")
async def latest_mints_list(
    wallet_files: int = Query(1, alias="walletFiles", ge=1, le=100),
    save: bool = Query(False),
    service: WalletAnalysisService = Depends(get_service),
    settings: Settings = Depends(get_app_settings),
):
    """Mint addresses touched by the wallets listed in the newest wallet files."""
    try:
        wallet_ids = get_latest_wallet_ids(settings.wallets_dir, wallet_files)
    except WalletFilesNotFound as e:
        return _failure(500, "Failed to get latest mints list", str(e))
    logger.info("api_latest_mints", wallet_count=len(wallet_ids))

    mints = await service.analyze_latest_mints(wallet_ids, LATEST_MINTS_MAX_TX_COUNT)
    if save:
        save_to_json({"walletIds": wallet_ids, "mints": mints}, settings.mints_dir, prefix="mints")
    return mints
