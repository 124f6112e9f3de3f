"""
Command-line entrypoint.

Usage:
  python -m backend_walletscope.cli mint-search <wallet> [--max-tx 50] [--filter-failed]
  python -m backend_walletscope.cli analyze <wallet> --hours 24
  python -m backend_walletscope.cli serve [--host 0.0.0.0] [--port 3000]
"""

from __future__ import annotations

import argparse
import asyncio
import json
import sys
from typing import Any

from backend_walletscope.analysis_engine.service import DEFAULT_MAX_TX_COUNT, WalletAnalysisService
from backend_walletscope.config.settings import Settings, get_settings
from backend_walletscope.core.exceptions import WalletScopeError
from backend_walletscope.solana_rpc.gateway import SolanaRpcGateway
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="walletscope")
    subparsers = parser.add_subparsers(dest="command", required=True)

    mint = subparsers.add_parser("mint-search", help="Per-mint activity of a wallet's recent transactions")
    mint.add_argument("wallet", help="Solana wallet address (base58)")
    mint.add_argument("--max-tx", type=int, default=DEFAULT_MAX_TX_COUNT, help="Transactions to scan")
    mint.add_argument("--filter-failed", action="store_true", help="Drop mints with no successful transaction")

    analyze = subparsers.add_parser("analyze", help="Volume and frequency over a time window")
    analyze.add_argument("wallet", help="Solana wallet address (base58)")
    analyze.add_argument("--hours", type=float, default=24.0, help="Window size in hours")

    serve = subparsers.add_parser("serve", help="Run the HTTP API")
    serve.add_argument("--host", default=None, help="Bind host (default: API_HOST)")
    serve.add_argument("--port", type=int, default=None, help="Bind port (default: API_PORT)")

    return parser


async def _run_report(args: argparse.Namespace, settings: Settings) -> dict[str, Any]:
    async with SolanaRpcGateway(
        settings.solana_rpc_url,
        timeout_sec=settings.request_timeout_sec,
        commitment=settings.commitment,
    ) as gateway:
        service = WalletAnalysisService(gateway, settings)
        if args.command == "mint-search":
            report = await service.analyze_mint_activity(args.wallet, args.filter_failed, args.max_tx)
            return report.to_dict()
        analysis = await service.analyze_wallet_transactions(args.wallet, args.hours)
        return analysis.to_dict()


def _serve(args: argparse.Namespace, settings: Settings) -> None:
    import uvicorn

    host = args.host or settings.api_host
    port = args.port or settings.api_port
    logger.info("cli_server_starting", host=host, port=port)
    uvicorn.run("backend_walletscope.api_server.app:app", host=host, port=port)


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        settings = get_settings()
        if args.command == "serve":
            _serve(args, settings)
            return 0
        result = asyncio.run(_run_report(args, settings))
    except WalletScopeError as e:
        print(json.dumps({"success": False, "error": str(e)}), file=sys.stderr)
        return 1
    print(json.dumps(result, indent=2))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
