"""
Main entrypoint: FastAPI server for WalletScope reports.

Env: SOLANA_RPC_URL (or HELIUS_API_KEY), API_HOST, API_PORT, LOG_LEVEL, LOG_FORMAT.

Equivalent: uvicorn backend_walletscope.api_server.app:app --host 0.0.0.0 --port 3000
"""

import os

# Configure structured JSON logging before other imports that may log
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Validate settings, then run the FastAPI server in the main thread."""
    from backend_walletscope.config.env import mask_rpc_url
    from backend_walletscope.config.settings import get_settings
    import uvicorn

    settings = get_settings()
    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        rpc_url=mask_rpc_url(settings.solana_rpc_url),
    )
    uvicorn.run(
        "backend_walletscope.api_server.app:app",
        host=settings.api_host,
        port=settings.api_port,
        log_level=os.getenv("LOG_LEVEL", "info").lower(),
    )


if __name__ == "__main__":
    main()
