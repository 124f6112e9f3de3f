"""
FastAPI/ASGI application entrypoint.

Run with: uvicorn backend_walletscope.api_server.app:app --host 0.0.0.0 --port 3000
"""

from backend_walletscope.api_server.server import app

__all__ = ["app"]
