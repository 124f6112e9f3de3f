"""
Pytest fixtures for WalletScope tests. The RPC gateway is always an in-memory
fake and sleeps are recorded instead of awaited.
"""

from __future__ import annotations

import pytest

from backend_walletscope.config.settings import Settings
from fakes import NOW, RecordingSleep


@pytest.fixture
def recording_sleep():
    return RecordingSleep()


@pytest.fixture
def settings(tmp_path):
    """Default retrieval settings with data directories under tmp_path."""
    return Settings(
        solana_rpc_url="http://rpc.test",
        wallets_dir=tmp_path / "wallets",
        mints_dir=tmp_path / "mints",
    )


@pytest.fixture
def make_service(settings, recording_sleep):
    """Factory: WalletAnalysisService over a given gateway, fixed clock, recorded sleeps."""
    from backend_walletscope.analysis_engine.service import WalletAnalysisService

    def _make(gateway):
        return WalletAnalysisService(
            gateway,
            settings,
            clock=lambda: NOW,
            sleep=recording_sleep,
        )

    return _make


@pytest.fixture
def api_client(settings, make_service):
    """
    FastAPI TestClient with the service and settings overridden.

    Returns (client, install) where install(gateway) swaps the fake gateway.
    The lifespan is not entered, so no real RPC client is created.
    """
    from fastapi.testclient import TestClient

    from backend_walletscope.api_server.server import app, get_app_settings, get_service

    state = {}

    def install(gateway):
        state["service"] = make_service(gateway)

    app.dependency_overrides[get_service] = lambda: state["service"]
    app.dependency_overrides[get_app_settings] = lambda: settings
    try:
        yield TestClient(app), install
    finally:
        app.dependency_overrides.clear()
