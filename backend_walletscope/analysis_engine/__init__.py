"""
Analysis engine: reducers that fold a transaction stream into reports,
and the service that wires retrieval to them.
"""

from backend_walletscope.analysis_engine.mint_activity import (
    MintActivityRecord,
    MintActivityReducer,
    MintActivityReport,
    MintCounter,
)
from backend_walletscope.analysis_engine.service import WalletAnalysisService
from backend_walletscope.analysis_engine.volume import (
    AdditionalMetrics,
    TransactionAnalysis,
    VolumeAccumulator,
    VolumeReducer,
)

__all__ = [
    "AdditionalMetrics",
    "MintActivityRecord",
    "MintActivityReducer",
    "MintActivityReport",
    "MintCounter",
    "TransactionAnalysis",
    "VolumeAccumulator",
    "VolumeReducer",
    "WalletAnalysisService",
]
