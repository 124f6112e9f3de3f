"""
Solana RPC package.

JSON-RPC gateway (getSignaturesForAddress / getTransaction) and the
normalized SignatureRef / Transaction models the retrieval engine consumes.
"""

from backend_walletscope.solana_rpc.gateway import RpcGateway, SolanaRpcGateway
from backend_walletscope.solana_rpc.models import (
    BalanceDelta,
    SignatureRef,
    TokenBalance,
    Transaction,
)

__all__ = [
    "BalanceDelta",
    "RpcGateway",
    "SignatureRef",
    "SolanaRpcGateway",
    "TokenBalance",
    "Transaction",
]
