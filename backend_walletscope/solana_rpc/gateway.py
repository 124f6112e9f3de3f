"""
Solana JSON-RPC gateway: getSignaturesForAddress and getTransaction.

Responsibilities:
- POST JSON-RPC bodies over a shared httpx.AsyncClient.
- Convert results into SignatureRef / Transaction models.
- Raise TransientRemoteError for any transport, HTTP-status, JSON or
  RPC-level failure. Retrying is the caller's job (ingestion.retry).
"""

from __future__ import annotations

import itertools
from typing import Any, Protocol, runtime_checkable

import httpx

from backend_walletscope.core.exceptions import TransientRemoteError
from backend_walletscope.solana_rpc.models import SignatureRef, Transaction
from backend_walletscope.walletscope_logging import get_logger

logger = get_logger(__name__)

DEFAULT_REQUEST_TIMEOUT_SEC = 60.0
DEFAULT_COMMITMENT = "confirmed"


@runtime_checkable
class RpcGateway(Protocol):
    """Capability set the retrieval engine needs from a ledger RPC."""

    async def list_signatures(
        self,
        address: str,
        *,
        before: str | None = None,
        limit: int = 1000,
    ) -> list[SignatureRef]:
        ...

    async def get_transaction(
        self,
        signature: str,
        *,
        max_supported_version: int = 0,
    ) -> Transaction | None:
        ...


class SolanaRpcGateway:
    """
    httpx-based Solana JSON-RPC client.

    Owns its AsyncClient unless one is passed in. Use as an async context
    manager, or call aclose() when done.
    """

    def __init__(
        self,
        rpc_url: str,
        *,
        timeout_sec: float = DEFAULT_REQUEST_TIMEOUT_SEC,
        commitment: str = DEFAULT_COMMITMENT,
        client: httpx.AsyncClient | None = None,
    ) -> None:
        if not rpc_url.strip():
            raise ValueError("rpc_url must be non-empty")
        self._rpc_url = rpc_url.strip()
        self._commitment = commitment
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=httpx.Timeout(timeout_sec))
        self._ids = itertools.count(1)

    async def __aenter__(self) -> "SolanaRpcGateway":
        return self

    async def __aexit__(self, *exc_info: Any) -> None:
        await self.aclose()

    async def aclose(self) -> None:
        if self._owns_client:
            await self._client.aclose()

    def _build_rpc_body(self, method: str, params: list[Any]) -> dict[str, Any]:
        return {
            "jsonrpc": "2.0",
            "id": next(self._ids),
            "method": method,
            "params": params,
        }

    async def _call(self, method: str, params: list[Any]) -> Any:
        """Perform one JSON-RPC call; return `result` or raise TransientRemoteError."""
        body = self._build_rpc_body(method, params)
        try:
            resp = await self._client.post(self._rpc_url, json=body)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as e:
            raise TransientRemoteError(
                f"Solana RPC HTTP {e.response.status_code} for {method}",
                method=method,
                code=e.response.status_code,
            ) from e
        except httpx.HTTPError as e:
            raise TransientRemoteError(f"Solana RPC transport error for {method}: {e}", method=method) from e
        except ValueError as e:
            raise TransientRemoteError(f"Solana RPC returned invalid JSON for {method}", method=method) from e

        if not isinstance(data, dict):
            raise TransientRemoteError(f"Solana RPC returned unexpected payload for {method}", method=method)
        if "error" in data:
            err = data["error"] or {}
            code = err.get("code") if isinstance(err, dict) else None
            message = err.get("message", err) if isinstance(err, dict) else err
            raise TransientRemoteError(
                f"Solana RPC error: {message} (code={code})",
                method=method,
                code=code,
            )
        return data.get("result")

    async def list_signatures(
        self,
        address: str,
        *,
        before: str | None = None,
        limit: int = 1000,
    ) -> list[SignatureRef]:
        """getSignaturesForAddress, newest first. Empty list means no more history."""
        opts: dict[str, Any] = {"limit": limit, "commitment": self._commitment}
        if before is not None:
            opts["before"] = before
        result = await self._call("getSignaturesForAddress", [address, opts])
        if result is None:
            raise TransientRemoteError("Solana RPC returned no result", method="getSignaturesForAddress")
        if not isinstance(result, list):
            raise TransientRemoteError(
                "Solana RPC returned unexpected payload",
                method="getSignaturesForAddress",
            )
        refs: list[SignatureRef] = []
        for item in result:
            if not isinstance(item, dict) or "signature" not in item:
                continue
            try:
                refs.append(SignatureRef.from_rpc_item(item))
            except (KeyError, TypeError, ValueError) as e:
                logger.debug("rpc_signature_item_skipped", error=str(e))
        return refs

    async def get_transaction(
        self,
        signature: str,
        *,
        max_supported_version: int = 0,
    ) -> Transaction | None:
        """getTransaction; None when the node has no body (or no meta) for the signature."""
        opts = {
            "encoding": "json",
            "maxSupportedTransactionVersion": max_supported_version,
            "commitment": self._commitment,
        }
        result = await self._call("getTransaction", [signature, opts])
        if not isinstance(result, dict) or not result.get("meta"):
            return None
        try:
            return Transaction.from_rpc_result(result, signature=signature)
        except (AttributeError, KeyError, TypeError, ValueError) as e:
            raise TransientRemoteError(
                f"Solana RPC returned malformed transaction {signature}: {e}",
                method="getTransaction",
            ) from e
