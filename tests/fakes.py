"""
In-memory stand-ins for the Solana RPC gateway and asyncio.sleep.

FakeGateway serves a fixed newest-first history and honours `before` and
`limit` like getSignaturesForAddress. Failures can be injected per method.
"""

from __future__ import annotations

import asyncio

from backend_walletscope.config.settings import LAMPORTS_PER_SOL
from backend_walletscope.core.exceptions import TransientRemoteError
from backend_walletscope.solana_rpc.models import (
    PHASE_POST,
    PHASE_PRE,
    BalanceDelta,
    SignatureRef,
    TokenBalance,
    Transaction,
)

# Valid Solana pubkeys (base58, 32 bytes)
VALID_WALLET = "9QCfNuQuxct1Xk9ytFYgxc5fThmTzL4pHQnSjjrVUrka"
VALID_WALLET_2 = "7F1WzVNQ1Qpurqxxdyv3UrFQR3uoNepULVW9A4bAJ5nZ"

MINT_A = "EPjFWdd5AufqSSqeM2qN1xzybapC8G4wEGGkZwyTDt1v"
MINT_B = "So11111111111111111111111111111111111111112"
MINT_C = "DezXAZ8z7PnrnRJjz3wXBoRgixCa6xjnB7YaB1pPB263"

NOW = 1_700_000_000
STARTING_LAMPORTS = 10 * LAMPORTS_PER_SOL


def sol(amount: float) -> int:
    return int(round(amount * LAMPORTS_PER_SOL))


def make_tx(
    signature: str,
    block_time: int | None,
    *,
    succeeded: bool = True,
    delta: int = 0,
    mints: tuple[str, ...] = (),
    owner: str = VALID_WALLET,
) -> Transaction:
    """Transaction whose account 0 moves by `delta` lamports and which holds `mints` for `owner`."""
    token_balances = []
    for i, mint in enumerate(mints, start=1):
        token_balances.append(TokenBalance(i, owner, mint, 100, 6, PHASE_PRE))
        token_balances.append(TokenBalance(i, owner, mint, 50, 6, PHASE_POST))
    return Transaction(
        signature=signature,
        block_time=block_time,
        succeeded=succeeded,
        balance_deltas=(BalanceDelta(0, STARTING_LAMPORTS, STARTING_LAMPORTS + delta),),
        token_balances=tuple(token_balances),
    )


def make_history(
    count: int,
    *,
    newest_time: int = NOW,
    step_sec: int = 60,
    prefix: str = "sig",
    **tx_kwargs,
) -> list[tuple[SignatureRef, Transaction]]:
    """`count` signature/body pairs, newest first, `step_sec` apart."""
    history = []
    for i in range(count):
        sig = f"{prefix}-{i:04d}"
        block_time = newest_time - i * step_sec
        history.append((SignatureRef(sig, block_time), make_tx(sig, block_time, **tx_kwargs)))
    return history


class RecordingSleep:
    """Async sleep replacement that records delays and returns immediately."""

    def __init__(self) -> None:
        self.delays: list[float] = []

    async def __call__(self, delay: float) -> None:
        self.delays.append(delay)


class FakeGateway:
    def __init__(
        self,
        history: list[tuple[SignatureRef, Transaction | None]] | None = None,
        *,
        signature_failures: int = 0,
        transaction_failures: dict[str, int] | None = None,
        failing_addresses: set[str] | None = None,
    ) -> None:
        history = history or []
        self.refs = [ref for ref, _ in history]
        self.bodies = {ref.signature: body for ref, body in history}
        self.signature_failures = signature_failures
        self.transaction_failures = dict(transaction_failures or {})
        self.failing_addresses = set(failing_addresses or ())
        self.signature_calls: list[tuple[str, str | None, int]] = []
        self.transaction_calls: list[str] = []
        self.in_flight = 0
        self.max_in_flight = 0

    async def list_signatures(self, address, *, before=None, limit=1000):
        self.signature_calls.append((address, before, limit))
        if address in self.failing_addresses:
            raise TransientRemoteError("address unavailable", method="getSignaturesForAddress")
        if self.signature_failures > 0:
            self.signature_failures -= 1
            raise TransientRemoteError("rate limited", method="getSignaturesForAddress", code=429)
        start = 0
        if before is not None:
            start = [r.signature for r in self.refs].index(before) + 1
        return self.refs[start:start + limit]

    async def get_transaction(self, signature, *, max_supported_version=0):
        self.transaction_calls.append(signature)
        self.in_flight += 1
        self.max_in_flight = max(self.max_in_flight, self.in_flight)
        try:
            await asyncio.sleep(0)
            remaining = self.transaction_failures.get(signature, 0)
            if remaining > 0:
                self.transaction_failures[signature] = remaining - 1
                raise TransientRemoteError("node behind", method="getTransaction")
            return self.bodies.get(signature)
        finally:
            self.in_flight -= 1
