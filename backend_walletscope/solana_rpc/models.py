"""
Data models for Solana RPC responses.

SignatureInfo-style references from getSignaturesForAddress and the subset
of a getTransaction body the reducers need: success flag, lamport balances
per account and token balances (pre/post) with owner and mint.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

PHASE_PRE = "pre"
PHASE_POST = "post"


@dataclass(frozen=True)
class SignatureRef:
    """
    One getSignaturesForAddress result item.

    The gateway returns these newest-first; the signature doubles as the
    `before` pagination cursor.
    """

    signature: str
    block_time: int | None  # Unix timestamp; None if not available
    slot: int | None = None
    err: Any = None  # None if success; dict/object from RPC if failed

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any]) -> "SignatureRef":
        """Build from a single getSignaturesForAddress result item."""
        block_time = item.get("blockTime")
        slot = item.get("slot")
        return cls(
            signature=item["signature"],
            block_time=int(block_time) if block_time is not None else None,
            slot=int(slot) if slot is not None else None,
            err=item.get("err"),
        )


@dataclass(frozen=True)
class BalanceDelta:
    """Lamport balance of one account before and after the transaction."""

    account_index: int
    lamports_before: int
    lamports_after: int

    @property
    def delta(self) -> int:
        return self.lamports_after - self.lamports_before


@dataclass(frozen=True)
class TokenBalance:
    """One entry of meta.preTokenBalances / meta.postTokenBalances."""

    account_index: int
    owner: str | None
    mint: str | None
    amount: int
    decimals: int | None
    phase: str  # "pre" | "post"

    @classmethod
    def from_rpc_item(cls, item: dict[str, Any], phase: str) -> "TokenBalance":
        ui = item.get("uiTokenAmount") or {}
        raw_amount = ui.get("amount")
        try:
            amount = int(raw_amount) if raw_amount is not None else 0
        except (TypeError, ValueError):
            amount = 0
        decimals = ui.get("decimals")
        return cls(
            account_index=int(item.get("accountIndex") or 0),
            owner=item.get("owner"),
            mint=item.get("mint"),
            amount=amount,
            decimals=int(decimals) if decimals is not None else None,
            phase=phase,
        )


@dataclass(frozen=True)
class Transaction:
    """
    Transaction body as seen by the reducers.

    Only transactions with a concrete block_time are ever handed to a reducer;
    the pagination layer drops the rest.
    """

    signature: str
    block_time: int | None
    succeeded: bool
    balance_deltas: tuple[BalanceDelta, ...] = ()
    token_balances: tuple[TokenBalance, ...] = ()

    def delta_for(self, account_index: int) -> int:
        """Lamport delta of the given account index; 0 if the account is missing."""
        for bd in self.balance_deltas:
            if bd.account_index == account_index:
                return bd.delta
        return 0

    def mints_owned_by(self, owner: str) -> list[str]:
        """Distinct mints (pre ∪ post) whose token balance belongs to owner, first-seen order."""
        seen: dict[str, None] = {}
        for tb in self.token_balances:
            if tb.owner == owner and tb.mint:
                seen.setdefault(tb.mint, None)
        return list(seen)

    @classmethod
    def from_rpc_result(cls, result: dict[str, Any], signature: str | None = None) -> "Transaction":
        """
        Build from a getTransaction result (json or jsonParsed encoding).

        Missing pre/post balances are read as 0, matching how the RPC omits
        them for accounts it has no data for.
        """
        meta = result.get("meta") or {}
        tx = result.get("transaction") or {}
        sigs = tx.get("signatures") if isinstance(tx, dict) else None
        if signature is None:
            signature = sigs[0] if sigs else ""

        pre = meta.get("preBalances") or []
        post = meta.get("postBalances") or []
        deltas = tuple(
            BalanceDelta(
                account_index=i,
                lamports_before=int(pre[i]) if i < len(pre) else 0,
                lamports_after=int(post[i]) if i < len(post) else 0,
            )
            for i in range(max(len(pre), len(post)))
        )

        token_balances: list[TokenBalance] = []
        for item in meta.get("preTokenBalances") or []:
            if isinstance(item, dict):
                token_balances.append(TokenBalance.from_rpc_item(item, PHASE_PRE))
        for item in meta.get("postTokenBalances") or []:
            if isinstance(item, dict):
                token_balances.append(TokenBalance.from_rpc_item(item, PHASE_POST))

        block_time = result.get("blockTime")
        return cls(
            signature=signature,
            block_time=int(block_time) if block_time is not None else None,
            succeeded=meta.get("err") is None,
            balance_deltas=deltas,
            token_balances=tuple(token_balances),
        )
