"""State transition entrypoints for the escrow specs."""

from __future__ import annotations

from copy import deepcopy
from dataclasses import replace
from typing import Optional

from .config import MAX_NONCE_GAP, MAX_TXS_PER_BLOCK
from .errors import ErrorCode, SpecError
from .types import ChainState, Receipt, Transaction, TransactionType
from .tx import core as tx_core
from .tx import escrow as tx_escrow

_ESCROW_TYPES = frozenset({
    TransactionType.CREATE_ESCROW,
    TransactionType.APPROVE_ESCROW,
    TransactionType.REVOKE_ESCROW,
})


class TransitionResult:
    """Thin wrapper for verify/apply results."""

    def __init__(
        self,
        ok: bool,
        error: Optional[SpecError] = None,
        receipts: Optional[list[Receipt]] = None,
    ):
        self.ok = ok
        self.error = error
        self.receipts = receipts or []

    @property
    def receipt(self) -> Optional[Receipt]:
        return self.receipts[-1] if self.receipts else None

    @classmethod
    def success(cls, receipts: Optional[list[Receipt]] = None) -> "TransitionResult":
        return cls(True, None, receipts)

    @classmethod
    def failure(cls, error: SpecError) -> "TransitionResult":
        return cls(False, error)


def _dispatch_verify(state: ChainState, tx: Transaction) -> None:
    tt = tx.tx_type
    if tt == TransactionType.TRANSFER:
        return tx_core.verify(state, tx)
    if tt in _ESCROW_TYPES:
        return tx_escrow.verify(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"verify not implemented for {tx.tx_type}")


def _dispatch_apply(state: ChainState, tx: Transaction) -> ChainState:
    tt = tx.tx_type
    if tt == TransactionType.TRANSFER:
        return tx_core.apply(state, tx)
    if tt in _ESCROW_TYPES:
        return tx_escrow.apply(state, tx)

    raise SpecError(ErrorCode.NOT_IMPLEMENTED, f"apply not implemented for {tx.tx_type}")


def _verify_common(state: ChainState, tx: Transaction) -> None:
    if tx.chain_id != state.network_chain_id:
        raise SpecError(ErrorCode.INVALID_TYPE, "chain_id mismatch")

    sender = state.accounts.get(tx.source)
    if sender is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")

    if tx.value < 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "value negative")

    # Nonce range rules (verification phase)
    if tx.nonce < sender.nonce:
        raise SpecError(ErrorCode.NONCE_TOO_LOW, "nonce too low")

    if tx.nonce > sender.nonce + MAX_NONCE_GAP:
        raise SpecError(ErrorCode.NONCE_TOO_HIGH, "nonce too high")


def verify_tx(state: ChainState, tx: Transaction) -> TransitionResult:
    """Stateless + stateful verification for a single tx."""
    try:
        _verify_common(state, tx)
        _dispatch_verify(state, tx)
        return TransitionResult.success()
    except SpecError as exc:
        return TransitionResult.failure(exc)


def _require_strict_nonce(sender_nonce: int, tx_nonce: int) -> None:
    if tx_nonce < sender_nonce:
        raise SpecError(ErrorCode.NONCE_TOO_LOW, "nonce too low")
    if tx_nonce > sender_nonce:
        raise SpecError(ErrorCode.NONCE_TOO_HIGH, "nonce too high")


def apply_tx(state: ChainState, tx: Transaction) -> tuple[ChainState, TransitionResult]:
    """Apply tx to state after verification.

    Failed-tx semantics:
    - Pre-validation failure: no nonce, no logs, state unchanged
    - Execution failure (e.g. a refused payout): state unchanged, including
      any latch the execution had already staged
    """
    # Pre-validation
    try:
        _verify_common(state, tx)
        # Strict nonce validation happens before execution.
        sender = state.accounts[tx.source]
        _require_strict_nonce(sender.nonce, tx.nonce)
        _dispatch_verify(state, tx)
    except SpecError as exc:
        return state, TransitionResult.failure(exc)

    working = deepcopy(state)
    logs_before = len(working.logs)
    next_id = working.next_escrow_id

    try:
        working = _dispatch_apply(working, tx)
    except SpecError as exc:
        # Execution failure: state unchanged
        return state, TransitionResult.failure(exc)

    # Success: advance nonce and the in-block tx position
    sender = working.accounts[tx.source]
    sender.nonce += 1
    working.pending_tx_index += 1

    receipt = Receipt(
        tx_type=tx.tx_type,
        source=tx.source,
        block_number=working.global_state.block_height,
        logs=list(working.logs[logs_before:]),
        escrow_id=next_id if tx.tx_type == TransactionType.CREATE_ESCROW else None,
    )
    return working, TransitionResult.success([receipt])


def apply_block(state: ChainState, txs: list[Transaction]) -> tuple[ChainState, TransitionResult]:
    """Apply a block worth of transactions in order (block-atomic semantics).

    If any transaction fails, the entire block is rejected and the state is
    unchanged.
    """
    if len(txs) > MAX_TXS_PER_BLOCK:
        return state, TransitionResult.failure(
            SpecError(ErrorCode.INVALID_FORMAT, "too many transactions in block")
        )

    working = state
    receipts: list[Receipt] = []
    for tx in txs:
        working, result = apply_tx(working, tx)
        if not result.ok:
            return state, result
        receipts.extend(result.receipts)

    working = replace(
        working,
        global_state=replace(
            working.global_state, block_height=working.global_state.block_height + 1
        ),
        pending_tx_index=0,
    )
    return working, TransitionResult.success(receipts)
