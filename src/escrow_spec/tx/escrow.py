"""Escrow registry transaction specs.

An agreement moves Open -> Approved or Open -> Revoked exactly once. The
latch is set before the payout; a refused payout raises and the caller
drops the working state, so the latch never survives a failed transfer.
"""

from __future__ import annotations

import logging
from copy import deepcopy

from ..encoding import approved_log, new_escrow_log, revoked_log
from ..errors import ErrorCode, SpecError
from ..types import (
    Agreement,
    ChainState,
    CreateEscrowPayload,
    EscrowStatus,
    ResolveEscrowPayload,
    Transaction,
    TransactionType,
)
from .core import credit, debit, emit, require_address

logger = logging.getLogger(__name__)

_RESOLVE_TYPES = frozenset({
    TransactionType.APPROVE_ESCROW,
    TransactionType.REVOKE_ESCROW,
})


def verify(state: ChainState, tx: Transaction) -> None:
    tt = tx.tx_type
    if tt == TransactionType.CREATE_ESCROW:
        _verify_create(state, tx)
    elif tt in _RESOLVE_TYPES:
        _verify_resolve(state, tx)
    else:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow tx type: {tt}")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    tt = tx.tx_type
    if tt == TransactionType.CREATE_ESCROW:
        return _apply_create(state, tx)
    elif tt == TransactionType.APPROVE_ESCROW:
        return _apply_resolve(state, tx, approve=True)
    elif tt == TransactionType.REVOKE_ESCROW:
        return _apply_resolve(state, tx, approve=False)
    raise SpecError(ErrorCode.INVALID_TYPE, f"unsupported escrow tx type: {tt}")


# --- CREATE_ESCROW ---

def _verify_create(state: ChainState, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, CreateEscrowPayload):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "create payload must be CreateEscrowPayload")
    beneficiary = require_address("beneficiary", p.beneficiary)
    arbiter = require_address("arbiter", p.arbiter)

    # An arbiter with a stake in the outcome is rejected before anything else.
    if arbiter == tx.source or arbiter == beneficiary:
        raise SpecError(
            ErrorCode.INDEPENDENT_ARBITER_NEEDED,
            "arbiter must differ from depositor and beneficiary",
        )

    if tx.value <= 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "escrow deposit must be > 0")

    sender = state.accounts.get(tx.source)
    if sender is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")
    if sender.balance < tx.value:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")


def _apply_create(state: ChainState, tx: Transaction) -> ChainState:
    ns = deepcopy(state)
    p = tx.payload

    debit(ns, tx.source, tx.value)
    ns.registry_balance += tx.value

    escrow_id = ns.next_escrow_id
    ns.next_escrow_id += 1
    ns.agreements[escrow_id] = Agreement(
        depositor=tx.source,
        beneficiary=p.beneficiary,
        arbiter=p.arbiter,
        locked_amount=tx.value,
    )
    ns.status_index[escrow_id] = EscrowStatus.OPEN
    emit(ns, new_escrow_log(ns.registry_address, escrow_id, tx.source, p.beneficiary, p.arbiter))

    logger.debug("escrow %d created by 0x%s for %d wei", escrow_id, tx.source.hex(), tx.value)
    return ns


# --- APPROVE_ESCROW / REVOKE_ESCROW ---

def _verify_resolve(state: ChainState, tx: Transaction) -> None:
    p = tx.payload
    if not isinstance(p, ResolveEscrowPayload):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "resolve payload must be ResolveEscrowPayload")
    if tx.value != 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "approve/revoke do not accept value")

    agreement = state.agreements.get(p.escrow_id)
    if agreement is None:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, f"escrow {p.escrow_id} not found")
    if tx.source != agreement.arbiter:
        raise SpecError(ErrorCode.NOT_AUTHORIZED, "only the arbiter can resolve")
    if agreement.is_executed:
        raise SpecError(ErrorCode.ALREADY_PAID_OUT, f"escrow {p.escrow_id} already paid out")


def _apply_resolve(state: ChainState, tx: Transaction, *, approve: bool) -> ChainState:
    ns = deepcopy(state)
    escrow_id = tx.payload.escrow_id
    agreement = ns.agreements.get(escrow_id)
    if agreement is None:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, f"escrow {escrow_id} not found")
    if agreement.is_executed:
        raise SpecError(ErrorCode.ALREADY_PAID_OUT, f"escrow {escrow_id} already paid out")

    agreement.is_executed = True
    amount = agreement.locked_amount
    if ns.registry_balance < amount:
        raise SpecError(ErrorCode.INTERNAL_ERROR, "registry balance below locked amount")
    ns.registry_balance -= amount

    if approve:
        credit(ns, agreement.beneficiary, amount)
        ns.status_index[escrow_id] = EscrowStatus.APPROVED
        emit(ns, approved_log(ns.registry_address, escrow_id))
    else:
        credit(ns, agreement.depositor, amount)
        ns.status_index[escrow_id] = EscrowStatus.REVOKED
        emit(ns, revoked_log(ns.registry_address, escrow_id))

    logger.debug("escrow %d %s", escrow_id, "approved" if approve else "revoked")
    return ns
