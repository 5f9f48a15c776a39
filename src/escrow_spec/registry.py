"""Read accessors for the escrow registry.

All lookups are pure. An id that was never assigned raises
ESCROW_NOT_FOUND rather than returning zero values.
"""

from __future__ import annotations

from .errors import ErrorCode, SpecError
from .types import Agreement, ChainState, EscrowStatus


def get_agreement(state: ChainState, escrow_id: int) -> Agreement:
    agreement = state.agreements.get(escrow_id)
    if agreement is None:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, f"escrow {escrow_id} not found")
    return agreement


def get_depositor(state: ChainState, escrow_id: int) -> bytes:
    return get_agreement(state, escrow_id).depositor


def get_beneficiary(state: ChainState, escrow_id: int) -> bytes:
    return get_agreement(state, escrow_id).beneficiary


def get_arbiter(state: ChainState, escrow_id: int) -> bytes:
    return get_agreement(state, escrow_id).arbiter


def get_locked_amount(state: ChainState, escrow_id: int) -> int:
    return get_agreement(state, escrow_id).locked_amount


def is_executed(state: ChainState, escrow_id: int) -> bool:
    return get_agreement(state, escrow_id).is_executed


def get_status(state: ChainState, escrow_id: int) -> EscrowStatus:
    """Current status from the secondary index, no log replay needed."""
    status = state.status_index.get(escrow_id)
    if status is None:
        raise SpecError(ErrorCode.ESCROW_NOT_FOUND, f"escrow {escrow_id} not found")
    return status


def escrow_count(state: ChainState) -> int:
    return state.next_escrow_id
