"""Core ledger specs (plain value transfers, crediting, log emission)."""

from __future__ import annotations

from copy import deepcopy

from ..config import ADDRESS_LEN, MAX_LOGS_PER_TX, U256_MAX
from ..errors import ErrorCode, SpecError
from ..types import AccountState, ChainState, LogEntry, Transaction, TransactionType, TransferPayload


def require_address(name: str, addr: object) -> bytes:
    if not isinstance(addr, bytes) or len(addr) != ADDRESS_LEN:
        raise SpecError(ErrorCode.INVALID_ADDRESS, f"{name} must be a {ADDRESS_LEN}-byte address")
    return addr


def credit(state: ChainState, address: bytes, amount: int) -> None:
    """Move `amount` into `address`, creating the account on first receipt.

    Raises TRANSFER_FAILED when the recipient refuses payments; callers rely
    on the surrounding tx being discarded to undo their own staged changes.
    """
    receiver = state.accounts.get(address)
    if receiver is None:
        receiver = AccountState(address=address)
        state.accounts[address] = receiver
    if receiver.rejects_payments:
        raise SpecError(ErrorCode.TRANSFER_FAILED, "recipient rejected funds")
    if receiver.balance + amount > U256_MAX:
        raise SpecError(ErrorCode.OVERFLOW, "receiver balance overflow")
    receiver.balance += amount


def debit(state: ChainState, address: bytes, amount: int) -> None:
    sender = state.accounts.get(address)
    if sender is None:
        raise SpecError(ErrorCode.ACCOUNT_NOT_FOUND, "sender not found")
    if sender.balance < amount:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance")
    sender.balance -= amount


def emit(state: ChainState, log: LogEntry) -> LogEntry:
    block = state.global_state.block_height
    in_tx = [
        entry for entry in state.logs
        if entry.block_number == block and entry.tx_index == state.pending_tx_index
    ]
    if len(in_tx) >= MAX_LOGS_PER_TX:
        raise SpecError(ErrorCode.OVERFLOW, "too many logs in one tx")
    log.block_number = block
    log.tx_index = state.pending_tx_index
    log.log_index = sum(1 for entry in state.logs if entry.block_number == block)
    state.logs.append(log)
    return log


def verify(state: ChainState, tx: Transaction) -> None:
    if tx.tx_type != TransactionType.TRANSFER:
        raise SpecError(ErrorCode.INVALID_TYPE, "unsupported core tx type")
    if not isinstance(tx.payload, TransferPayload):
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "invalid transfer payload")
    require_address("destination", tx.payload.destination)
    if tx.payload.destination == tx.source:
        raise SpecError(ErrorCode.INVALID_PAYLOAD, "sender cannot be receiver")
    if tx.value <= 0:
        raise SpecError(ErrorCode.INVALID_AMOUNT, "transfer amount must be > 0")

    sender = state.accounts.get(tx.source)
    if sender is not None and sender.balance < tx.value:
        raise SpecError(ErrorCode.INSUFFICIENT_BALANCE, "insufficient balance for transfer")


def apply(state: ChainState, tx: Transaction) -> ChainState:
    next_state = deepcopy(state)
    debit(next_state, tx.source, tx.value)
    credit(next_state, tx.payload.destination, tx.value)
    return next_state
