"""Core types for the escrow registry specs.

The ledger is modelled only as far as the registry needs it: account
balances and nonces, per-tx atomicity and an append-only log of
notifications. Addresses are 20-byte values.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional

from .config import CHAIN_ID_DEVNET, REGISTRY_ADDRESS


class TransactionType(Enum):
    TRANSFER = "transfer"
    CREATE_ESCROW = "create_escrow"
    APPROVE_ESCROW = "approve_escrow"
    REVOKE_ESCROW = "revoke_escrow"


class EscrowStatus(Enum):
    OPEN = "open"
    APPROVED = "approved"
    REVOKED = "revoked"


@dataclass
class CreateEscrowPayload:
    beneficiary: bytes
    arbiter: bytes


@dataclass
class ResolveEscrowPayload:
    escrow_id: int


@dataclass
class TransferPayload:
    destination: bytes


@dataclass
class Transaction:
    chain_id: int
    source: bytes
    tx_type: TransactionType
    payload: object
    nonce: int
    value: int = 0


@dataclass
class AccountState:
    address: bytes
    balance: int = 0
    nonce: int = 0
    # Models a recipient whose receive hook reverts.
    rejects_payments: bool = False


@dataclass
class Agreement:
    depositor: bytes
    beneficiary: bytes
    arbiter: bytes
    locked_amount: int
    is_executed: bool = False


@dataclass
class LogEntry:
    address: bytes
    topics: List[bytes]
    data: bytes
    block_number: int = 0
    tx_index: int = 0
    log_index: int = 0


@dataclass
class GlobalState:
    block_height: int = 0


@dataclass
class ChainState:
    accounts: dict[bytes, AccountState] = field(default_factory=dict)
    global_state: GlobalState = field(default_factory=GlobalState)
    network_chain_id: int = CHAIN_ID_DEVNET
    registry_address: bytes = REGISTRY_ADDRESS
    # Value held by the registry on behalf of open agreements.
    registry_balance: int = 0
    agreements: dict[int, Agreement] = field(default_factory=dict)
    next_escrow_id: int = 0
    # Secondary index updated in the same transition as the latch.
    status_index: dict[int, EscrowStatus] = field(default_factory=dict)
    logs: list[LogEntry] = field(default_factory=list)
    # Per-block tx counter used to position emitted logs.
    pending_tx_index: int = 0


@dataclass
class Receipt:
    """What a successful tx hands back to the submitter."""

    tx_type: TransactionType
    source: bytes
    block_number: int
    logs: list[LogEntry] = field(default_factory=list)
    escrow_id: Optional[int] = None
