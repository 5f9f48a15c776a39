"""In-process ledger handle.

A `LocalLedger` owns one `ChainState` and mines every submitted tx into its
own block, the way a development node does. Handles are passed explicitly to
whatever needs them, so independent ledgers can live side by side in one
process.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from .. import registry
from ..state_transition import TransitionResult, apply_block
from ..types import AccountState, ChainState, LogEntry, Transaction, TransactionType

logger = logging.getLogger(__name__)


@dataclass
class Signer:
    """An authenticated account able to submit transactions.

    `confirm` is asked before each submission; returning False models the
    account holder rejecting the request in their wallet.
    """
    address: bytes
    confirm: Callable[[Transaction], bool] = lambda tx: True


class LocalLedger:
    def __init__(self, state: Optional[ChainState] = None):
        self.state = state if state is not None else ChainState()

    @property
    def chain_id(self) -> int:
        return self.state.network_chain_id

    @property
    def block_number(self) -> int:
        return self.state.global_state.block_height

    def fund(self, address: bytes, amount: int) -> None:
        """Genesis-style allocation outside of any transaction."""
        acct = self.state.accounts.setdefault(address, AccountState(address=address))
        acct.balance += amount

    def balance_of(self, address: bytes) -> int:
        acct = self.state.accounts.get(address)
        return acct.balance if acct is not None else 0

    def nonce_of(self, address: bytes) -> int:
        acct = self.state.accounts.get(address)
        return acct.nonce if acct is not None else 0

    def build_tx(
        self, signer: Signer, tx_type: TransactionType, payload: object, value: int = 0
    ) -> Transaction:
        return Transaction(
            chain_id=self.chain_id,
            source=signer.address,
            tx_type=tx_type,
            payload=payload,
            nonce=self.nonce_of(signer.address),
            value=value,
        )

    def submit(self, tx: Transaction) -> TransitionResult:
        """Mine `tx` into a new block; the state only moves on success."""
        self.state, result = apply_block(self.state, [tx])
        if result.ok:
            logger.debug("block %d: %s ok", self.block_number - 1, tx.tx_type.value)
        else:
            logger.debug("%s rejected: %s", tx.tx_type.value, result.error)
        return result

    def get_logs(
        self,
        topics: Iterable[bytes],
        from_block: int = 0,
        to_block: Optional[int] = None,
    ) -> list[LogEntry]:
        """Logs whose topic0 is any of `topics`, in emission order."""
        wanted = set(topics)
        return [
            log for log in self.state.logs
            if log.topics
            and log.topics[0] in wanted
            and log.address == self.state.registry_address
            and log.block_number >= from_block
            and (to_block is None or log.block_number <= to_block)
        ]

    def get_locked_amount(self, escrow_id: int) -> int:
        return registry.get_locked_amount(self.state, escrow_id)
