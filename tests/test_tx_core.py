"""Core tx fixtures (plain transfers and common validation)."""

from __future__ import annotations

from escrow_spec.config import CHAIN_ID_DEVNET, CHAIN_ID_GOERLI, MAX_NONCE_GAP, WEI_PER_ETHER
from escrow_spec.errors import ErrorCode
from escrow_spec.state_transition import verify_tx
from escrow_spec.test_accounts import ALICE, BOB, EVE
from escrow_spec.types import AccountState, ChainState, Transaction, TransactionType, TransferPayload


def _base_state() -> ChainState:
    state = ChainState(network_chain_id=CHAIN_ID_DEVNET)
    state.accounts[ALICE] = AccountState(address=ALICE, balance=5 * WEI_PER_ETHER, nonce=2)
    state.accounts[BOB] = AccountState(address=BOB, balance=0, nonce=0)
    return state


def _mk_transfer(
    receiver: bytes, amount: int, *, nonce: int = 2, sender: bytes = ALICE, chain_id: int = CHAIN_ID_DEVNET
) -> Transaction:
    return Transaction(
        chain_id=chain_id,
        source=sender,
        tx_type=TransactionType.TRANSFER,
        payload=TransferPayload(destination=receiver),
        nonce=nonce,
        value=amount,
    )


def test_transfer_success(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        "transactions/core/transfer.json", "transfer_success", state, _mk_transfer(BOB, WEI_PER_ETHER)
    )
    assert result.ok
    assert post.accounts[ALICE].balance == 4 * WEI_PER_ETHER
    assert post.accounts[ALICE].nonce == 3
    assert post.accounts[BOB].balance == WEI_PER_ETHER


def test_transfer_creates_receiver(state_test_group) -> None:
    state = _base_state()
    post, result = state_test_group(
        "transactions/core/transfer.json", "transfer_new_receiver", state, _mk_transfer(EVE, 1)
    )
    assert result.ok
    assert post.accounts[EVE].balance == 1


def test_transfer_to_rejecting_account(state_test_group) -> None:
    state = _base_state()
    state.accounts[BOB].rejects_payments = True
    post, result = state_test_group(
        "transactions/core/transfer.json", "transfer_rejected_by_receiver", state, _mk_transfer(BOB, 1)
    )
    assert result.error.code == ErrorCode.TRANSFER_FAILED
    assert post.accounts[ALICE].balance == 5 * WEI_PER_ETHER


def test_transfer_to_self(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/core/transfer.json", "transfer_to_self", state, _mk_transfer(ALICE, 1)
    )
    assert result.error.code == ErrorCode.INVALID_PAYLOAD


def test_transfer_insufficient_balance(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/core/transfer.json",
        "transfer_insufficient_balance",
        state,
        _mk_transfer(BOB, 6 * WEI_PER_ETHER),
    )
    assert result.error.code == ErrorCode.INSUFFICIENT_BALANCE


def test_unknown_sender(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/core/transfer.json", "transfer_unknown_sender", state, _mk_transfer(BOB, 1, sender=EVE, nonce=0)
    )
    assert result.error.code == ErrorCode.ACCOUNT_NOT_FOUND


def test_chain_id_mismatch(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/core/transfer.json",
        "transfer_chain_id_mismatch",
        state,
        _mk_transfer(BOB, 1, chain_id=CHAIN_ID_GOERLI),
    )
    assert result.error.code == ErrorCode.INVALID_TYPE


def test_verify_tx_accepts_nonce_within_gap() -> None:
    state = _base_state()
    assert verify_tx(state, _mk_transfer(BOB, 1, nonce=2 + MAX_NONCE_GAP)).ok
    result = verify_tx(state, _mk_transfer(BOB, 1, nonce=3 + MAX_NONCE_GAP))
    assert result.error.code == ErrorCode.NONCE_TOO_HIGH


def test_apply_requires_exact_nonce(state_test_group) -> None:
    state = _base_state()
    _, result = state_test_group(
        "transactions/core/transfer.json", "transfer_nonce_gap", state, _mk_transfer(BOB, 1, nonce=3)
    )
    assert result.error.code == ErrorCode.NONCE_TOO_HIGH
