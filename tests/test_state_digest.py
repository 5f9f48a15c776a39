"""State digest fixtures."""

from __future__ import annotations

import copy

import pytest

from escrow_spec.config import CHAIN_ID_DEVNET, WEI_PER_ETHER
from escrow_spec.state_digest import compute_state_digest
from escrow_spec.state_transition import apply_tx
from escrow_spec.test_accounts import ALICE, BOB, CAROL
from escrow_spec.types import AccountState, ChainState, CreateEscrowPayload, Transaction, TransactionType
from tools.fixtures_io import state_from_json, state_to_json


def _state_with_escrow() -> ChainState:
    state = ChainState(network_chain_id=CHAIN_ID_DEVNET)
    state.accounts[ALICE] = AccountState(address=ALICE, balance=3 * WEI_PER_ETHER)
    state.accounts[BOB] = AccountState(address=BOB)
    state.accounts[CAROL] = AccountState(address=CAROL)
    tx = Transaction(
        chain_id=CHAIN_ID_DEVNET,
        source=ALICE,
        tx_type=TransactionType.CREATE_ESCROW,
        payload=CreateEscrowPayload(beneficiary=BOB, arbiter=CAROL),
        nonce=0,
        value=WEI_PER_ETHER,
    )
    post, result = apply_tx(state, tx)
    assert result.ok
    return post


def test_digest_is_stable(vector_test_group) -> None:
    post = state_to_json(_state_with_escrow())
    digest = compute_state_digest(post)
    assert digest == compute_state_digest(copy.deepcopy(post))
    assert len(digest) == 64
    vector_test_group(
        "state/digest.json",
        {"name": "digest_single_escrow", "runnable": False, "input": post, "expected": {"digest": digest}},
    )


def test_digest_ignores_account_order() -> None:
    post = state_to_json(_state_with_escrow())
    shuffled = copy.deepcopy(post)
    shuffled["accounts"].reverse()
    assert compute_state_digest(post) == compute_state_digest(shuffled)


def test_digest_ignores_logs() -> None:
    post = state_to_json(_state_with_escrow())
    without_logs = copy.deepcopy(post)
    without_logs.pop("logs")
    assert compute_state_digest(post) == compute_state_digest(without_logs)


@pytest.mark.parametrize(
    "field,value",
    [
        ("locked_amount", 2 * WEI_PER_ETHER),
        ("is_executed", True),
        ("status", "approved"),
        ("arbiter", "0x" + "44" * 20),
    ],
)
def test_digest_covers_agreement_fields(field, value) -> None:
    post = state_to_json(_state_with_escrow())
    changed = copy.deepcopy(post)
    changed["agreements"][0][field] = value
    assert compute_state_digest(post) != compute_state_digest(changed)


def test_digest_survives_fixture_roundtrip() -> None:
    state = _state_with_escrow()
    data = state_to_json(state)
    assert compute_state_digest(state_to_json(state_from_json(data))) == compute_state_digest(data)


def test_digest_rejects_bad_address() -> None:
    post = state_to_json(_state_with_escrow())
    post["accounts"][0]["address"] = "0x1234"
    with pytest.raises(ValueError):
        compute_state_digest(post)
