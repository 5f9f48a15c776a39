"""Helpers to serialize/deserialize fixtures for the escrow specs."""

from __future__ import annotations

from typing import Any

from escrow_spec.encoding import log_from_rpc, log_to_rpc
from escrow_spec.types import (
    AccountState,
    Agreement,
    ChainState,
    CreateEscrowPayload,
    EscrowStatus,
    ResolveEscrowPayload,
    Transaction,
    TransactionType,
    TransferPayload,
)


def _hex_to_bytes(v: str) -> bytes:
    return bytes.fromhex(v[2:] if v.startswith("0x") else v)


def _bytes_to_hex(v: bytes) -> str:
    return "0x" + v.hex()


def state_to_json(state: ChainState) -> dict[str, Any]:
    result: dict[str, Any] = {
        "network_chain_id": state.network_chain_id,
        "global_state": {
            "block_height": state.global_state.block_height,
        },
        "registry": {
            "address": _bytes_to_hex(state.registry_address),
            "balance": state.registry_balance,
            "next_escrow_id": state.next_escrow_id,
        },
        "accounts": [
            {
                "address": _bytes_to_hex(a.address),
                "balance": a.balance,
                "nonce": a.nonce,
                "rejects_payments": a.rejects_payments,
            }
            for a in state.accounts.values()
        ],
    }

    if state.agreements:
        result["agreements"] = [
            {
                "id": escrow_id,
                "depositor": _bytes_to_hex(ag.depositor),
                "beneficiary": _bytes_to_hex(ag.beneficiary),
                "arbiter": _bytes_to_hex(ag.arbiter),
                "locked_amount": ag.locked_amount,
                "is_executed": ag.is_executed,
                "status": state.status_index.get(escrow_id, EscrowStatus.OPEN).value,
            }
            for escrow_id, ag in sorted(state.agreements.items())
        ]

    if state.logs:
        result["logs"] = [log_to_rpc(log) for log in state.logs]

    return result


def state_from_json(data: dict[str, Any]) -> ChainState:
    state = ChainState(network_chain_id=data["network_chain_id"])
    gs = data.get("global_state", {})
    state.global_state.block_height = gs.get("block_height", 0)

    reg = data.get("registry", {})
    if "address" in reg:
        state.registry_address = _hex_to_bytes(reg["address"])
    state.registry_balance = reg.get("balance", 0)
    state.next_escrow_id = reg.get("next_escrow_id", 0)

    for a in data.get("accounts", []):
        acct = AccountState(
            address=_hex_to_bytes(a["address"]),
            balance=a.get("balance", 0),
            nonce=a.get("nonce", 0),
            rejects_payments=a.get("rejects_payments", False),
        )
        state.accounts[acct.address] = acct

    for ag in data.get("agreements", []):
        escrow_id = int(ag["id"])
        state.agreements[escrow_id] = Agreement(
            depositor=_hex_to_bytes(ag["depositor"]),
            beneficiary=_hex_to_bytes(ag["beneficiary"]),
            arbiter=_hex_to_bytes(ag["arbiter"]),
            locked_amount=ag.get("locked_amount", 0),
            is_executed=ag.get("is_executed", False),
        )
        state.status_index[escrow_id] = EscrowStatus(ag.get("status", "open"))

    state.logs = [log_from_rpc(obj) for obj in data.get("logs", [])]
    return state


def tx_to_json(tx: Transaction) -> dict[str, Any]:
    payload: Any
    p = tx.payload
    if isinstance(p, CreateEscrowPayload):
        payload = {
            "beneficiary": _bytes_to_hex(p.beneficiary),
            "arbiter": _bytes_to_hex(p.arbiter),
        }
    elif isinstance(p, ResolveEscrowPayload):
        payload = {"escrow_id": p.escrow_id}
    elif isinstance(p, TransferPayload):
        payload = {"destination": _bytes_to_hex(p.destination)}
    else:
        # Negative cases carry whatever malformed payload they were built with.
        payload = p if isinstance(p, (dict, list, str, int, type(None))) else repr(p)

    return {
        "chain_id": tx.chain_id,
        "source": _bytes_to_hex(tx.source),
        "tx_type": tx.tx_type.value,
        "payload": payload,
        "nonce": tx.nonce,
        "value": tx.value,
    }


def tx_from_json(data: dict[str, Any]) -> Transaction:
    tx_type = TransactionType(data["tx_type"])
    raw = data.get("payload")

    payload: object = raw
    if isinstance(raw, dict):
        if tx_type == TransactionType.CREATE_ESCROW and {"beneficiary", "arbiter"} <= raw.keys():
            payload = CreateEscrowPayload(
                beneficiary=_hex_to_bytes(raw["beneficiary"]),
                arbiter=_hex_to_bytes(raw["arbiter"]),
            )
        elif tx_type in (TransactionType.APPROVE_ESCROW, TransactionType.REVOKE_ESCROW) and "escrow_id" in raw:
            payload = ResolveEscrowPayload(escrow_id=int(raw["escrow_id"]))
        elif tx_type == TransactionType.TRANSFER and "destination" in raw:
            payload = TransferPayload(destination=_hex_to_bytes(raw["destination"]))

    return Transaction(
        chain_id=data["chain_id"],
        source=_hex_to_bytes(data["source"]),
        tx_type=tx_type,
        payload=payload,
        nonce=data["nonce"],
        value=data.get("value", 0),
    )
