"""Canonical state digest implementation (v1)."""
from __future__ import annotations

from typing import Any

from blake3 import blake3

from .config import ADDRESS_LEN

_STATUS_CODES = {"open": 0, "approved": 1, "revoked": 2}


def _hex_to_bytes(value: str | None) -> bytes:
    if value is None:
        return b""
    if not isinstance(value, str):
        raise TypeError("hex value must be string")
    v = value[2:] if value.startswith(("0x", "0X")) else value
    if v == "":
        return b""
    return bytes.fromhex(v)


def _u64_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u64 must be non-negative")
    return int(value).to_bytes(8, "big", signed=False)


def _u256_be(value: int) -> bytes:
    if value < 0:
        raise ValueError("u256 must be non-negative")
    return int(value).to_bytes(32, "big", signed=False)


def _address(value: str) -> bytes:
    addr = _hex_to_bytes(value)
    if len(addr) != ADDRESS_LEN:
        raise ValueError(f"address must be {ADDRESS_LEN} bytes, got {len(addr)}")
    return addr


def compute_state_digest(post_state: dict[str, Any]) -> str:
    """Compute state digest v1 from a serialized post_state.

    Fields are encoded in canonical order and hashed with BLAKE3-256.
    Accounts are sorted by address and agreements by id, so the digest does
    not depend on insertion order. Logs are not part of the digest.
    """
    gs = post_state.get("global_state", {}) if isinstance(post_state, dict) else {}
    buf = bytearray()
    buf += _u64_be(int(gs.get("block_height", 0)))

    registry = post_state.get("registry", {}) if isinstance(post_state, dict) else {}
    buf += _u256_be(int(registry.get("balance", 0)))
    buf += _u64_be(int(registry.get("next_escrow_id", 0)))

    accounts = post_state.get("accounts", []) if isinstance(post_state, dict) else []
    sortable = [(_address(acc.get("address", "")), acc) for acc in accounts]
    sortable.sort(key=lambda x: x[0])
    for addr, acc in sortable:
        buf += addr
        buf += _u256_be(int(acc.get("balance", 0)))
        buf += _u64_be(int(acc.get("nonce", 0)))

    agreements = post_state.get("agreements", []) if isinstance(post_state, dict) else []
    for ag in sorted(agreements, key=lambda a: int(a["id"])):
        buf += _u64_be(int(ag["id"]))
        buf += _address(ag["depositor"])
        buf += _address(ag["beneficiary"])
        buf += _address(ag["arbiter"])
        buf += _u256_be(int(ag.get("locked_amount", 0)))
        buf += bytes([1 if ag.get("is_executed") else 0])
        buf += bytes([_STATUS_CODES[ag.get("status", "open")]])

    return blake3(buf).hexdigest()
