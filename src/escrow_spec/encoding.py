"""Log encoding utilities.

Notifications are laid out the way the EVM does it: topic0 is the event
signature hash, indexed addresses are left-padded into 32-byte topics and
non-indexed integers are 32-byte big-endian data words.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Union

from .config import (
    ADDRESS_LEN,
    APPROVED_TOPIC,
    EVENT_NAMES,
    NEW_ESCROW_TOPIC,
    REVOKED_TOPIC,
    U256_MAX,
    WORD_LEN,
)
from .errors import ErrorCode, SpecError
from .types import LogEntry


@dataclass
class Writer:
    buf: bytearray

    def write_u256(self, v: int) -> None:
        if v < 0 or v > U256_MAX:
            raise SpecError(ErrorCode.OVERFLOW, "value does not fit in u256")
        self.buf.extend(int(v).to_bytes(WORD_LEN, "big", signed=False))

    def write_address(self, addr: bytes) -> None:
        _expect_len("address", addr, ADDRESS_LEN)
        self.buf.extend(bytes(WORD_LEN - ADDRESS_LEN) + addr)


@dataclass
class Reader:
    data: bytes
    pos: int = 0

    def read_word(self) -> bytes:
        if self.pos + WORD_LEN > len(self.data):
            raise SpecError(ErrorCode.INVALID_FORMAT, "unexpected end of data")
        word = self.data[self.pos:self.pos + WORD_LEN]
        self.pos += WORD_LEN
        return word

    def read_u256(self) -> int:
        return int.from_bytes(self.read_word(), "big", signed=False)

    def read_address(self) -> bytes:
        return word_to_address(self.read_word())


@dataclass(frozen=True)
class NewEscrowEvent:
    escrow_id: int
    depositor: bytes
    beneficiary: bytes
    arbiter: bytes


@dataclass(frozen=True)
class ApprovedEvent:
    escrow_id: int


@dataclass(frozen=True)
class RevokedEvent:
    escrow_id: int


EscrowEvent = Union[NewEscrowEvent, ApprovedEvent, RevokedEvent]


def _expect_len(name: str, value: bytes, size: int) -> None:
    if len(value) != size:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"{name} must be {size} bytes")


def u256_word(v: int) -> bytes:
    w = Writer(bytearray())
    w.write_u256(v)
    return bytes(w.buf)


def address_word(addr: bytes) -> bytes:
    w = Writer(bytearray())
    w.write_address(addr)
    return bytes(w.buf)


def word_to_address(word: bytes) -> bytes:
    _expect_len("word", word, WORD_LEN)
    if any(word[:WORD_LEN - ADDRESS_LEN]):
        raise SpecError(ErrorCode.INVALID_ADDRESS, "address word has dirty high bytes")
    return bytes(word[WORD_LEN - ADDRESS_LEN:])


def address_from_hex(value: str) -> bytes:
    """Parse a `0x`-prefixed 40-hex-digit address."""
    if not isinstance(value, str) or not value.startswith(("0x", "0X")):
        raise SpecError(ErrorCode.INVALID_ADDRESS, "address must start with 0x")
    body = value[2:]
    if len(body) != ADDRESS_LEN * 2:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "address must be 20 bytes")
    try:
        return bytes.fromhex(body)
    except ValueError as exc:
        raise SpecError(ErrorCode.INVALID_ADDRESS, "address is not hex") from exc


def address_to_hex(addr: bytes) -> str:
    return "0x" + addr.hex()


def _hex_to_bytes(value: str) -> bytes:
    v = value[2:] if value.startswith(("0x", "0X")) else value
    return bytes.fromhex(v)


def _hex_to_int(value: Union[str, int]) -> int:
    if isinstance(value, int):
        return value
    return int(value, 16)


# --- log construction ---


def new_escrow_log(
    registry: bytes, escrow_id: int, depositor: bytes, beneficiary: bytes, arbiter: bytes
) -> LogEntry:
    return LogEntry(
        address=registry,
        topics=[
            NEW_ESCROW_TOPIC,
            address_word(depositor),
            address_word(beneficiary),
            address_word(arbiter),
        ],
        data=u256_word(escrow_id),
    )


def approved_log(registry: bytes, escrow_id: int) -> LogEntry:
    return LogEntry(address=registry, topics=[APPROVED_TOPIC], data=u256_word(escrow_id))


def revoked_log(registry: bytes, escrow_id: int) -> LogEntry:
    return LogEntry(address=registry, topics=[REVOKED_TOPIC], data=u256_word(escrow_id))


def decode_log(log: LogEntry) -> EscrowEvent:
    if not log.topics:
        raise SpecError(ErrorCode.INVALID_FORMAT, "anonymous log")
    topic0 = log.topics[0]
    if topic0 not in EVENT_NAMES:
        raise SpecError(ErrorCode.INVALID_TYPE, f"unknown event topic 0x{topic0.hex()}")

    escrow_id = Reader(log.data).read_u256()
    if topic0 == NEW_ESCROW_TOPIC:
        if len(log.topics) != 4:
            raise SpecError(ErrorCode.INVALID_FORMAT, "newEscrow needs 3 indexed topics")
        return NewEscrowEvent(
            escrow_id=escrow_id,
            depositor=word_to_address(log.topics[1]),
            beneficiary=word_to_address(log.topics[2]),
            arbiter=word_to_address(log.topics[3]),
        )
    if topic0 == APPROVED_TOPIC:
        return ApprovedEvent(escrow_id=escrow_id)
    return RevokedEvent(escrow_id=escrow_id)


# --- JSON-RPC log objects ---


def log_to_rpc(log: LogEntry) -> dict[str, Any]:
    return {
        "address": address_to_hex(log.address),
        "topics": ["0x" + t.hex() for t in log.topics],
        "data": "0x" + log.data.hex(),
        "blockNumber": hex(log.block_number),
        "transactionIndex": hex(log.tx_index),
        "logIndex": hex(log.log_index),
    }


def log_from_rpc(obj: dict[str, Any]) -> LogEntry:
    try:
        return LogEntry(
            address=address_from_hex(obj["address"]),
            topics=[_hex_to_bytes(t) for t in obj.get("topics", [])],
            data=_hex_to_bytes(obj.get("data", "0x")),
            block_number=_hex_to_int(obj.get("blockNumber", "0x0")),
            tx_index=_hex_to_int(obj.get("transactionIndex", "0x0")),
            log_index=_hex_to_int(obj.get("logIndex", "0x0")),
        )
    except (KeyError, ValueError, TypeError) as exc:
        raise SpecError(ErrorCode.INVALID_FORMAT, f"malformed log object: {exc}") from exc
