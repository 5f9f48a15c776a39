"""Client-side request handling.

Every create/approve/revoke goes through a small state machine:

    SUBMITTED -> CONFIRMED | FAILED

A signer must be supplied when the client is built; nothing is deferred or
retried on the caller's behalf.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from decimal import Decimal, DecimalException, Inexact, localcontext
from enum import Enum
from typing import Callable, Optional

from ..config import ADDRESS_LEN, WEI_PER_ETHER
from ..encoding import NewEscrowEvent, address_from_hex, decode_log
from ..errors import ClientError, ErrorCode, SpecError
from ..types import (
    CreateEscrowPayload,
    Receipt,
    ResolveEscrowPayload,
    Transaction,
    TransactionType,
)
from .ledger import LocalLedger, Signer

logger = logging.getLogger(__name__)

USER_REJECTED = "user rejected transaction"

# Enough significant digits for any u256 wei amount.
_ETHER_PRECISION = 100

_MESSAGES = {
    ErrorCode.INDEPENDENT_ARBITER_NEEDED: "Arbiter must differ from depositor and beneficiary!",
    ErrorCode.NOT_AUTHORIZED: "Only arbiter can approve or revoke agreement!",
    ErrorCode.ALREADY_PAID_OUT: "Agreement was already paid out!",
    ErrorCode.TRANSFER_FAILED: "Transfer failed, agreement is still open.",
    ErrorCode.INSUFFICIENT_BALANCE: "Insufficient balance for deposit.",
}


class RequestKind(Enum):
    CREATE = "create"
    APPROVE = "approve"
    REVOKE = "revoke"


class RequestStatus(Enum):
    SUBMITTED = "submitted"
    CONFIRMED = "confirmed"
    FAILED = "failed"


@dataclass
class PendingRequest:
    kind: RequestKind
    status: RequestStatus = RequestStatus.SUBMITTED
    escrow_id: Optional[int] = None
    reason: Optional[str] = None
    message: Optional[str] = None
    receipt: Optional[Receipt] = None
    on_status: Optional[Callable[["PendingRequest"], None]] = field(default=None, repr=False)

    @property
    def done(self) -> bool:
        return self.status != RequestStatus.SUBMITTED

    def _require_open(self) -> None:
        if self.done:
            raise ClientError(f"{self.kind.value} request already {self.status.value}")

    def _notify(self) -> None:
        if self.on_status is not None:
            self.on_status(self)

    def confirm(self, receipt: Receipt) -> None:
        self._require_open()
        self.status = RequestStatus.CONFIRMED
        self.receipt = receipt
        self._notify()

    def fail(self, reason: str, message: Optional[str] = None) -> None:
        self._require_open()
        self.status = RequestStatus.FAILED
        self.reason = reason
        self.message = message or reason
        self._notify()


def parse_ether(value: str) -> int:
    """Decimal ether string to wei, exactly or not at all."""
    with localcontext() as ctx:
        ctx.prec = _ETHER_PRECISION
        ctx.traps[Inexact] = True
        try:
            wei = Decimal(str(value).strip()) * WEI_PER_ETHER
        except DecimalException as exc:
            raise ClientError(f"not a number: {value!r}") from exc
    if not wei.is_finite():
        raise ClientError(f"not a number: {value!r}")
    if wei != wei.to_integral_value():
        raise ClientError("amount has more than 18 decimals")
    return int(wei)


def format_ether(wei: int) -> str:
    whole, frac = divmod(int(wei), WEI_PER_ETHER)
    if frac == 0:
        return f"{whole}.0"
    return f"{whole}.{frac:018d}".rstrip("0")


def validate_agreement_form(beneficiary: str, arbiter: str, value: str) -> tuple[bytes, bytes, int]:
    """Check raw form input before anything is submitted."""
    for addr in (beneficiary, arbiter):
        if len(addr) != 2 + 2 * ADDRESS_LEN or not addr.startswith("0x"):
            raise ClientError("Invalid input")
    try:
        wei = parse_ether(value)
        beneficiary_b = address_from_hex(beneficiary)
        arbiter_b = address_from_hex(arbiter)
    except (ClientError, SpecError) as exc:
        raise ClientError("Invalid input") from exc
    if wei <= 0:
        raise ClientError("Invalid input")
    return beneficiary_b, arbiter_b, wei


class EscrowClient:
    """Submits registry requests for one signer against one ledger."""

    def __init__(self, ledger: LocalLedger, signer: Optional[Signer]):
        if signer is None:
            raise ClientError("no signer available, connect a wallet first")
        self.ledger = ledger
        self.signer = signer

    def _submit(
        self,
        kind: RequestKind,
        tx: Transaction,
        on_status: Optional[Callable[[PendingRequest], None]],
    ) -> PendingRequest:
        request = PendingRequest(kind=kind, on_status=on_status)
        request._notify()

        if not self.signer.confirm(tx):
            logger.info("%s request: %s", kind.value, USER_REJECTED)
            request.fail(USER_REJECTED)
            return request

        result = self.ledger.submit(tx)
        if not result.ok:
            code = result.error.code
            logger.error("%s request failed: %s", kind.value, result.error)
            request.fail(code.name, _MESSAGES.get(code, result.error.message))
            return request

        receipt = result.receipt
        if kind == RequestKind.CREATE:
            # The creation receipt carries the new id in its first log.
            event = decode_log(receipt.logs[0])
            if isinstance(event, NewEscrowEvent):
                request.escrow_id = event.escrow_id
        else:
            request.escrow_id = tx.payload.escrow_id
        request.confirm(receipt)
        return request

    def create_escrow(
        self,
        beneficiary: str,
        arbiter: str,
        value: str,
        on_status: Optional[Callable[[PendingRequest], None]] = None,
    ) -> PendingRequest:
        beneficiary_b, arbiter_b, wei = validate_agreement_form(beneficiary, arbiter, value)
        tx = self.ledger.build_tx(
            self.signer,
            TransactionType.CREATE_ESCROW,
            CreateEscrowPayload(beneficiary=beneficiary_b, arbiter=arbiter_b),
            value=wei,
        )
        return self._submit(RequestKind.CREATE, tx, on_status)

    def approve(
        self, escrow_id: int, on_status: Optional[Callable[[PendingRequest], None]] = None
    ) -> PendingRequest:
        tx = self.ledger.build_tx(
            self.signer, TransactionType.APPROVE_ESCROW, ResolveEscrowPayload(escrow_id=escrow_id)
        )
        return self._submit(RequestKind.APPROVE, tx, on_status)

    def revoke(
        self, escrow_id: int, on_status: Optional[Callable[[PendingRequest], None]] = None
    ) -> PendingRequest:
        tx = self.ledger.build_tx(
            self.signer, TransactionType.REVOKE_ESCROW, ResolveEscrowPayload(escrow_id=escrow_id)
        )
        return self._submit(RequestKind.REVOKE, tx, on_status)
