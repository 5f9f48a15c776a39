"""Rebuild the agreement list from registry notifications.

There is no bulk listing query, so the client reads all three notification
streams and joins them on escrow id.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Optional

from ..config import APPROVED_TOPIC, NEW_ESCROW_TOPIC, REVOKED_TOPIC
from ..encoding import (
    ApprovedEvent,
    NewEscrowEvent,
    RevokedEvent,
    address_to_hex,
    decode_log,
)
from ..errors import ClientError, SpecError
from ..types import EscrowStatus, LogEntry
from .ledger import LocalLedger
from .rpc import RpcLogSource

logger = logging.getLogger(__name__)


@dataclass
class AgreementView:
    escrow_id: int
    depositor: str
    beneficiary: str
    arbiter: str
    status: EscrowStatus
    # None when the lookup failed or no lookup was available.
    locked_amount: Optional[int] = None

    def to_dict(self) -> dict:
        return {
            "id": self.escrow_id,
            "depositor": self.depositor,
            "beneficiary": self.beneficiary,
            "arbiter": self.arbiter,
            "status": self.status.value,
            "locked_amount": self.locked_amount,
        }


def _ids(logs: Iterable[LogEntry], kind: type) -> set[int]:
    out = set()
    for log in logs:
        event = decode_log(log)
        if isinstance(event, kind):
            out.add(event.escrow_id)
    return out


def replay_agreements(
    created: Iterable[LogEntry],
    approved: Iterable[LogEntry],
    revoked: Iterable[LogEntry],
    locked_amount: Optional[Callable[[int], int]] = None,
) -> list[AgreementView]:
    """Join the three streams; newest agreement first."""
    approved_ids = _ids(approved, ApprovedEvent)
    revoked_ids = _ids(revoked, RevokedEvent)

    views: list[AgreementView] = []
    for log in created:
        event = decode_log(log)
        if not isinstance(event, NewEscrowEvent):
            continue

        if event.escrow_id in approved_ids:
            status = EscrowStatus.APPROVED
        elif event.escrow_id in revoked_ids:
            status = EscrowStatus.REVOKED
        else:
            status = EscrowStatus.OPEN

        amount = None
        if locked_amount is not None:
            try:
                amount = locked_amount(event.escrow_id)
            except SpecError as e:
                logger.warning("locked amount for escrow %d unavailable: %s", event.escrow_id, e)

        views.append(
            AgreementView(
                escrow_id=event.escrow_id,
                depositor=address_to_hex(event.depositor),
                beneficiary=address_to_hex(event.beneficiary),
                arbiter=address_to_hex(event.arbiter),
                status=status,
                locked_amount=amount,
            )
        )

    views.reverse()
    return views


def load_local_agreements(ledger: LocalLedger, from_block: int = 0) -> list[AgreementView]:
    return replay_agreements(
        ledger.get_logs([NEW_ESCROW_TOPIC], from_block),
        ledger.get_logs([APPROVED_TOPIC], from_block),
        ledger.get_logs([REVOKED_TOPIC], from_block),
        locked_amount=ledger.get_locked_amount,
    )


async def load_rpc_agreements(source: RpcLogSource) -> list[AgreementView]:
    created = await source.get_logs(NEW_ESCROW_TOPIC)
    approved = await source.get_logs(APPROVED_TOPIC)
    revoked = await source.get_logs(REVOKED_TOPIC)
    logger.info(
        f"replayed {len(created)} agreements "
        f"({len(approved)} approved, {len(revoked)} revoked)"
    )
    views = replay_agreements(created, approved, revoked)
    for view in views:
        try:
            view.locked_amount = await source.get_locked_amount(view.escrow_id)
        except ClientError as e:
            logger.warning(f"locked amount for escrow {view.escrow_id} unavailable: {e}")
    return views
