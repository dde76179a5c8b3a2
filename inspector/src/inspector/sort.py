"""
Ordering of response transactions by timestamp.

Responses carry the time the contract processed the request. When off chain
state is rebuilt from on chain transactions, replaying responses in
timestamp order reproduces the original processing order.
"""

from __future__ import annotations

from collections.abc import Iterable
from typing import TYPE_CHECKING

from itxcore.actions import (
    Action,
    BallotCounted,
    BodyOfAgreementFormation,
    Confiscation,
    ContractFormation,
    DeprecatedReconciliation,
    Freeze,
    InstrumentCreation,
    Rejection,
    Result,
    Settlement,
    Thaw,
    Vote,
)

if TYPE_CHECKING:
    from inspector.transaction import InspectedTransaction

# Response actions whose timestamp orders replay
REORDERING_ACTIONS: tuple[type[Action], ...] = (
    InstrumentCreation,
    ContractFormation,
    BodyOfAgreementFormation,
    # Enforcement
    Freeze,
    Thaw,
    Confiscation,
    DeprecatedReconciliation,
    # Governance
    Vote,
    BallotCounted,
    Result,
    Rejection,
    Settlement,
)


def action_timestamp(action: Action | None) -> int | None:
    """Timestamp of a response action; None for any other action."""
    # exact type match, deprecated subclasses don't order replay
    if action is None or type(action) not in REORDERING_ACTIONS:
        return None
    return action.timestamp  # type: ignore[attr-defined]


def sort_by_timestamp(txs: Iterable[InspectedTransaction]) -> list[InspectedTransaction]:
    """
    Sort transactions by reordering timestamp, oldest first.

    Transactions without a timestamp go after all timestamped ones. The sort
    is stable, so ties and untimed transactions keep their relative order.
    """

    def key(itx: InspectedTransaction) -> tuple[bool, int]:
        timestamp = itx.reordering_timestamp()
        return (timestamp is None, timestamp or 0)

    return sorted(txs, key=key)
