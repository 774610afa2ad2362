"""
Event records emitted by contracts.

Events are appended to chain.state["events"] while a transaction runs, so
they disappear together with every other change when the transaction is
rolled back. Off-system observers read them through the executor / HTTP
API.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Any, Dict


@dataclass(frozen=True)
class ProposalCreated:
    id: int


@dataclass(frozen=True)
class ProposalFailed:
    id: int
    description: str
    reason: str


@dataclass(frozen=True)
class ProposalFinished:
    id: int
    description: str
    approved: bool


@dataclass(frozen=True)
class Transfer:
    sender: str
    recipient: str
    amount: int


@dataclass(frozen=True)
class Approval:
    owner: str
    spender: str
    amount: int


@dataclass(frozen=True)
class OwnershipTransferred:
    previous_owner: str
    new_owner: str


# ProposalFailed reasons
REASON_NO_VOTES = "No votes for proposal"
REASON_NO_QUORUM = "Minimum quorum is not reached"
REASON_CALL_FAILED = "Function call failed"


def event_record(address: str, event: Any, ts: int, seq: int) -> Dict[str, Any]:
    return {
        "seq": int(seq),
        "ts": int(ts),
        "address": address,
        "event": type(event).__name__,
        "args": asdict(event),
    }
