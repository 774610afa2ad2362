"""
Proposal Registry & Resolver.

Lifecycle
---------
  add_proposal      chairman only, target must hold code -> id (0, 1, 2, ...)
  vote              while now < deadline, once per account, weight = current deposit
  finish_proposal   once now >= deadline, exactly once per proposal

Resolution order (finish_proposal)
----------------------------------
  finished = True is written first, then:
  1. no votes                    -> ProposalFailed("No votes for proposal")
  2. total * 100 // pool < quorum -> ProposalFailed("Minimum quorum is not reached")
  3. for <= against              -> ProposalFinished(approved=False), nothing dispatched
  4. dispatch call_data to target from the DAO's address
       failure                   -> ProposalFailed("Function call failed")
       success                   -> ProposalFinished(approved=True)

The dispatched call runs after the proposal is marked finished and its
tallies are final, so a target that calls back into the DAO sees a closed,
non-resolvable proposal. Its failure is contained by the chain's sub-call
snapshot and never reverts the resolution itself.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from .codec import bytes_to_hex, hex_to_bytes, normalize_address
from .errors import (
    AlreadyVoted,
    EmptyPool,
    ProposalFinished,
    ProposalInProgress,
    ProposalNotFound,
    RecipientNotAContract,
    require,
)
from .events import (
    REASON_CALL_FAILED,
    REASON_NO_QUORUM,
    REASON_NO_VOTES,
    ProposalCreated,
    ProposalFailed,
)
from .events import ProposalFinished as ProposalFinishedEvent
from .governance import GovernanceConfig
from .stake_ledger import StakeLedger
from .token import TokenTransfer

log = logging.getLogger(__name__)

APPROVED = "approved"
REJECTED = "rejected"
FAILED = "failed"


@dataclass
class Proposal:
    id: int
    target: str
    call_data: bytes
    description: str
    created_at: int
    deadline: int
    votes_for: int = 0
    votes_against: int = 0
    voters: List[str] = field(default_factory=list)
    finished: bool = False

    @classmethod
    def from_record(cls, rec: Dict[str, Any]) -> "Proposal":
        return cls(
            id=int(rec["id"]),
            target=str(rec["target"]),
            call_data=hex_to_bytes(rec.get("call_data", "")),
            description=str(rec.get("description", "")),
            created_at=int(rec["created_at"]),
            deadline=int(rec["deadline"]),
            votes_for=int(rec.get("votes_for", 0)),
            votes_against=int(rec.get("votes_against", 0)),
            voters=list(rec.get("voters", [])),
            finished=bool(rec.get("finished", False)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "id": self.id,
            "target": self.target,
            "call_data": bytes_to_hex(self.call_data),
            "description": self.description,
            "created_at": self.created_at,
            "deadline": self.deadline,
            "votes_for": self.votes_for,
            "votes_against": self.votes_against,
            "voters": list(self.voters),
            "finished": self.finished,
        }


@dataclass(frozen=True)
class Resolution:
    proposal_id: int
    status: str
    approved: bool = False
    reason: str = ""
    quorum_percent: Optional[int] = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            "proposal_id": self.proposal_id,
            "status": self.status,
            "approved": self.approved,
            "reason": self.reason,
            "quorum_percent": self.quorum_percent,
        }


class ProposalRegistry:
    def __init__(self, host: Any, config: GovernanceConfig, ledger: StakeLedger, token: TokenTransfer):
        """
        host : the DAO contract (storage, address, chain, now(), emit())
        """
        self._host = host
        self._config = config
        self._ledger = ledger
        self._token = token

    # ------------------------
    # Storage
    # ------------------------
    @property
    def _proposals(self) -> Dict[str, Dict[str, Any]]:
        return self._host.storage.get("proposals", {})

    def _get(self, proposal_id: Any) -> Dict[str, Any]:
        try:
            key = str(int(proposal_id))
        except (TypeError, ValueError):
            raise ProposalNotFound() from None
        rec = self._proposals.get(key)
        require(rec is not None, ProposalNotFound)
        return rec

    def count(self) -> int:
        return int(self._host.storage.get("next_proposal_id", 0))

    # ------------------------
    # Operations
    # ------------------------
    def add_proposal(self, caller: str, target: str, call_data: bytes, description: str) -> int:
        self._config.require_chairman(caller)
        target = normalize_address(target)
        require(bool(self._host.chain.code_at(target)), RecipientNotAContract)

        pid = self.count()
        now = self._host.now()
        self._host.storage.setdefault("proposals", {})[str(pid)] = {
            "id": pid,
            "target": target,
            "call_data": bytes_to_hex(call_data),
            "description": str(description or ""),
            "created_at": now,
            "deadline": now + self._config.debating_period,
            "votes_for": 0,
            "votes_against": 0,
            "voters": [],
            "finished": False,
        }
        self._host.storage["next_proposal_id"] = pid + 1
        self._host.emit(ProposalCreated(pid))
        log.info("Proposal %d created by %s -> %s", pid, caller, target)
        return pid

    def vote(self, caller: str, proposal_id: int, in_favor: bool) -> int:
        rec = self._get(proposal_id)
        caller = normalize_address(caller)

        require(not rec["finished"] and self._host.now() < int(rec["deadline"]), ProposalFinished)
        require(caller not in rec["voters"], AlreadyVoted)

        weight = self._ledger.weight_of(caller)
        if in_favor:
            rec["votes_for"] = int(rec["votes_for"]) + weight
        else:
            rec["votes_against"] = int(rec["votes_against"]) + weight
        rec["voters"].append(caller)
        self._ledger.record_vote(caller, int(rec["id"]))

        log.info("Vote on %s by %s: %s weight=%d", rec["id"], caller, "for" if in_favor else "against", weight)
        return weight

    def finish_proposal(self, proposal_id: int) -> Resolution:
        rec = self._get(proposal_id)
        require(self._host.now() >= int(rec["deadline"]), ProposalInProgress)
        require(not rec["finished"], ProposalFinished)

        rec["finished"] = True
        pid = int(rec["id"])
        description = str(rec.get("description", ""))

        total = int(rec["votes_for"]) + int(rec["votes_against"])
        if total == 0:
            return self._failed(pid, description, REASON_NO_VOTES)

        pool = self._token.balance_of(self._host.address)
        require(pool > 0, EmptyPool)
        quorum_percent = total * 100 // pool
        if quorum_percent < self._config.minimum_quorum:
            return self._failed(pid, description, REASON_NO_QUORUM, quorum_percent)

        if not int(rec["votes_for"]) > int(rec["votes_against"]):
            self._host.emit(ProposalFinishedEvent(pid, description, False))
            log.info("Proposal %d rejected (quorum %d%%)", pid, quorum_percent)
            return Resolution(pid, REJECTED, approved=False, quorum_percent=quorum_percent)

        result = self._host.chain.call(self._host.address, rec["target"], hex_to_bytes(rec["call_data"]))
        if not result.success:
            log.warning("Proposal %d call to %s failed: %s", pid, rec["target"], result.error)
            return self._failed(pid, description, REASON_CALL_FAILED, quorum_percent)

        self._host.emit(ProposalFinishedEvent(pid, description, True))
        log.info("Proposal %d approved and executed (quorum %d%%)", pid, quorum_percent)
        return Resolution(pid, APPROVED, approved=True, quorum_percent=quorum_percent)

    def _failed(self, pid: int, description: str, reason: str, quorum_percent: Optional[int] = None) -> Resolution:
        self._host.emit(ProposalFailed(pid, description, reason))
        log.info("Proposal %d failed: %s", pid, reason)
        return Resolution(pid, FAILED, approved=False, reason=reason, quorum_percent=quorum_percent)

    # ------------------------
    # Reads
    # ------------------------
    def description(self, proposal_id: int) -> str:
        return str(self._get(proposal_id).get("description", ""))

    def proposal(self, proposal_id: int) -> Proposal:
        return Proposal.from_record(self._get(proposal_id))

    def list_proposals(self) -> List[Proposal]:
        return [Proposal.from_record(self._proposals[k]) for k in sorted(self._proposals, key=int)]
