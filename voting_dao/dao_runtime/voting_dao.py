"""
VotingDao contract.

Binds msg.sender (self.sender) to the explicit-caller operations of the
three components sharing this contract's storage:

    GovernanceConfig   roles + parameters
    StakeLedger        deposits and the withdrawal lock
    ProposalRegistry   proposals, votes, resolution, dispatch

Token traffic goes through a TokenClient whose caller is this contract, so
the pool is the DAO's own token balance.
"""

from __future__ import annotations

from typing import Any, Dict, List

from .codec import hex_to_bytes
from .contracts import Contract, external, register_kind, view
from .errors import InvalidParams
from .governance import GovernanceConfig
from .proposals import ProposalRegistry
from .stake_ledger import StakeLedger
from .token import TokenClient


@register_kind
class VotingDao(Contract):
    kind = "VotingDao"

    def constructor(self, chairman: str, token: str, minimum_quorum: int, debating_period: int) -> None:
        GovernanceConfig.initialize(
            self,
            owner=self.sender,
            chairman=chairman,
            token=token,
            minimum_quorum=minimum_quorum,
            debating_period=debating_period,
        )
        self.storage.setdefault("proposals", {})
        self.storage.setdefault("stakeholders", {})
        self.storage["next_proposal_id"] = 0

    # ------------------------
    # Components (built per call; state lives in storage)
    # ------------------------
    @property
    def config(self) -> GovernanceConfig:
        return GovernanceConfig(self)

    @property
    def token(self) -> TokenClient:
        return TokenClient(self.chain, self.config.token, caller=self.address)

    @property
    def ledger(self) -> StakeLedger:
        return StakeLedger(self, self.token, is_open=self._is_open)

    @property
    def registry(self) -> ProposalRegistry:
        token = self.token
        ledger = StakeLedger(self, token, is_open=self._is_open)
        return ProposalRegistry(self, self.config, ledger, token)

    def _is_open(self, proposal_id: int) -> bool:
        rec = self.storage.get("proposals", {}).get(str(int(proposal_id)))
        return bool(rec) and not bool(rec.get("finished"))

    # ------------------------
    # Stake Ledger
    # ------------------------
    @external
    def deposit(self, amount: int) -> int:
        return self.ledger.deposit(self.sender, amount)

    @external
    def withdraw(self, amount: int) -> int:
        return self.ledger.withdraw(self.sender, amount)

    # ------------------------
    # Proposals
    # ------------------------
    @external
    def add_proposal(self, target: str, call_data: str, description: str) -> int:
        return self.registry.add_proposal(self.sender, target, hex_to_bytes(call_data), description)

    @external
    def vote(self, proposal_id: int, votes_for: bool) -> int:
        if not isinstance(votes_for, bool):
            raise InvalidParams("votes_for must be a boolean")
        return self.registry.vote(self.sender, proposal_id, votes_for)

    @external
    def finish_proposal(self, proposal_id: int) -> Dict[str, Any]:
        return self.registry.finish_proposal(proposal_id).to_dict()

    # ------------------------
    # Roles / params
    # ------------------------
    @external
    def change_chairman(self, new_chairman: str) -> None:
        self.config.change_chairman(self.sender, new_chairman)

    @external
    def set_minimum_quorum(self, value: int) -> None:
        self.config.set_minimum_quorum(self.sender, value)

    @external
    def set_debating_period(self, value: int) -> None:
        self.config.set_debating_period(self.sender, value)

    # ------------------------
    # Views
    # ------------------------
    @view
    def description(self, proposal_id: int) -> str:
        return self.registry.description(proposal_id)

    @view
    def proposal(self, proposal_id: int) -> Dict[str, Any]:
        return self.registry.proposal(proposal_id).to_dict()

    @view
    def proposals(self) -> List[Dict[str, Any]]:
        return [p.to_dict() for p in self.registry.list_proposals()]

    @view
    def proposal_count(self) -> int:
        return self.registry.count()

    @view
    def stakeholder(self, account: str) -> Dict[str, Any]:
        return self.ledger.stakeholder(account)

    @view
    def deposited(self, account: str) -> int:
        return self.ledger.weight_of(account)

    @view
    def total_deposited(self) -> int:
        return self.ledger.total_deposited()

    @view
    def params(self) -> Dict[str, Any]:
        return self.config.to_dict()

    @view
    def chairman(self) -> str:
        return self.config.chairman

    @view
    def owner(self) -> str:
        return self.config.owner

    @view
    def minimum_quorum(self) -> int:
        return self.config.minimum_quorum

    @view
    def debating_period(self) -> int:
        return self.config.debating_period
