"""
API: /dao

Stake, propose, vote, resolve and manage roles on the deployed VotingDao.

Every mutating route builds a CallEnvelope from its body and hands it to
DaoExecutor.submit, so the convenience routes and POST /dao/tx share one
verification + atomic-apply path. The convenience routes sign the same
params dict the executor sees, e.g. vote -> {"proposal_id", "votes_for"}.
"""

from __future__ import annotations

from typing import Any, Dict, List

from fastapi import APIRouter, Depends
from pydantic import Field

from ..dao_executor import DaoExecutor
from ..tx_envelope import CallEnvelope
from .tx_helpers import SignedFields, get_executor, make_envelope, submit_or_raise

router = APIRouter(prefix="/dao", tags=["dao"])


# ---------------------------------------------------------------------------
# Models
# ---------------------------------------------------------------------------


class TxRequest(SignedFields):
    action: str
    params: Dict[str, Any] = Field(default_factory=dict)


class AmountRequest(SignedFields):
    amount: int = Field(..., ge=0)


class ProposalCreate(SignedFields):
    recipient: str = Field(..., description="Target contract address.")
    data: str = Field("0x", description="Hex calldata dispatched if the proposal is approved.")
    description: str = ""


class VoteRequest(SignedFields):
    votes_for: bool


class ChairmanRequest(SignedFields):
    new_chairman: str


class ValueRequest(SignedFields):
    value: int = Field(..., ge=0)


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------


@router.get("")
def dao_info(executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return executor.dao_params()


@router.get("/proposals")
def list_proposals(executor: DaoExecutor = Depends(get_executor)) -> List[Dict[str, Any]]:
    return executor.proposals()


@router.get("/proposals/{proposal_id}")
def get_proposal(proposal_id: int, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return executor.proposal(proposal_id)


@router.get("/proposals/{proposal_id}/description")
def get_description(proposal_id: int, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return {"id": proposal_id, "description": executor.description(proposal_id)}


@router.get("/stakeholders/{address}")
def get_stakeholder(address: str, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return executor.stakeholder(address)


@router.get("/nonce/{address}")
def get_nonce(address: str, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return {"address": address, "nonce": executor.expected_nonce(address)}


# ---------------------------------------------------------------------------
# Transactions
# ---------------------------------------------------------------------------


@router.post("/tx")
def submit_tx(body: TxRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    env = CallEnvelope(
        sender=body.sender,
        action=body.action,
        params=body.params,
        nonce=body.nonce,
        public_key=body.public_key,
        signature=body.signature,
    )
    return submit_or_raise(executor, env)


@router.post("/deposit")
def deposit(body: AmountRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return submit_or_raise(executor, make_envelope(body, "deposit", {"amount": body.amount}))


@router.post("/withdraw")
def withdraw(body: AmountRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return submit_or_raise(executor, make_envelope(body, "withdraw", {"amount": body.amount}))


@router.post("/proposals")
def add_proposal(body: ProposalCreate, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    params = {"recipient": body.recipient, "data": body.data, "description": body.description}
    return submit_or_raise(executor, make_envelope(body, "add_proposal", params))


@router.post("/proposals/{proposal_id}/vote")
def vote(proposal_id: int, body: VoteRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    params = {"proposal_id": proposal_id, "votes_for": body.votes_for}
    return submit_or_raise(executor, make_envelope(body, "vote", params))


@router.post("/proposals/{proposal_id}/finish")
def finish(proposal_id: int, body: SignedFields, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return submit_or_raise(executor, make_envelope(body, "finish_proposal", {"proposal_id": proposal_id}))


@router.post("/chairman")
def change_chairman(body: ChairmanRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return submit_or_raise(executor, make_envelope(body, "change_chairman", {"new_chairman": body.new_chairman}))


@router.post("/params/quorum")
def set_quorum(body: ValueRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return submit_or_raise(executor, make_envelope(body, "set_minimum_quorum", {"value": body.value}))


@router.post("/params/debating-period")
def set_debating_period(body: ValueRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return submit_or_raise(executor, make_envelope(body, "set_debating_period", {"value": body.value}))
