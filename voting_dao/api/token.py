"""
API: /token

Balances and allowances on the staked token, plus approve / transfer so a
participant can fund and authorise deposits through the same node.
"""

from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends
from pydantic import Field

from ..dao_executor import DaoExecutor
from .tx_helpers import SignedFields, get_executor, make_envelope, submit_or_raise

router = APIRouter(prefix="/token", tags=["token"])


class ApproveRequest(SignedFields):
    amount: int = Field(..., ge=0)
    spender: Optional[str] = Field(None, description="Defaults to the DAO address.")


class TransferRequest(SignedFields):
    recipient: str
    amount: int = Field(..., ge=0)


@router.get("/balance/{address}")
def balance(address: str, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return {"address": address, "balance": executor.token_balance(address)}


@router.get("/allowance/{owner}/{spender}")
def allowance(owner: str, spender: str, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    return {"owner": owner, "spender": spender, "allowance": executor.token_allowance(owner, spender)}


@router.post("/approve")
def approve(body: ApproveRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    params: Dict[str, Any] = {"amount": body.amount}
    if body.spender:
        params["spender"] = body.spender
    return submit_or_raise(executor, make_envelope(body, "approve", params))


@router.post("/transfer")
def transfer(body: TransferRequest, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    params = {"recipient": body.recipient, "amount": body.amount}
    return submit_or_raise(executor, make_envelope(body, "transfer", params))
