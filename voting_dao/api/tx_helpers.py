"""
Shared plumbing for the DAO routers.

- executor lookup (the app carries its DaoExecutor on app.state)
- envelope building from request bodies (sender + optional signature fields)
- failed receipts -> DaoError -> JSON error response
"""

from __future__ import annotations

from typing import Any, Dict

from fastapi import Request
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from ..dao_executor import DaoExecutor
from ..dao_runtime.errors import (
    ERRORS_BY_CODE,
    BadNonce,
    DaoError,
    ProposalNotFound,
    SignatureError,
)
from ..tx_envelope import CallEnvelope

_STATUS_BY_ERROR = {
    SignatureError: 401,
    ProposalNotFound: 404,
    BadNonce: 409,
}


class SignedFields(BaseModel):
    """Sender identity carried by every mutating request."""

    sender: str = Field(..., description="0x account address (dev mode: any account id).")
    nonce: int = Field(0, ge=0, description="Expected envelope nonce; checked for signed requests.")
    public_key: str = Field("", description="Ed25519 public key hex (signed requests).")
    signature: str = Field("", description="Ed25519 signature hex over the signing preimage.")


def get_executor(request: Request) -> DaoExecutor:
    return request.app.state.executor


def make_envelope(body: SignedFields, action: str, params: Dict[str, Any]) -> CallEnvelope:
    return CallEnvelope(
        sender=body.sender,
        action=action,
        params=params,
        nonce=body.nonce,
        public_key=body.public_key,
        signature=body.signature,
    )


def submit_or_raise(executor: DaoExecutor, env: CallEnvelope) -> Dict[str, Any]:
    ok, receipt = executor.submit(env)
    if not ok:
        cls = ERRORS_BY_CODE.get(str(receipt.get("error")), DaoError)
        raise cls(receipt.get("message"))
    return receipt


def status_for(err: DaoError) -> int:
    for cls, status in _STATUS_BY_ERROR.items():
        if isinstance(err, cls):
            return status
    return 400


async def dao_error_handler(request: Request, exc: DaoError) -> JSONResponse:
    return JSONResponse(status_code=status_for(exc), content=exc.to_dict())
