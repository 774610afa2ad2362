from __future__ import annotations

from typing import Any, Dict, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from pydantic import BaseModel, Field

from ..dao_executor import DaoExecutor
from .tx_helpers import get_executor

router = APIRouter(tags=["dev"])


class IncreaseTime(BaseModel):
    seconds: int = Field(..., ge=0)


@router.get("/events")
def events(
    since: int = Query(0, ge=0, description="Return events with seq >= since."),
    address: Optional[str] = Query(None, description="Only events emitted by this contract."),
    executor: DaoExecutor = Depends(get_executor),
) -> Dict[str, Any]:
    evs = executor.events(since=since, address=address)
    return {"ok": True, "events": evs, "next": (evs[-1]["seq"] + 1) if evs else since}


@router.post("/dev/increase-time")
def increase_time(body: IncreaseTime, executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    try:
        now = executor.increase_time(body.seconds)
    except PermissionError as e:
        raise HTTPException(status_code=403, detail=str(e)) from e
    return {"ok": True, "now": now}
