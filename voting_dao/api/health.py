# voting_dao/api/health.py
from __future__ import annotations

import time
from typing import Any, Dict

from fastapi import APIRouter, Depends

from ..dao_executor import DaoExecutor
from .tx_helpers import get_executor

router = APIRouter(tags=["health"])


@router.get("/health")
def health(executor: DaoExecutor = Depends(get_executor)) -> Dict[str, Any]:
    """Heartbeat plus the deployed addresses, for uptime checks and CLI discovery."""
    dep = executor.deployment
    return {
        "ok": True,
        "ts": time.time(),
        "chain_id": executor.chain_id,
        "dao": dep.dao,
        "token": dep.token,
        "block_time": executor.chain.now(),
    }
