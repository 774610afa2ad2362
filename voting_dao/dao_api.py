from __future__ import annotations

import logging
from typing import Optional

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from .api import dao, dev, health, token
from .api.tx_helpers import dao_error_handler
from .dao_executor import DaoExecutor, get_executor
from .dao_runtime.errors import DaoError

log = logging.getLogger(__name__)


def create_app(executor: Optional[DaoExecutor] = None) -> FastAPI:
    app = FastAPI(title="Voting DAO API")

    # CORS; tighten in prod if needed
    app.add_middleware(
        CORSMiddleware,
        allow_origins=["*"],
        allow_methods=["*"],
        allow_headers=["*"],
    )

    app.state.executor = executor or get_executor()
    app.add_exception_handler(DaoError, dao_error_handler)

    # Routers
    app.include_router(health.router)
    app.include_router(dao.router)
    app.include_router(token.router)
    app.include_router(dev.router)

    log.info("API wired for DAO %s", app.state.executor.deployment.dao)
    return app
