"""
Deployment: token + DAO, then hand token ownership to the DAO so that
approved proposals can act as the token owner (e.g. mint).
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

from .chain import Chain
from .codec import normalize_address
from .token import TestToken
from .voting_dao import VotingDao

log = logging.getLogger(__name__)

DEFAULT_MINIMUM_QUORUM = 30  # percent
DEFAULT_DEBATING_PERIOD = 3 * 24 * 60 * 60  # 3 days


@dataclass(frozen=True)
class Deployment:
    deployer: str
    token: str
    dao: str

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)


def deploy_contracts(
    chain: Chain,
    deployer: str,
    *,
    chairman: Optional[str] = None,
    minimum_quorum: int = DEFAULT_MINIMUM_QUORUM,
    debating_period: int = DEFAULT_DEBATING_PERIOD,
    token_name: str = "TestToken",
    token_symbol: str = "TST",
    token_decimals: int = 18,
    initial_supply: int = 0,
) -> Deployment:
    deployer = normalize_address(deployer)

    token = chain.deploy(
        TestToken.kind,
        deployer,
        name=token_name,
        symbol=token_symbol,
        decimals=token_decimals,
        initial_supply=initial_supply,
    )
    log.info("Token %s deployed at %s", token_symbol, token)

    dao = chain.deploy(
        VotingDao.kind,
        deployer,
        chairman=normalize_address(chairman or deployer),
        token=token,
        minimum_quorum=minimum_quorum,
        debating_period=debating_period,
    )
    log.info("DAO deployed at %s (quorum=%d%%, period=%ds)", dao, minimum_quorum, debating_period)

    chain.transact(deployer, token, "transfer_ownership", dao)
    return Deployment(deployer=deployer, token=token, dao=dao)
