"""
GovernanceConfig: chairman / owner roles and the voting parameters.

Lives in the DAO contract's storage under "config":

    chairman          sole proposer; may hand the role over
    owner             deployer; sets quorum + debating period
    minimum_quorum    percent of the pool that must vote, within [0, 100]
    debating_period   seconds a proposal accepts votes
    token             address of the staked token
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from .codec import is_zero_address, normalize_address
from .errors import InvalidAmount, NotChairman, NotOwner, QuorumOutOfRange, ZeroAddress, require

log = logging.getLogger(__name__)

MAX_QUORUM_PERCENT = 100


def check_quorum(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int):
        raise QuorumOutOfRange()
    require(0 <= value <= MAX_QUORUM_PERCENT, QuorumOutOfRange)
    return value


def check_period(value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAmount("Debating period must be a non-negative number of seconds")
    return value


class GovernanceConfig:
    def __init__(self, host: Any):
        self._host = host

    @classmethod
    def initialize(
        cls,
        host: Any,
        *,
        owner: str,
        chairman: str,
        token: str,
        minimum_quorum: int,
        debating_period: int,
    ) -> "GovernanceConfig":
        host.storage["config"] = {
            "owner": normalize_address(owner),
            "chairman": normalize_address(chairman),
            "token": normalize_address(token),
            "minimum_quorum": check_quorum(minimum_quorum),
            "debating_period": check_period(debating_period),
        }
        return cls(host)

    @property
    def _cfg(self) -> Dict[str, Any]:
        return self._host.storage.setdefault("config", {})

    # ------------------------
    # Reads
    # ------------------------
    @property
    def chairman(self) -> str:
        return str(self._cfg.get("chairman", ""))

    @property
    def owner(self) -> str:
        return str(self._cfg.get("owner", ""))

    @property
    def token(self) -> str:
        return str(self._cfg.get("token", ""))

    @property
    def minimum_quorum(self) -> int:
        return int(self._cfg.get("minimum_quorum", 0))

    @property
    def debating_period(self) -> int:
        return int(self._cfg.get("debating_period", 0))

    def to_dict(self) -> Dict[str, Any]:
        return dict(self._cfg)

    # ------------------------
    # Gates
    # ------------------------
    def require_chairman(self, caller: str) -> None:
        require(normalize_address(caller) == self.chairman, NotChairman)

    def require_owner(self, caller: str) -> None:
        require(normalize_address(caller) == self.owner, NotOwner)

    # ------------------------
    # Mutators
    # ------------------------
    def change_chairman(self, caller: str, new_chairman: str) -> None:
        self.require_chairman(caller)
        require(not is_zero_address(new_chairman), ZeroAddress)
        previous = self.chairman
        self._cfg["chairman"] = normalize_address(new_chairman)
        log.info("Chairman changed %s -> %s", previous, self.chairman)

    def set_minimum_quorum(self, caller: str, value: int) -> None:
        self.require_owner(caller)
        self._cfg["minimum_quorum"] = check_quorum(value)
        log.info("Minimum quorum set to %d%%", self.minimum_quorum)

    def set_debating_period(self, caller: str, value: int) -> None:
        self.require_owner(caller)
        self._cfg["debating_period"] = check_period(value)
        log.info("Debating period set to %ds", self.debating_period)
