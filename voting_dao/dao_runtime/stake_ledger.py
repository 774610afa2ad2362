"""
Stake Ledger: deposited balances and the withdrawal lock.

Storage (inside the DAO contract's storage dict):

    stakeholders[account] = {"deposited": int, "open_votes": [proposal_id, ...]}

Invariants
----------
- Every change to `deposited` is preceded (deposit) or guarded (withdraw)
  by a token transfer that reported success, so the sum of deposits never
  exceeds what the pool actually holds.
- An account cannot withdraw while any proposal it voted on is unfinished.
  "Unfinished" is read lazily from the registry at withdrawal time; the
  resolver never walks voter records.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Optional

from .codec import normalize_address
from .contracts import check_amount
from .errors import (
    AmountExceedsDeposit,
    InsufficientAllowance,
    InsufficientBalance,
    NotAStakeholder,
    ParticipatingInOpenProposals,
    TransferFailed,
    require,
)
from .token import TokenTransfer

log = logging.getLogger(__name__)


class StakeLedger:
    def __init__(self, host: Any, token: TokenTransfer, is_open: Callable[[int], bool]):
        """
        host    : object exposing .storage (dict) and .address (the pool)
        token   : TokenTransfer bound to the pool as caller
        is_open : proposal_id -> True while that proposal is unfinished
        """
        self._host = host
        self._token = token
        self._is_open = is_open

    @property
    def _stakeholders(self) -> Dict[str, Dict[str, Any]]:
        return self._host.storage.get("stakeholders", {})

    def _record(self, account: str, create: bool = False) -> Optional[Dict[str, Any]]:
        account = normalize_address(account)
        rec = self._stakeholders.get(account)
        if rec is None and create:
            rec = {"deposited": 0, "open_votes": []}
            self._host.storage.setdefault("stakeholders", {})[account] = rec
        return rec

    # ------------------------
    # Operations
    # ------------------------
    def deposit(self, account: str, amount: int) -> int:
        account = normalize_address(account)
        amount = check_amount(amount)
        pool = self._host.address

        require(amount <= self._token.balance_of(account), InsufficientBalance)
        require(amount <= self._token.allowance(account, pool), InsufficientAllowance)
        require(self._token.transfer_from(account, pool, amount), TransferFailed)

        rec = self._record(account, create=True)
        rec["deposited"] = int(rec["deposited"]) + amount
        log.info("Deposit %s +%d (now %d)", account, amount, rec["deposited"])
        return rec["deposited"]

    def withdraw(self, account: str, amount: int) -> int:
        account = normalize_address(account)
        amount = check_amount(amount)

        rec = self._record(account)
        require(rec is not None, NotAStakeholder)

        still_open = [pid for pid in rec.get("open_votes", []) if self._is_open(int(pid))]
        rec["open_votes"] = still_open
        require(not still_open, ParticipatingInOpenProposals)
        require(amount <= int(rec["deposited"]), AmountExceedsDeposit)

        rec["deposited"] = int(rec["deposited"]) - amount
        require(self._token.transfer(account, amount), TransferFailed)
        log.info("Withdraw %s -%d (now %d)", account, amount, rec["deposited"])
        return rec["deposited"]

    def record_vote(self, account: str, proposal_id: int) -> None:
        rec = self._record(account, create=True)
        votes: List[int] = rec.setdefault("open_votes", [])
        if int(proposal_id) not in votes:
            votes.append(int(proposal_id))

    # ------------------------
    # Reads
    # ------------------------
    def weight_of(self, account: str) -> int:
        rec = self._record(account)
        return int(rec["deposited"]) if rec else 0

    def open_votes(self, account: str) -> List[int]:
        rec = self._record(account)
        if not rec:
            return []
        return [int(pid) for pid in rec.get("open_votes", []) if self._is_open(int(pid))]

    def total_deposited(self) -> int:
        return sum(int(r.get("deposited", 0)) for r in self._stakeholders.values())

    def stakeholder(self, account: str) -> Dict[str, Any]:
        account = normalize_address(account)
        rec = self._record(account)
        return {
            "account": account,
            "known": rec is not None,
            "deposited": int(rec["deposited"]) if rec else 0,
            "open_votes": self.open_votes(account),
        }
