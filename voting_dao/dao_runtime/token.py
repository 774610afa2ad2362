"""
Fungible token side of the DAO.

- TokenTransfer: the four-call interface the DAO consumes
  (balance_of / allowance / transfer_from / transfer)
- TokenClient:   TokenTransfer over chain sub-calls, bound to a caller
                 address (the DAO)
- TestToken:     owner-mintable ERC20-style contract used by deployments,
                 reporting transfer failure as False rather than raising
"""

from __future__ import annotations

import logging
from typing import Any, Dict, Protocol

from .codec import encode_call, is_zero_address, normalize_address
from .contracts import Contract, check_amount, external, register_kind, view
from .errors import DaoError, NotOwner, ZeroAddress, require
from .events import Approval, OwnershipTransferred, Transfer

log = logging.getLogger(__name__)


class TokenTransfer(Protocol):
    def balance_of(self, account: str) -> int: ...

    def allowance(self, owner: str, spender: str) -> int: ...

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool: ...

    def transfer(self, recipient: str, amount: int) -> bool: ...


class TokenClient:
    """
    TokenTransfer implementation used by contracts.

    Reads that fail abort the surrounding transaction (the token is broken
    or missing); transfers that fail are reported as False and left for the
    caller to check.
    """

    def __init__(self, chain: Any, token: str, caller: str):
        self.chain = chain
        self.token = normalize_address(token)
        self.caller = normalize_address(caller)

    def _read(self, fn: str, *args: Any) -> int:
        res = self.chain.call(self.caller, self.token, encode_call(fn, *args))
        if not res.success:
            raise DaoError(f"Token call {fn} failed: {res.error}")
        try:
            return int(res.data)
        except (TypeError, ValueError):
            raise DaoError(f"Token call {fn} returned {res.data!r}") from None

    def balance_of(self, account: str) -> int:
        return self._read("balance_of", normalize_address(account))

    def allowance(self, owner: str, spender: str) -> int:
        return self._read("allowance", normalize_address(owner), normalize_address(spender))

    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        res = self.chain.call(
            self.caller,
            self.token,
            encode_call("transfer_from", normalize_address(sender), normalize_address(recipient), int(amount)),
        )
        return bool(res.success and res.data is True)

    def transfer(self, recipient: str, amount: int) -> bool:
        res = self.chain.call(
            self.caller, self.token, encode_call("transfer", normalize_address(recipient), int(amount))
        )
        return bool(res.success and res.data is True)


@register_kind
class TestToken(Contract):
    kind = "TestToken"
    __test__ = False  # not a pytest class

    def constructor(
        self,
        name: str = "TestToken",
        symbol: str = "TST",
        decimals: int = 18,
        initial_supply: int = 0,
    ) -> None:
        s = self.storage
        s["name"] = str(name)
        s["symbol"] = str(symbol)
        s["decimals"] = int(decimals)
        s["owner"] = self.sender
        s["total_supply"] = 0
        s["balances"] = {}
        s["allowances"] = {}
        if initial_supply:
            self._mint(self.sender, check_amount(initial_supply))

    # ------------------------
    # Internal helpers
    # ------------------------
    def _balances(self) -> Dict[str, int]:
        return self.storage.setdefault("balances", {})

    def _allowances(self) -> Dict[str, Dict[str, int]]:
        return self.storage.setdefault("allowances", {})

    def _move(self, sender: str, recipient: str, amount: int) -> bool:
        balances = self._balances()
        if is_zero_address(recipient) or int(balances.get(sender, 0)) < amount:
            return False
        balances[sender] = int(balances.get(sender, 0)) - amount
        balances[recipient] = int(balances.get(recipient, 0)) + amount
        self.emit(Transfer(sender, recipient, amount))
        return True

    def _mint(self, to: str, amount: int) -> None:
        balances = self._balances()
        balances[to] = int(balances.get(to, 0)) + amount
        self.storage["total_supply"] = int(self.storage.get("total_supply", 0)) + amount
        self.emit(Transfer(normalize_address(""), to, amount))

    # ------------------------
    # Views
    # ------------------------
    @view
    def name(self) -> str:
        return str(self.storage.get("name", ""))

    @view
    def symbol(self) -> str:
        return str(self.storage.get("symbol", ""))

    @view
    def decimals(self) -> int:
        return int(self.storage.get("decimals", 18))

    @view
    def total_supply(self) -> int:
        return int(self.storage.get("total_supply", 0))

    @view
    def owner(self) -> str:
        return str(self.storage.get("owner", ""))

    @view
    def balance_of(self, account: str) -> int:
        return int(self._balances().get(normalize_address(account), 0))

    @view
    def allowance(self, owner: str, spender: str) -> int:
        per_owner = self._allowances().get(normalize_address(owner), {})
        return int(per_owner.get(normalize_address(spender), 0))

    # ------------------------
    # Mutations
    # ------------------------
    @external
    def approve(self, spender: str, amount: int) -> bool:
        spender = normalize_address(spender)
        amount = check_amount(amount)
        self._allowances().setdefault(self.sender, {})[spender] = amount
        self.emit(Approval(self.sender, spender, amount))
        return True

    @external
    def transfer(self, recipient: str, amount: int) -> bool:
        return self._move(self.sender, normalize_address(recipient), check_amount(amount))

    @external
    def transfer_from(self, sender: str, recipient: str, amount: int) -> bool:
        sender = normalize_address(sender)
        amount = check_amount(amount)
        per_owner = self._allowances().setdefault(sender, {})
        allowed = int(per_owner.get(self.sender, 0))
        if allowed < amount:
            return False
        if not self._move(sender, normalize_address(recipient), amount):
            return False
        per_owner[self.sender] = allowed - amount
        return True

    @external
    def mint(self, to: str, amount: int) -> bool:
        require(self.sender == self.owner(), NotOwner)
        to = normalize_address(to)
        require(not is_zero_address(to), ZeroAddress)
        self._mint(to, check_amount(amount))
        return True

    @external
    def transfer_ownership(self, new_owner: str) -> None:
        require(self.sender == self.owner(), NotOwner)
        new_owner = normalize_address(new_owner)
        require(not is_zero_address(new_owner), ZeroAddress)
        previous = self.owner()
        self.storage["owner"] = new_owner
        self.emit(OwnershipTransferred(previous, new_owner))
        log.info("Token %s ownership %s -> %s", self.address, previous, new_owner)
