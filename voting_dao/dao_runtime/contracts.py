"""
Contract base class + kind registry.

A contract is a Python class bound to (chain, address, sender). Its
persistent storage is the dict at chain.state["contracts"][address]["storage"];
it is looked up on every access, because a rolled-back sub-call replaces
the state dicts underneath any live instance.

Methods marked @external can be reached through calldata (the
Callable-Target interface); @view additionally marks them read-only.
"""

from __future__ import annotations

from typing import Any, Callable, Dict, Protocol, Type, TYPE_CHECKING

from .codec import ZERO_ADDRESS, decode_call, normalize_address
from .errors import ContractNotFound, InvalidAmount, UnknownFunction

if TYPE_CHECKING:  # pragma: no cover
    from .chain import Chain


_KINDS: Dict[str, Type["Contract"]] = {}


class CallableTarget(Protocol):
    """Anything the chain can run opaque calldata against (bound to its caller)."""

    def invoke(self, data: bytes) -> Any: ...


def external(fn: Callable) -> Callable:
    fn.__dao_external__ = True
    return fn


def view(fn: Callable) -> Callable:
    fn.__dao_external__ = True
    fn.__dao_view__ = True
    return fn


def register_kind(cls: Type["Contract"]) -> Type["Contract"]:
    if not cls.kind:
        raise ValueError(f"{cls.__name__} has no kind")
    _KINDS[cls.kind] = cls
    return cls


def kind_class(kind: str) -> Type["Contract"]:
    try:
        return _KINDS[kind]
    except KeyError:
        raise ValueError(f"unknown contract kind: {kind!r}") from None


def check_amount(value: Any) -> int:
    """Token amounts are non-negative integers (bools rejected)."""
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise InvalidAmount()
    return value


class Contract:
    kind = ""

    def __init__(self, chain: "Chain", address: str, sender: str = ZERO_ADDRESS):
        self.chain = chain
        self.address = normalize_address(address)
        self.sender = normalize_address(sender)

    # ------------------------
    # Environment accessors
    # ------------------------
    @property
    def storage(self) -> Dict[str, Any]:
        entry = self.chain.state.get("contracts", {}).get(self.address)
        if not isinstance(entry, dict):
            raise ContractNotFound(f"No contract at {self.address}")
        return entry.setdefault("storage", {})

    def now(self) -> int:
        return self.chain.now()

    def emit(self, event: Any) -> None:
        self.chain.emit(self.address, event)

    # ------------------------
    # Lifecycle
    # ------------------------
    def constructor(self, *args: Any, **kwargs: Any) -> None:
        """Runs once at deploy time with sender == deployer."""

    # ------------------------
    # Dispatch
    # ------------------------
    def external_method(self, fn: str, *, view_only: bool = False) -> Callable:
        name = str(fn or "")
        if name.startswith("_"):
            raise UnknownFunction(f"{self.kind} does not export {name!r}")
        method = getattr(self, name, None)
        if not callable(method) or not getattr(method, "__dao_external__", False):
            raise UnknownFunction(f"{self.kind} does not export {name!r}")
        if view_only and not getattr(method, "__dao_view__", False):
            raise UnknownFunction(f"{self.kind}.{name} is not a view")
        return method

    def invoke(self, data: bytes) -> Any:
        """Callable-Target entrypoint: run opaque calldata against this contract."""
        try:
            fn, args = decode_call(data)
        except ValueError as e:
            raise UnknownFunction(str(e)) from e
        return self.external_method(fn)(*args)
