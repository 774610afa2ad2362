"""
Chain: the in-process settlement environment the DAO runs on.

Provides:
- addressing (contract addresses derived from deployer + deploy nonce)
- block time (clock + persisted time_offset)
- deploy / transact / view / call
- all-or-nothing execution: every transaction and every sub-call runs
  against a snapshot and is restored on failure

State layout (plain JSON-friendly dict, persisted by the executor):

    contracts      address -> {"kind", "deployer", "created_at", "storage"}
    deploy_nonces  deployer -> int
    nonces         sender -> next expected envelope nonce
    events         list of event records (see events.event_record)
    event_seq      running event counter
    time_offset    seconds added to the clock
"""

from __future__ import annotations

import copy
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional, Tuple

from .clock import SystemClock
from .codec import contract_address, normalize_address
from .contracts import CallableTarget, Contract, kind_class
from .errors import ContractNotFound, DaoError
from .events import event_record

log = logging.getLogger(__name__)

Snapshot = Tuple[Dict[str, Any], int]


def _ensure_dict(x: Any) -> dict:
    return x if isinstance(x, dict) else {}


def _ensure_list(x: Any) -> list:
    return x if isinstance(x, list) else []


@dataclass
class CallResult:
    success: bool
    data: Any = None
    error: str = ""


@dataclass
class Receipt:
    ok: bool
    result: Any = None
    events: List[Dict[str, Any]] = field(default_factory=list)
    error: Optional[Dict[str, str]] = None

    def to_dict(self) -> Dict[str, Any]:
        out: Dict[str, Any] = {"ok": self.ok, "result": self.result, "events": list(self.events)}
        if self.error:
            out["error"] = self.error
        return out


class Chain:
    def __init__(self, state: Optional[Dict[str, Any]] = None, clock: Any = None, chain_id: str = "dao-dev"):
        self.state: Dict[str, Any] = _ensure_dict(state)
        self.clock = clock or SystemClock()
        self.chain_id = str(chain_id)
        self._lock = threading.RLock()
        self._migrate()

    def _migrate(self) -> None:
        st = self.state
        st["contracts"] = _ensure_dict(st.get("contracts"))
        st["deploy_nonces"] = _ensure_dict(st.get("deploy_nonces"))
        st["nonces"] = _ensure_dict(st.get("nonces"))
        st["events"] = _ensure_list(st.get("events"))
        st["event_seq"] = int(st.get("event_seq") or 0)
        st["time_offset"] = int(st.get("time_offset") or 0)
        st.setdefault("chain_id", self.chain_id)

    @property
    def lock(self) -> threading.RLock:
        return self._lock

    # ----------------------- time ------------------

    def now(self) -> int:
        return int(self.clock.now(self.state.get("time_offset", 0)))

    def increase_time(self, seconds: int) -> int:
        with self._lock:
            self.state["time_offset"] = int(self.state.get("time_offset", 0)) + max(0, int(seconds))
            return self.now()

    # ----------------------- snapshots ------------------

    def snapshot(self) -> Snapshot:
        # events are append-only: remember the length instead of copying them
        rest = {k: v for k, v in self.state.items() if k != "events"}
        return copy.deepcopy(rest), len(self.state["events"])

    def restore(self, snap: Snapshot) -> None:
        rest, n_events = snap
        events = self.state["events"]
        del events[n_events:]
        self.state.clear()
        self.state.update(rest)
        self.state["events"] = events

    # ----------------------- contracts ------------------

    def code_at(self, address: str) -> str:
        entry = self.state["contracts"].get(normalize_address(address))
        if not isinstance(entry, dict):
            return ""
        return str(entry.get("kind") or "")

    def contract(self, address: str, sender: str = "") -> Contract:
        kind = self.code_at(address)
        if not kind:
            raise ContractNotFound(f"No contract at {normalize_address(address)}")
        return kind_class(kind)(self, address, sender=sender)

    def emit(self, address: str, event: Any) -> None:
        seq = int(self.state.get("event_seq", 0))
        self.state["events"].append(event_record(address, event, self.now(), seq))
        self.state["event_seq"] = seq + 1

    def deploy(self, kind: str, deployer: str, *args: Any, **kwargs: Any) -> str:
        deployer = normalize_address(deployer)
        with self._lock:
            snap = self.snapshot()
            try:
                cls = kind_class(kind)
                nonces = self.state["deploy_nonces"]
                n = int(nonces.get(deployer, 0))
                address = contract_address(deployer, n)
                nonces[deployer] = n + 1
                self.state["contracts"][address] = {
                    "kind": cls.kind,
                    "deployer": deployer,
                    "created_at": self.now(),
                    "storage": {},
                }
                cls(self, address, sender=deployer).constructor(*args, **kwargs)
            except Exception:
                self.restore(snap)
                raise
            log.info("Deployed %s at %s (deployer=%s)", kind, address, deployer)
            return address

    # ----------------------- execution ------------------

    def execute(self, sender: str, address: str, fn: str, args: List[Any]) -> Any:
        """Run an external method in the current transaction (no snapshot)."""
        return self.contract(address, sender).external_method(fn)(*args)

    def transact(self, sender: str, address: str, fn: str, *args: Any) -> Receipt:
        """
        Run one top-level transaction atomically.

        On DaoError the state is restored and the error re-raised; any other
        exception is a bug and is also rolled back and re-raised.
        """
        with self._lock:
            snap = self.snapshot()
            first_event = len(self.state["events"])
            try:
                result = self.execute(sender, address, fn, list(args))
            except DaoError as e:
                self.restore(snap)
                log.info("Reverted %s(%s) from %s: %s", fn, address, sender, e.reason)
                raise
            except Exception:
                self.restore(snap)
                raise
            return Receipt(ok=True, result=result, events=list(self.state["events"][first_event:]))

    def view(self, address: str, fn: str, *args: Any) -> Any:
        with self._lock:
            return self.contract(address).external_method(fn, view_only=True)(*args)

    def call(self, sender: str, address: str, data: bytes) -> CallResult:
        """
        Low-level sub-call with failure containment.

        Whatever the callee raises is reported as success=False and only the
        callee's own changes are rolled back; the caller's transaction goes on.
        """
        with self._lock:
            snap = self.snapshot()
            try:
                target: CallableTarget = self.contract(address, sender)
                result = target.invoke(bytes(data or b""))
            except Exception as e:
                self.restore(snap)
                log.warning("Sub-call %s -> %s failed: %s: %s", sender, address, type(e).__name__, e)
                return CallResult(success=False, error=f"{type(e).__name__}: {e}")
            return CallResult(success=True, data=result)

    # ----------------------- events ------------------

    def events(self, since: int = 0, address: Optional[str] = None) -> List[Dict[str, Any]]:
        out = []
        addr = normalize_address(address) if address else None
        for ev in self.state["events"]:
            if int(ev.get("seq", 0)) < int(since):
                continue
            if addr and ev.get("address") != addr:
                continue
            out.append(ev)
        return out
