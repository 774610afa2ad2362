"""
DAO Executor

Owns one Chain (token + DAO), its on-disk snapshot and the envelope policy.

- bootstrap: first start with no saved state deploys token + DAO from config
- submit(envelope): verify -> map action to a contract method -> run it
  atomically -> commit nonce -> persist
- reads: params, proposals, stakeholders, balances, events, nonces
- dev: increase_time (fast-forward block time, persisted)

Thread-safe through the chain lock; the HTTP layer calls in from worker
threads.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

from .config import dev_tools_enabled, get_chain_id
from .dao_runtime import Chain, Deployment, deploy_contracts, make_clock
from .dao_runtime.atomic_store import AtomicStore
from .dao_runtime.codec import normalize_address, state_hash
from .dao_runtime.errors import DaoError, InvalidParams
from .tx_envelope import CallEnvelope, EnvelopePolicy, NonceStore, verify_envelope

log = logging.getLogger(__name__)


# action -> (contract, method, ordered params)
ACTIONS: Dict[str, Tuple[str, str, Tuple[str, ...]]] = {
    "deposit": ("dao", "deposit", ("amount",)),
    "withdraw": ("dao", "withdraw", ("amount",)),
    "add_proposal": ("dao", "add_proposal", ("recipient", "data", "description")),
    "vote": ("dao", "vote", ("proposal_id", "votes_for")),
    "finish_proposal": ("dao", "finish_proposal", ("proposal_id",)),
    "change_chairman": ("dao", "change_chairman", ("new_chairman",)),
    "set_minimum_quorum": ("dao", "set_minimum_quorum", ("value",)),
    "set_debating_period": ("dao", "set_debating_period", ("value",)),
    "approve": ("token", "approve", ("spender", "amount")),
    "transfer": ("token", "transfer", ("recipient", "amount")),
}


class DaoExecutor:
    def __init__(self, cfg: Dict[str, Any], data_dir: str, *, clock: Any = None) -> None:
        self.cfg = cfg
        self.data_dir = str(data_dir)
        Path(self.data_dir).mkdir(parents=True, exist_ok=True)

        self.chain_id = get_chain_id(cfg)
        sec = cfg.get("security", {})
        self.policy = EnvelopePolicy(require_signature=bool(sec.get("require_signed_tx", False)))
        self.dev_tools = dev_tools_enabled(cfg)

        pers = cfg.get("persistence", {})
        self.store = AtomicStore(
            Path(self.data_dir) / str(pers.get("state_file", "dao_state.json")),
            keep_backups=int(pers.get("keep_backups", 2)),
        )

        clk = cfg.get("clock", {})
        self.clock = clock or make_clock(clk.get("mode", "system"), clk.get("start"))

        saved = self.store.load()
        self.chain = Chain(saved, clock=self.clock, chain_id=self.chain_id)
        if saved is None:
            self._bootstrap()
        log.info(
            "DAO executor ready: dao=%s token=%s signed_tx=%s",
            self.deployment.dao,
            self.deployment.token,
            self.policy.require_signature,
        )

    # ----------------------- bootstrap / persistence ------------------

    def _bootstrap(self) -> None:
        dao_cfg = self.cfg.get("dao", {})
        tok_cfg = self.cfg.get("token", {})
        dep = deploy_contracts(
            self.chain,
            str(dao_cfg.get("deployer") or ""),
            chairman=dao_cfg.get("chairman") or None,
            minimum_quorum=int(dao_cfg.get("minimum_quorum", 30)),
            debating_period=int(dao_cfg.get("debating_period_sec", 3 * 24 * 60 * 60)),
            token_name=str(tok_cfg.get("name", "TestToken")),
            token_symbol=str(tok_cfg.get("symbol", "TST")),
            token_decimals=int(tok_cfg.get("decimals", 18)),
            initial_supply=int(tok_cfg.get("initial_supply", 0)),
        )
        self.chain.state["deployment"] = dep.to_dict()
        self.save_state()

    @property
    def deployment(self) -> Deployment:
        d = self.chain.state.get("deployment") or {}
        return Deployment(deployer=d.get("deployer", ""), token=d.get("token", ""), dao=d.get("dao", ""))

    @property
    def nonce_store(self) -> NonceStore:
        # the chain swaps its dicts on rollback; look the backing dict up each time
        return NonceStore(self.chain.state.setdefault("nonces", {}))

    def save_state(self) -> None:
        with self.chain.lock:
            self.chain.state["state_hash"] = state_hash(self.chain.state)
            try:
                self.store.save(self.chain.state)
            except OSError:
                log.exception("Failed to persist DAO state to %s", self.store.path)
                raise

    # ----------------------- transactions ------------------

    def _address_of(self, contract: str) -> str:
        dep = self.deployment
        return dep.dao if contract == "dao" else dep.token

    def _bind_args(self, action: str, params: Dict[str, Any]) -> Tuple[str, str, List[Any]]:
        if action not in ACTIONS:
            raise InvalidParams(f"Unknown action {action!r}")
        contract, method, names = ACTIONS[action]
        params = dict(params or {})
        if action == "approve":
            params.setdefault("spender", self.deployment.dao)
        if action == "add_proposal":
            params.setdefault("data", "0x")
            params.setdefault("description", "")
        missing = [n for n in names if n not in params]
        if missing:
            raise InvalidParams(f"Missing params for {action}: {', '.join(missing)}")
        return self._address_of(contract), method, [params[n] for n in names]

    def submit(self, env: CallEnvelope) -> Tuple[bool, Dict[str, Any]]:
        """
        Verify and apply one envelope.

        Returns (ok, receipt). A failed envelope leaves the state untouched,
        nonce included.
        """
        with self.chain.lock:
            try:
                signed = bool(env.signature)
                sender = verify_envelope(
                    env,
                    self.chain_id,
                    policy=self.policy,
                    nonce_store=self.nonce_store if signed else None,
                )
                address, method, args = self._bind_args(env.action, env.params)
                try:
                    receipt = self.chain.transact(sender, address, method, *args)
                except (TypeError, ValueError) as e:
                    raise InvalidParams(f"{env.action}: {e}") from e
            except DaoError as e:
                return False, {"ok": False, "action": env.action, **e.to_dict()}

            if signed:
                self.nonce_store.commit(sender, int(env.nonce) + 1)
            self.save_state()

            out = receipt.to_dict()
            out["action"] = env.action
            out["sender"] = sender
            return True, out

    # ----------------------- reads ------------------

    def dao_params(self) -> Dict[str, Any]:
        dep = self.deployment
        with self.chain.lock:
            return {
                "chain_id": self.chain_id,
                **dep.to_dict(),
                **self.chain.view(dep.dao, "params"),
                "proposal_count": self.chain.view(dep.dao, "proposal_count"),
                "total_deposited": self.chain.view(dep.dao, "total_deposited"),
                "pool_balance": self.token_balance(dep.dao),
                "now": self.chain.now(),
                "require_signed_tx": self.policy.require_signature,
            }

    def proposal(self, proposal_id: int) -> Dict[str, Any]:
        return self.chain.view(self.deployment.dao, "proposal", int(proposal_id))

    def proposals(self) -> List[Dict[str, Any]]:
        return self.chain.view(self.deployment.dao, "proposals")

    def description(self, proposal_id: int) -> str:
        return self.chain.view(self.deployment.dao, "description", int(proposal_id))

    def stakeholder(self, account: str) -> Dict[str, Any]:
        return self.chain.view(self.deployment.dao, "stakeholder", normalize_address(account))

    def token_balance(self, account: str) -> int:
        return self.chain.view(self.deployment.token, "balance_of", normalize_address(account))

    def token_allowance(self, owner: str, spender: str) -> int:
        return self.chain.view(self.deployment.token, "allowance", normalize_address(owner), normalize_address(spender))

    def expected_nonce(self, account: str) -> int:
        return self.nonce_store.expected(account)

    def events(self, since: int = 0, address: Optional[str] = None) -> List[Dict[str, Any]]:
        with self.chain.lock:
            return list(self.chain.events(since=since, address=address))

    # ----------------------- dev ------------------

    def increase_time(self, seconds: int) -> int:
        if not self.dev_tools:
            raise PermissionError("dev tools are disabled")
        with self.chain.lock:
            now = self.chain.increase_time(int(seconds))
            self.save_state()
        log.info("Block time advanced by %ds (now %d)", int(seconds), now)
        return now


_executor: Optional[DaoExecutor] = None


def get_executor() -> DaoExecutor:
    """Process-wide executor built from dao_config.yaml in the working directory."""
    global _executor
    if _executor is None:
        from .config import load_config
        from .settings import settings

        _executor = DaoExecutor(load_config(os.getcwd()), settings.DATA_DIR)
    return _executor
