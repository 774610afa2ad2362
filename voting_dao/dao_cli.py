"""
voting_dao/dao_cli.py
---------------------
Per-action tasks against a running DAO node, over HTTP (requests).

    python -m voting_dao deposit --amount 100 --key-file alice.json
    python -m voting_dao vote --proposal-id 0 --votes-for true --sender 0xabc...

With --key-file the task signs a CallEnvelope (nonce fetched from
GET /dao/nonce/{address}, chain id from GET /health); with --sender only,
it sends an unsigned dev-mode envelope.
"""

from __future__ import annotations

import argparse
import sys
from typing import Any, Dict, Optional

import requests

from .crypto_utils import read_key_file
from .settings import settings
from .tx_envelope import CallEnvelope, sign_envelope


class DaoClientError(RuntimeError):
    def __init__(self, status: int, body: Dict[str, Any]):
        self.status = int(status)
        self.body = body if isinstance(body, dict) else {"message": str(body)}
        super().__init__(f"HTTP {self.status}: {self.error}: {self.message}")

    @property
    def error(self) -> str:
        detail = self.body.get("detail")
        return str(self.body.get("error") or ("HTTPError" if detail is None else "RequestRejected"))

    @property
    def message(self) -> str:
        return str(self.body.get("message") or self.body.get("detail") or "")


class DaoClient:
    """Thin HTTP client; one instance per task invocation."""

    def __init__(
        self,
        node_url: Optional[str] = None,
        *,
        account: Optional[Dict[str, str]] = None,
        sender: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Any = None,
    ) -> None:
        self.base_url = str(node_url or settings.NODE_URL).rstrip("/")
        self.account = account
        self.sender = account["address"] if account else str(sender or "")
        self.timeout = float(timeout if timeout is not None else settings.HTTP_TIMEOUT_SEC)
        self.http = session or requests.Session()

    def _request(self, method: str, path: str, **kwargs: Any) -> Dict[str, Any]:
        resp = self.http.request(method, f"{self.base_url}{path}", timeout=self.timeout, **kwargs)
        try:
            body = resp.json()
        except ValueError:
            body = {"message": resp.text}
        if resp.status_code >= 400:
            raise DaoClientError(resp.status_code, body)
        return body

    def get(self, path: str) -> Dict[str, Any]:
        return self._request("GET", path)

    def post(self, path: str, payload: Dict[str, Any]) -> Dict[str, Any]:
        return self._request("POST", path, json=payload)

    def submit(self, action: str, params: Dict[str, Any]) -> Dict[str, Any]:
        env = CallEnvelope(sender=self.sender, action=action, params=params)
        if self.account:
            env.nonce = int(self.get(f"/dao/nonce/{self.sender}")["nonce"])
            chain_id = self.get("/health")["chain_id"]
            sign_envelope(env, self.account["sk"], self.account["pk"], chain_id)
        return self.post("/dao/tx", env.to_dict())

    def dao_address(self) -> str:
        return str(self.get("/health")["dao"])


# ---------------------------------------------------------------------------
# Tasks
# ---------------------------------------------------------------------------


def _bool(val: str) -> bool:
    v = str(val).strip().lower()
    if v in ("1", "true", "yes", "for"):
        return True
    if v in ("0", "false", "no", "against"):
        return False
    raise argparse.ArgumentTypeError(f"expected true/false, got {val!r}")


def _client(args: argparse.Namespace, session: Any = None) -> DaoClient:
    account = read_key_file(args.key_file) if getattr(args, "key_file", None) else None
    if account is None and not getattr(args, "sender", None) and args.task != "description":
        raise SystemExit("either --key-file or --sender is required")
    return DaoClient(args.node_url, account=account, sender=getattr(args, "sender", None), session=session)


def _task_deposit(c: DaoClient, args: argparse.Namespace) -> None:
    c.submit("deposit", {"amount": args.amount})
    print(f"Successfully transferred {args.amount} tokens from {c.sender} to {c.dao_address()}")


def _task_withdraw(c: DaoClient, args: argparse.Namespace) -> None:
    c.submit("withdraw", {"amount": args.amount})
    print(f"Successfully transferred {args.amount} tokens from {c.dao_address()} to {c.sender}")


def _task_approve(c: DaoClient, args: argparse.Namespace) -> None:
    params: Dict[str, Any] = {"amount": args.amount}
    if args.spender:
        params["spender"] = args.spender
    c.submit("approve", params)
    print(f"Successfully approved {args.amount} tokens for {args.spender or c.dao_address()}")


def _task_add_proposal(c: DaoClient, args: argparse.Namespace) -> None:
    receipt = c.submit(
        "add_proposal",
        {"recipient": args.recipient, "data": args.data, "description": args.description},
    )
    print(f"Successfully created new proposal with id {receipt['result']}")


def _task_vote(c: DaoClient, args: argparse.Namespace) -> None:
    c.submit("vote", {"proposal_id": args.proposal_id, "votes_for": args.votes_for})
    side = "for" if args.votes_for else "against"
    print(f"Successfully voted `{side}` on the proposal with id {args.proposal_id}")


def _task_finish(c: DaoClient, args: argparse.Namespace) -> None:
    receipt = c.submit("finish_proposal", {"proposal_id": args.proposal_id})
    res = receipt.get("result") or {}
    print(f"Successfully finished the proposal with id {args.proposal_id}")
    outcome = res.get("status", "")
    if res.get("reason"):
        outcome = f"{outcome} ({res['reason']})"
    print(f"Outcome: {outcome}")


def _task_description(c: DaoClient, args: argparse.Namespace) -> None:
    print(c.get(f"/dao/proposals/{args.proposal_id}/description")["description"])


TASKS = {
    "deposit": _task_deposit,
    "withdraw": _task_withdraw,
    "approve": _task_approve,
    "add-proposal": _task_add_proposal,
    "vote": _task_vote,
    "finish": _task_finish,
    "description": _task_description,
}


def add_task_parsers(sub: Any) -> None:
    common = argparse.ArgumentParser(add_help=False)
    common.add_argument("--node-url", default=None, help=f"DAO node URL (default: {settings.NODE_URL})")
    common.add_argument("--key-file", default=None, help="Key file from `keygen`; signs the request")
    common.add_argument("--sender", default=None, help="Sender address for unsigned dev-mode requests")

    p = sub.add_parser("deposit", parents=[common], help="Stake tokens into the DAO")
    p.add_argument("--amount", type=int, required=True)

    p = sub.add_parser("withdraw", parents=[common], help="Withdraw staked tokens")
    p.add_argument("--amount", type=int, required=True)

    p = sub.add_parser("approve", parents=[common], help="Approve the DAO to pull tokens")
    p.add_argument("--amount", type=int, required=True)
    p.add_argument("--spender", default=None, help="Defaults to the DAO address")

    p = sub.add_parser("add-proposal", parents=[common], help="Create a proposal (chairman only)")
    p.add_argument("--recipient", required=True, help="Target contract address")
    p.add_argument("--data", default="0x", help="Hex calldata for the target")
    p.add_argument("--description", default="")

    p = sub.add_parser("vote", parents=[common], help="Vote on a proposal")
    p.add_argument("--proposal-id", type=int, required=True)
    p.add_argument("--votes-for", type=_bool, required=True, help="true = for, false = against")

    p = sub.add_parser("finish", parents=[common], help="Resolve a proposal after its deadline")
    p.add_argument("--proposal-id", type=int, required=True)

    p = sub.add_parser("description", parents=[common], help="Print a proposal description")
    p.add_argument("--proposal-id", type=int, required=True)


def run_task(args: argparse.Namespace, session: Any = None) -> int:
    client = _client(args, session=session)
    try:
        TASKS[args.task](client, args)
    except DaoClientError as e:
        print(f"Error: {e.error}: {e.message}", file=sys.stderr)
        return 1
    except requests.RequestException as e:
        print(f"Error: cannot reach {client.base_url}: {e}", file=sys.stderr)
        return 2
    return 0
