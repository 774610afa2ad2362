# voting_dao/__main__.py
"""
Entry point for running the DAO node and its tasks as a module:

    python -m voting_dao serve   [--host 127.0.0.1] [--port 8000] [--data-dir ./data]
    python -m voting_dao deploy  [--data-dir ./data]
    python -m voting_dao keygen  --out alice.json
    python -m voting_dao deposit|withdraw|approve|add-proposal|vote|finish|description ...

Config: ./dao_config.yaml plus DAO_* env overrides (see voting_dao.config).
"""

from __future__ import annotations

import argparse
import json
import os

from .config import configure_logging, get_bind_host, get_bind_port, load_config
from .crypto_utils import new_account, write_key_file
from .dao_cli import TASKS, add_task_parsers, run_task
from .settings import settings


def parse_args(argv=None):
    p = argparse.ArgumentParser(prog="voting-dao", description="Token-stake-weighted governance node")
    sub = p.add_subparsers(dest="task", required=True)

    s = sub.add_parser("serve", help="Run the HTTP node (uvicorn)")
    s.add_argument("--host", default=None, help="Bind address (default: server.host from config)")
    s.add_argument("--port", type=int, default=None, help="Port (default: server.port from config)")
    s.add_argument("--data-dir", default=settings.DATA_DIR, help="State directory")

    d = sub.add_parser("deploy", help="Deploy token + DAO into the local state and print addresses")
    d.add_argument("--data-dir", default=settings.DATA_DIR, help="State directory")

    k = sub.add_parser("keygen", help="Write a new Ed25519 key file")
    k.add_argument("--out", required=True, help="Key file path")

    add_task_parsers(sub)
    return p.parse_args(argv)


def _serve(args, cfg) -> int:
    import uvicorn

    from .dao_api import create_app
    from .dao_executor import DaoExecutor

    app = create_app(DaoExecutor(cfg, args.data_dir))
    uvicorn.run(app, host=args.host or get_bind_host(cfg), port=args.port or get_bind_port(cfg))
    return 0


def _deploy(args, cfg) -> int:
    from .dao_executor import DaoExecutor

    ex = DaoExecutor(cfg, args.data_dir)
    print(json.dumps({**ex.deployment.to_dict(), "state": str(ex.store.path)}, indent=2))
    return 0


def _keygen(args) -> int:
    account = new_account()
    path = write_key_file(args.out, account)
    print(f"Wrote {path} for {account['address']}")
    return 0


def main(argv=None) -> int:
    args = parse_args(argv)
    cfg = load_config(os.getcwd())
    configure_logging(cfg)

    if args.task == "serve":
        return _serve(args, cfg)
    if args.task == "deploy":
        return _deploy(args, cfg)
    if args.task == "keygen":
        return _keygen(args)
    if args.task in TASKS:
        return run_task(args)
    raise SystemExit(f"unknown task {args.task!r}")


if __name__ == "__main__":
    raise SystemExit(main())
