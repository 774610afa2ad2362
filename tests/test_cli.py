import json

import pytest
import requests
from fastapi.testclient import TestClient

from voting_dao.__main__ import main, parse_args
from voting_dao.config import load_config
from voting_dao.crypto_utils import read_key_file
from voting_dao.dao_api import create_app
from voting_dao.dao_cli import run_task
from voting_dao.dao_executor import DaoExecutor
from voting_dao.dao_runtime import ManualClock
from voting_dao.dao_runtime.codec import encode_call

DEPLOYER = "0x" + "11" * 20
NODE = "http://testserver"


@pytest.fixture
def node(tmp_path):
    cfg = load_config(str(tmp_path))
    cfg["dao"]["debating_period_sec"] = 30
    cfg["token"]["initial_supply"] = 5_000
    cfg["security"]["require_signed_tx"] = True
    ex = DaoExecutor(cfg, str(tmp_path / "node"), clock=ManualClock(start=100))
    return ex, TestClient(create_app(ex))


def _run(session, *argv):
    return run_task(parse_args(list(argv) + ["--node-url", NODE]), session=session)


def test_keygen_writes_key_file(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["keygen", "--out", "keys/alice.json"]) == 0
    acct = read_key_file(tmp_path / "keys" / "alice.json")
    assert acct["address"] in capsys.readouterr().out


def test_deploy_prints_addresses(tmp_path, monkeypatch, capsys):
    monkeypatch.chdir(tmp_path)
    assert main(["deploy", "--data-dir", str(tmp_path / "state")]) == 0
    out = json.loads(capsys.readouterr().out)
    assert out["deployer"] == DEPLOYER
    assert out["dao"].startswith("0x") and out["token"].startswith("0x")
    assert (tmp_path / "state" / "dao_state.json").exists()


def test_signed_tasks_end_to_end(tmp_path, node, capsys):
    ex, client = node
    main(["keygen", "--out", str(tmp_path / "alice.json")])
    alice = read_key_file(tmp_path / "alice.json")
    key = ["--key-file", str(tmp_path / "alice.json")]

    # fund alice and hand her the chair directly on the chain
    ex.chain.transact(DEPLOYER, ex.deployment.token, "transfer", alice["address"], 100)
    ex.chain.transact(DEPLOYER, ex.deployment.dao, "change_chairman", alice["address"])
    capsys.readouterr()

    assert _run(client, "approve", "--amount", "100", *key) == 0
    assert _run(client, "deposit", "--amount", "60", *key) == 0
    assert "Successfully transferred 60 tokens" in capsys.readouterr().out

    data = "0x" + encode_call("mint", alice["address"], 1).hex()
    assert _run(client, "add-proposal", "--recipient", ex.deployment.token, "--data", data,
                "--description", "one more", *key) == 0
    assert "Successfully created new proposal with id 0" in capsys.readouterr().out

    assert _run(client, "vote", "--proposal-id", "0", "--votes-for", "true", *key) == 0
    assert "Successfully voted `for` on the proposal with id 0" in capsys.readouterr().out

    assert _run(client, "finish", "--proposal-id", "0", *key) == 1
    assert "ProposalInProgress" in capsys.readouterr().err

    ex.increase_time(30)
    assert _run(client, "finish", "--proposal-id", "0", *key) == 0
    out = capsys.readouterr().out
    assert "Successfully finished the proposal with id 0" in out
    assert "Outcome: approved" in out

    assert _run(client, "description", "--proposal-id", "0") == 0
    assert capsys.readouterr().out.strip() == "one more"

    assert _run(client, "withdraw", "--amount", "60", *key) == 0
    assert ex.token_balance(alice["address"]) == 101
    assert ex.expected_nonce(alice["address"]) == 6


def test_unsigned_task_rejected_by_signed_node(node, capsys):
    _, client = node
    assert _run(client, "deposit", "--amount", "1", "--sender", DEPLOYER) == 1
    assert "SignatureError" in capsys.readouterr().err


def test_unreachable_node(capsys):
    class Down:
        def request(self, *args, **kwargs):
            raise requests.ConnectionError("connection refused")

    assert _run(Down(), "deposit", "--amount", "1", "--sender", DEPLOYER) == 2
    assert "cannot reach" in capsys.readouterr().err


def test_task_requires_identity():
    with pytest.raises(SystemExit):
        _run(None, "deposit", "--amount", "1")
