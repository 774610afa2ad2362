import pytest

from voting_dao.config import load_config
from voting_dao.crypto_utils import new_account
from voting_dao.dao_executor import DaoExecutor
from voting_dao.dao_runtime import ManualClock
from voting_dao.dao_runtime.codec import encode_call
from voting_dao.tx_envelope import CallEnvelope, sign_envelope

DEPLOYER = "0x" + "11" * 20
ALICE = "0x" + "a1" * 20


def _cfg(tmp_path, **security):
    cfg = load_config(str(tmp_path))
    cfg["dao"]["debating_period_sec"] = 100
    cfg["token"]["initial_supply"] = 10_000
    cfg["security"].update(security)
    return cfg


@pytest.fixture
def clock():
    return ManualClock(start=1_000)


@pytest.fixture
def ex(tmp_path, clock):
    return DaoExecutor(_cfg(tmp_path), str(tmp_path / "data"), clock=clock)


def _env(sender, action, **params):
    return CallEnvelope(sender=sender, action=action, params=params)


def test_bootstrap_deploys_and_persists(ex, tmp_path, clock):
    dep = ex.deployment
    assert dep.deployer == DEPLOYER
    assert ex.token_balance(DEPLOYER) == 10_000
    assert ex.store.path.exists()

    again = DaoExecutor(_cfg(tmp_path), str(tmp_path / "data"), clock=clock)
    assert again.deployment == dep
    assert again.dao_params()["debating_period"] == 100


def test_full_flow_through_submit(ex, tmp_path, clock):
    assert ex.submit(_env(DEPLOYER, "transfer", recipient=ALICE, amount=500))[0]
    assert ex.submit(_env(ALICE, "approve", amount=500))[0]
    assert ex.token_allowance(ALICE, ex.deployment.dao) == 500

    ok, receipt = ex.submit(_env(ALICE, "deposit", amount=200))
    assert ok and receipt["result"] == 200 and receipt["sender"] == ALICE

    data = "0x" + encode_call("mint", ALICE, 1).hex()
    ok, receipt = ex.submit(_env(DEPLOYER, "add_proposal", recipient=ex.deployment.token, data=data, description="mint 1"))
    pid = receipt["result"]
    assert ex.submit(_env(ALICE, "vote", proposal_id=pid, votes_for=True))[0]

    clock.advance(100)
    ok, receipt = ex.submit(_env(ALICE, "finish_proposal", proposal_id=pid))
    assert ok and receipt["result"]["status"] == "approved"
    assert ex.token_balance(ALICE) == 301
    assert ex.description(pid) == "mint 1"

    reloaded = DaoExecutor(_cfg(tmp_path), str(tmp_path / "data"), clock=clock)
    assert reloaded.stakeholder(ALICE)["deposited"] == 200
    assert reloaded.proposal(pid)["finished"]


def test_failed_submit_reports_error_and_changes_nothing(ex):
    before = dict(ex.chain.state["contracts"][ex.deployment.dao]["storage"])
    ok, receipt = ex.submit(_env(ALICE, "deposit", amount=5))
    assert not ok
    assert receipt["error"] == "InsufficientBalance"
    assert receipt["message"] == "Not enough balance"
    assert ex.chain.state["contracts"][ex.deployment.dao]["storage"] == before


def test_bad_params(ex):
    ok, receipt = ex.submit(_env(ALICE, "deposit"))
    assert not ok and receipt["error"] == "InvalidParams"
    ok, receipt = ex.submit(_env(ALICE, "self_destruct"))
    assert not ok and receipt["error"] == "InvalidParams"
    ok, receipt = ex.submit(_env(DEPLOYER, "add_proposal", recipient=ex.deployment.token, data="zz"))
    assert not ok and receipt["error"] == "InvalidParams"


def test_vote_side_must_be_a_boolean(ex):
    assert ex.submit(_env(DEPLOYER, "transfer", recipient=ALICE, amount=500))[0]
    assert ex.submit(_env(ALICE, "approve", amount=500))[0]
    assert ex.submit(_env(ALICE, "deposit", amount=200))[0]
    ok, receipt = ex.submit(_env(DEPLOYER, "add_proposal", recipient=ex.deployment.token, description="x"))
    pid = receipt["result"]

    for bad in ("false", "true", 1, 0, None):
        ok, receipt = ex.submit(_env(ALICE, "vote", proposal_id=pid, votes_for=bad))
        assert not ok and receipt["error"] == "InvalidParams"

    p = ex.proposal(pid)
    assert (p["votes_for"], p["votes_against"], p["voters"]) == (0, 0, [])
    assert ex.stakeholder(ALICE)["open_votes"] == []

    assert ex.submit(_env(ALICE, "vote", proposal_id=pid, votes_for=False))[0]
    assert ex.proposal(pid)["votes_against"] == 200


def test_signed_envelopes_and_nonces(tmp_path, clock):
    ex = DaoExecutor(_cfg(tmp_path, require_signed_tx=True), str(tmp_path / "signed"), clock=clock)
    acct = new_account()

    ok, receipt = ex.submit(_env(acct["address"], "approve", amount=1))
    assert not ok and receipt["error"] == "SignatureError"

    env = sign_envelope(CallEnvelope("", "approve", {"amount": 1}, nonce=0), acct["sk"], acct["pk"], ex.chain_id)
    assert ex.submit(env)[0]
    assert ex.expected_nonce(acct["address"]) == 1

    ok, receipt = ex.submit(env)  # replay
    assert not ok and receipt["error"] == "BadNonce"

    # a reverted call does not consume the nonce
    env = sign_envelope(CallEnvelope("", "deposit", {"amount": 1}, nonce=1), acct["sk"], acct["pk"], ex.chain_id)
    ok, receipt = ex.submit(env)
    assert not ok and receipt["error"] == "InsufficientBalance"
    assert ex.expected_nonce(acct["address"]) == 1


def test_increase_time_requires_dev_tools(tmp_path, clock):
    ex = DaoExecutor(_cfg(tmp_path, dev_tools=False), str(tmp_path / "nodev"), clock=clock)
    with pytest.raises(PermissionError):
        ex.increase_time(10)

    dev = DaoExecutor(_cfg(tmp_path), str(tmp_path / "dev"), clock=clock)
    assert dev.increase_time(10) == 1_010
    assert dev.dao_params()["now"] == 1_010
