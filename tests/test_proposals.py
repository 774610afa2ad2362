import pytest

from conftest import ALICE, BOB, CAROL, DEPLOYER, PERIOD, START, mock_stake
from voting_dao.dao_runtime.codec import encode_call
from voting_dao.dao_runtime.errors import (
    AlreadyVoted,
    EmptyPool,
    NotChairman,
    ProposalFinished,
    ProposalInProgress,
    ProposalNotFound,
    RecipientNotAContract,
)


def _set_pool(h, amount):
    h.chain.transact(DEPLOYER, h.token, "set_balance", h.dao, amount)


# ----------------------------- add_proposal -----------------------------


def test_add_proposal_assigns_sequential_ids(dao, recorder):
    assert dao.propose(recorder, description="first") == 0
    assert dao.propose(recorder, description="second") == 1
    assert [e["args"]["id"] for e in dao.events("ProposalCreated")] == [0, 1]

    p = dao.proposal(1)
    assert p["description"] == "second"
    assert p["created_at"] == START
    assert p["deadline"] == START + PERIOD
    assert (p["votes_for"], p["votes_against"], p["finished"]) == (0, 0, False)
    assert dao.view("description", 0) == "first"
    assert dao.view("proposal_count") == 2


def test_add_proposal_chairman_only(dao, recorder):
    with pytest.raises(NotChairman):
        dao.propose(recorder, sender=ALICE)


def test_add_proposal_target_must_be_contract(dao):
    with pytest.raises(RecipientNotAContract):
        dao.propose(BOB)
    assert dao.view("proposal_count") == 0


def test_description_of_missing_proposal(dao):
    with pytest.raises(ProposalNotFound):
        dao.view("description", 5)


# ----------------------------- vote -----------------------------


def test_vote_weighs_current_deposit(dao, recorder):
    dao.deposit(ALICE, 40)
    dao.deposit(BOB, 10)
    pid = dao.propose(recorder)

    assert dao.vote(ALICE, pid, True) == 40
    assert dao.vote(BOB, pid, False) == 10
    p = dao.proposal(pid)
    assert (p["votes_for"], p["votes_against"]) == (40, 10)
    assert p["voters"] == [ALICE, BOB]
    assert dao.stakeholder(ALICE)["open_votes"] == [pid]


def test_vote_once_per_account(dao, recorder):
    dao.deposit(ALICE, 1)
    pid = dao.propose(recorder)
    dao.vote(ALICE, pid, True)
    with pytest.raises(AlreadyVoted):
        dao.vote(ALICE, pid, False)
    assert dao.proposal(pid)["votes_against"] == 0


def test_vote_errors(dao, recorder):
    with pytest.raises(ProposalNotFound):
        dao.vote(ALICE, 0, True)
    pid = dao.propose(recorder)
    dao.past_deadline()
    with pytest.raises(ProposalFinished):
        dao.vote(ALICE, pid, True)


def test_zero_weight_vote_registers_voter(dao, recorder):
    pid = dao.propose(recorder)
    assert dao.vote(CAROL, pid, True) == 0
    assert dao.stakeholder(CAROL)["known"]
    assert dao.stakeholder(CAROL)["open_votes"] == [pid]


# ----------------------------- finish_proposal -----------------------------


def test_finish_before_deadline(dao, recorder):
    pid = dao.propose(recorder)
    dao.clock.advance(PERIOD - 1)
    with pytest.raises(ProposalInProgress):
        dao.finish(pid)
    with pytest.raises(ProposalNotFound):
        dao.finish(pid + 1)


def test_finish_without_votes(dao, recorder):
    pid = dao.propose(recorder, description="quiet")
    dao.past_deadline()
    res = dao.finish(pid).result
    assert res["status"] == "failed"
    assert res["reason"] == "No votes for proposal"
    assert dao.events("ProposalFailed")[-1]["args"] == {
        "id": pid,
        "description": "quiet",
        "reason": "No votes for proposal",
    }
    assert dao.proposal(pid)["finished"]


def test_finish_below_quorum(mock_dao, recorder):
    # 1 of a 5-token pool is 20%, below 30%
    mock_stake(mock_dao, ALICE, 1)
    _set_pool(mock_dao, 5)
    pid = mock_dao.propose(recorder, data=encode_call("ping", 1))
    mock_dao.vote(ALICE, pid, True)
    mock_dao.past_deadline()

    res = mock_dao.finish(pid).result
    assert res["reason"] == "Minimum quorum is not reached"
    assert res["quorum_percent"] == 20
    assert mock_dao.chain.view(recorder, "calls") == []


def test_finish_approved_dispatches_once(mock_dao, recorder):
    mock_stake(mock_dao, ALICE, 2)
    mock_stake(mock_dao, BOB, 1)
    _set_pool(mock_dao, 2)
    pid = mock_dao.propose(recorder, data=encode_call("ping", "go"), description="ping it")
    mock_dao.vote(ALICE, pid, True)
    mock_dao.vote(BOB, pid, False)
    mock_dao.past_deadline()

    receipt = mock_dao.finish(pid)
    assert receipt.result["status"] == "approved"
    assert mock_dao.chain.view(recorder, "calls") == [{"sender": mock_dao.dao, "value": "go"}]
    assert [e["event"] for e in receipt.events] == ["ProposalFinished"]
    assert receipt.events[0]["args"] == {"id": pid, "description": "ping it", "approved": True}

    with pytest.raises(ProposalFinished):
        mock_dao.finish(pid)
    assert len(mock_dao.chain.view(recorder, "calls")) == 1
    assert len(mock_dao.events("ProposalFinished")) == 1


def test_finish_rejected_does_not_dispatch(mock_dao, recorder):
    mock_stake(mock_dao, ALICE, 1)
    mock_stake(mock_dao, BOB, 2)
    _set_pool(mock_dao, 3)
    pid = mock_dao.propose(recorder, data=encode_call("ping", 1))
    mock_dao.vote(ALICE, pid, True)
    mock_dao.vote(BOB, pid, False)
    mock_dao.past_deadline()

    res = mock_dao.finish(pid).result
    assert res == {"proposal_id": pid, "status": "rejected", "approved": False, "reason": "", "quorum_percent": 100}
    assert mock_dao.chain.view(recorder, "calls") == []
    assert mock_dao.events("ProposalFinished")[-1]["args"]["approved"] is False


def test_tie_is_rejected(dao, recorder):
    dao.deposit(ALICE, 5)
    dao.deposit(BOB, 5)
    pid = dao.propose(recorder, data=encode_call("ping", 1))
    dao.vote(ALICE, pid, True)
    dao.vote(BOB, pid, False)
    dao.past_deadline()
    assert dao.finish(pid).result["status"] == "rejected"


def test_failing_target_marks_call_failed(dao, recorder):
    dao.deposit(ALICE, 10)
    pid = dao.propose(recorder, data=encode_call("fail"), description="doomed")
    dao.vote(ALICE, pid, True)
    dao.past_deadline()

    res = dao.finish(pid).result
    assert res["status"] == "failed" and res["reason"] == "Function call failed"
    assert dao.proposal(pid)["finished"]
    # the target's own writes were rolled back
    assert dao.chain.view(recorder, "calls") == []
    assert dao.withdraw(ALICE, 10) == 0


def test_reentrant_target_sees_resolved_proposal(dao, recorder):
    dao.deposit(ALICE, 10)
    pid = dao.propose(recorder, data=encode_call("reenter", dao.dao, 0))
    dao.vote(ALICE, pid, True)
    dao.past_deadline()

    assert dao.finish(pid).result["status"] == "approved"
    reentry = dao.chain.view(recorder, "reentry")
    assert [r["success"] for r in reentry] == [False, False]
    assert all("ProposalFinished" in r["error"] for r in reentry)
    assert len(dao.events("ProposalFinished")) == 1
    assert dao.proposal(pid)["votes_for"] == 10


def test_approved_proposal_can_mint(dao):
    dao.deposit(ALICE, 100)
    pid = dao.propose(dao.token, data=encode_call("mint", CAROL, 77), description="mint for carol")
    dao.vote(ALICE, pid, True)
    dao.past_deadline()

    assert dao.finish(pid).result["approved"] is True
    assert dao.balance(CAROL) == 1077


def test_empty_pool_aborts_resolution(mock_dao, recorder):
    mock_stake(mock_dao, ALICE, 3)
    pid = mock_dao.propose(recorder)
    mock_dao.vote(ALICE, pid, True)
    mock_dao.past_deadline()

    with pytest.raises(EmptyPool):
        mock_dao.finish(pid)
    assert not mock_dao.proposal(pid)["finished"]

    _set_pool(mock_dao, 3)
    assert mock_dao.finish(pid).result["status"] == "failed"  # empty calldata
