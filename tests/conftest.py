import pytest

from voting_dao.dao_runtime import Chain, ManualClock, deploy_contracts
from voting_dao.dao_runtime.codec import encode_call
from voting_dao.dao_runtime.contracts import Contract, external, register_kind, view
from voting_dao.dao_runtime.errors import DaoError

DEPLOYER = "0x" + "d0" * 20
ALICE = "0x" + "a1" * 20
BOB = "0x" + "b2" * 20
CAROL = "0x" + "c3" * 20

PERIOD = 3 * 24 * 60 * 60
START = 1_700_000_000


# ---------------------------------------------------------------------------
# Test-only contract kinds
# ---------------------------------------------------------------------------


@register_kind
class MockToken(Contract):
    """Scriptable token: answers are set directly, transfers move nothing."""

    kind = "MockToken"

    def constructor(self):
        self.storage.update({"balances": {}, "allowances": {}, "results": {"transfer": True, "transfer_from": True}})

    @external
    def set_balance(self, account, amount):
        self.storage["balances"][account] = amount

    @external
    def set_allowance(self, owner, spender, amount):
        self.storage["allowances"][f"{owner}|{spender}"] = amount

    @external
    def set_result(self, fn, ok):
        self.storage["results"][fn] = ok

    @view
    def balance_of(self, account):
        return self.storage["balances"].get(account, 0)

    @view
    def allowance(self, owner, spender):
        return self.storage["allowances"].get(f"{owner}|{spender}", 0)

    @external
    def transfer_from(self, sender, recipient, amount):
        return self.storage["results"]["transfer_from"]

    @external
    def transfer(self, recipient, amount):
        return self.storage["results"]["transfer"]


@register_kind
class CallRecorder(Contract):
    """Dispatch target: counts calls, can fail, can call back into the DAO."""

    kind = "CallRecorder"

    def constructor(self):
        self.storage.update({"calls": [], "reentry": []})

    @external
    def ping(self, value):
        self.storage["calls"].append({"sender": self.sender, "value": value})
        return value

    @external
    def fail(self):
        self.storage["calls"].append({"sender": self.sender, "value": "fail"})
        raise DaoError("target refused")

    @external
    def reenter(self, dao, proposal_id):
        for fn, args in (("finish_proposal", [proposal_id]), ("vote", [proposal_id, True])):
            res = self.chain.call(self.address, dao, encode_call(fn, *args))
            self.storage["reentry"].append({"fn": fn, "success": res.success, "error": res.error})
        self.storage["calls"].append({"sender": self.sender, "value": "reenter"})
        return True

    @view
    def calls(self):
        return list(self.storage["calls"])

    @view
    def reentry(self):
        return list(self.storage["reentry"])


# ---------------------------------------------------------------------------
# Harness
# ---------------------------------------------------------------------------


class DaoHarness:
    """Sugar over chain.transact / chain.view for one deployed DAO."""

    def __init__(self, chain, dao, token, clock):
        self.chain = chain
        self.dao = dao
        self.token = token
        self.clock = clock

    def tx(self, sender, fn, *args):
        return self.chain.transact(sender, self.dao, fn, *args)

    def view(self, fn, *args):
        return self.chain.view(self.dao, fn, *args)

    def deposit(self, sender, amount):
        return self.tx(sender, "deposit", amount).result

    def withdraw(self, sender, amount):
        return self.tx(sender, "withdraw", amount).result

    def propose(self, target, data=b"", description="proposal", sender=DEPLOYER):
        return self.tx(sender, "add_proposal", target, "0x" + bytes(data).hex(), description).result

    def vote(self, sender, proposal_id, votes_for):
        return self.tx(sender, "vote", proposal_id, votes_for).result

    def finish(self, proposal_id, sender=CAROL):
        return self.tx(sender, "finish_proposal", proposal_id)

    def past_deadline(self):
        self.clock.advance(PERIOD)

    def stakeholder(self, account):
        return self.view("stakeholder", account)

    def proposal(self, proposal_id):
        return self.view("proposal", proposal_id)

    def balance(self, account):
        return self.chain.view(self.token, "balance_of", account)

    def events(self, name):
        return [e for e in self.chain.events() if e["event"] == name]


@pytest.fixture
def clock():
    return ManualClock(start=START)


@pytest.fixture
def chain(clock):
    return Chain(clock=clock, chain_id="dao-test")


@pytest.fixture
def deployment(chain):
    return deploy_contracts(chain, DEPLOYER, initial_supply=1_000_000, minimum_quorum=30, debating_period=PERIOD)


@pytest.fixture
def dao(chain, deployment, clock):
    """Real TestToken + VotingDao; alice/bob/carol hold 1000 each and approved the DAO."""
    for who in (ALICE, BOB, CAROL):
        chain.transact(DEPLOYER, deployment.token, "transfer", who, 1000)
        chain.transact(who, deployment.token, "approve", deployment.dao, 1000)
    return DaoHarness(chain, deployment.dao, deployment.token, clock)


@pytest.fixture
def mock_dao(chain, clock):
    """VotingDao over a MockToken whose answers the test scripts."""
    token = chain.deploy(MockToken.kind, DEPLOYER)
    dao = chain.deploy(
        "VotingDao",
        DEPLOYER,
        chairman=DEPLOYER,
        token=token,
        minimum_quorum=30,
        debating_period=PERIOD,
    )
    return DaoHarness(chain, dao, token, clock)


@pytest.fixture
def recorder(chain):
    return chain.deploy(CallRecorder.kind, DEPLOYER)


def mock_stake(h, account, amount):
    """Deposit `amount` for account through a MockToken DAO."""
    h.chain.transact(DEPLOYER, h.token, "set_balance", account, amount)
    h.chain.transact(DEPLOYER, h.token, "set_allowance", account, h.dao, amount)
    return h.deposit(account, amount)
