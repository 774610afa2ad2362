"""
Named failures for the DAO runtime.

Every failure aborts the whole operation. The environment restores the
pre-call snapshot before the error reaches the caller, so raising one of
these never leaves partial state behind.

Each class carries:
- code    : stable machine name (used by the HTTP layer and the CLI)
- message : the human reason string
"""

from __future__ import annotations

from typing import Dict, Type


class DaoError(RuntimeError):
    code = "DaoError"
    message = "Operation failed"

    def __init__(self, message: str | None = None) -> None:
        super().__init__(message or self.message)

    @property
    def reason(self) -> str:
        return str(self.args[0]) if self.args else self.message

    def to_dict(self) -> Dict[str, str]:
        return {"error": self.code, "message": self.reason}


# ----------------------------- stake ledger -----------------------------

class InsufficientBalance(DaoError):
    code = "InsufficientBalance"
    message = "Not enough balance"


class InsufficientAllowance(DaoError):
    code = "InsufficientAllowance"
    message = "Not enough allowance"


class TransferFailed(DaoError):
    code = "TransferFailed"
    message = "Transfer failed"


class NotAStakeholder(DaoError):
    code = "NotAStakeholder"
    message = "Sender is not a stakeholder"


class ParticipatingInOpenProposals(DaoError):
    code = "ParticipatingInOpenProposals"
    message = "Sender is participating in proposals"


class AmountExceedsDeposit(DaoError):
    code = "AmountExceedsDeposit"
    message = "Amount is greater than deposited"


class InvalidAmount(DaoError):
    code = "InvalidAmount"
    message = "Amount must be a non-negative integer"


# ----------------------------- proposals -----------------------------

class NotChairman(DaoError):
    code = "NotChairman"
    message = "Sender is not a chairman"


class RecipientNotAContract(DaoError):
    code = "RecipientNotAContract"
    message = "Recipient is not a contract"


class ProposalNotFound(DaoError):
    code = "ProposalNotFound"
    message = "Proposal not found"


class ProposalFinished(DaoError):
    code = "ProposalFinished"
    message = "Proposal is finished"


class ProposalInProgress(DaoError):
    code = "ProposalInProgress"
    message = "Proposal is in progress"


class AlreadyVoted(DaoError):
    code = "AlreadyVoted"
    message = "Sender already voted"


class EmptyPool(DaoError):
    code = "EmptyPool"
    message = "Pool balance is zero"


# ----------------------------- roles / params -----------------------------

class NotOwner(DaoError):
    code = "NotOwner"
    message = "Sender is not an owner"


class QuorumOutOfRange(DaoError):
    code = "QuorumOutOfRange"
    message = "Minimum quorum must be within [0, 100]"


class ZeroAddress(DaoError):
    code = "ZeroAddress"
    message = "Address must not be zero"


# ----------------------------- environment -----------------------------

class ContractNotFound(DaoError):
    code = "ContractNotFound"
    message = "No contract at address"


class UnknownFunction(DaoError):
    code = "UnknownFunction"
    message = "Function is not exported by contract"


class SignatureError(DaoError):
    code = "SignatureError"
    message = "Envelope signature verification failed"


class BadNonce(DaoError):
    code = "BadNonce"
    message = "Envelope nonce does not match the expected nonce"


class InvalidParams(DaoError):
    code = "InvalidParams"
    message = "Call parameters do not match the function"


ERRORS_BY_CODE: Dict[str, Type[DaoError]] = {
    cls.code: cls
    for cls in (
        DaoError,
        InsufficientBalance,
        InsufficientAllowance,
        TransferFailed,
        NotAStakeholder,
        ParticipatingInOpenProposals,
        AmountExceedsDeposit,
        InvalidAmount,
        NotChairman,
        RecipientNotAContract,
        ProposalNotFound,
        ProposalFinished,
        ProposalInProgress,
        AlreadyVoted,
        EmptyPool,
        NotOwner,
        QuorumOutOfRange,
        ZeroAddress,
        ContractNotFound,
        UnknownFunction,
        SignatureError,
        BadNonce,
        InvalidParams,
    )
}


def require(cond: bool, error: Type[DaoError], msg: str | None = None) -> None:
    if not cond:
        raise error(msg)
