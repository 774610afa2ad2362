# voting_dao/dao_runtime/__init__.py
from __future__ import annotations

"""
DAO runtime package.

Importing the package registers the contract kinds (TestToken, VotingDao)
so that a Chain restored from a saved snapshot can resolve every address.
Nothing here touches the network, crypto or the filesystem.
"""

from .chain import CallResult, Chain, Receipt
from .clock import ManualClock, SystemClock, make_clock
from .codec import ZERO_ADDRESS, encode_call, normalize_address
from .contracts import Contract, external, register_kind, view
from .deploy import Deployment, deploy_contracts
from .errors import DaoError
from .token import TestToken, TokenClient
from .voting_dao import VotingDao

__all__ = [
    "CallResult",
    "Chain",
    "Receipt",
    "ManualClock",
    "SystemClock",
    "make_clock",
    "ZERO_ADDRESS",
    "encode_call",
    "normalize_address",
    "Contract",
    "external",
    "register_kind",
    "view",
    "Deployment",
    "deploy_contracts",
    "DaoError",
    "TestToken",
    "TokenClient",
    "VotingDao",
]
