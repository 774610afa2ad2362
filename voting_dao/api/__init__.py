"""
HTTP routers for the DAO node.

Routers are thin: request models and error mapping live here, all state
changes go through DaoExecutor.
"""

from . import dao, dev, health, token

__all__ = ["dao", "dev", "health", "token"]
