"""
voting_dao package initializer

Keep this module lightweight. Do not import FastAPI or the executor here,
so the CLI tasks and the runtime can load without the HTTP stack.
"""

__all__ = []
__version__ = "0.1.0"
