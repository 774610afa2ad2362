"""
Block-time sources.

Timestamps are integer seconds. Both clocks add a shift that the chain
keeps in its persisted state, so a dev node can fast-forward past a
debate period and stay there after a restart.
"""

from __future__ import annotations

import time


class SystemClock:
    def now(self, offset: int = 0) -> int:
        return int(time.time()) + int(offset)


class ManualClock:
    """Fixed clock for tests and deterministic simulations."""

    def __init__(self, start: int = 1_700_000_000):
        self._now = int(start)

    def now(self, offset: int = 0) -> int:
        return self._now + int(offset)

    def advance(self, seconds: int) -> int:
        self._now += max(0, int(seconds))
        return self._now

    def set(self, ts: int) -> None:
        self._now = int(ts)


def make_clock(mode: str = "system", start: int | None = None):
    if str(mode).strip().lower() == "manual":
        return ManualClock(start if start is not None else int(time.time()))
    return SystemClock()
