from __future__ import annotations

import random
import time
from typing import Protocol


class Clock(Protocol):
    def now_ms(self) -> int: ...


class IDGenerator(Protocol):
    def generate(self) -> int: ...


class RealClock:
    def now_ms(self) -> int:
        return int(time.time() * 1000)


class RandomIDGenerator:
    """Request ids only need to be unique, not ordered."""

    def __init__(self, rng: random.Random | None = None):
        self._rng = rng or random.SystemRandom()

    def generate(self) -> int:
        return self._rng.getrandbits(63)
