# src/climb/rng.py
from __future__ import annotations
import random
from typing import Optional, Sequence, TypeVar

T = TypeVar("T")


class SeededRandom:
    """
    Injectable random source for the generator and builder.

    Wraps a private `random.Random` so sessions never touch the global RNG.
    Anything with the same four methods can stand in (tests use scripted
    sources to force fallbacks).
    """
    def __init__(self, seed: Optional[int] = None):
        if seed is None:
            seed = random.randrange(0, 2**32 - 1)
        self.seed = seed
        self._rng = random.Random(seed)

    def uniform(self, lo: float, hi: float) -> float:
        return self._rng.uniform(lo, hi)

    def randint(self, lo: int, hi: int) -> int:
        """Inclusive on both ends."""
        return self._rng.randint(int(lo), int(hi))

    def random(self) -> float:
        return self._rng.random()

    def weighted_choice(self, items: Sequence[T], weights: Sequence[float]) -> T:
        if len(items) != len(weights) or not items:
            raise ValueError("items and weights must be non-empty and the same length")
        return self._rng.choices(items, weights=weights, k=1)[0]
