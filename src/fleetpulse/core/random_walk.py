"""Seedable random source and bounded random-walk deltas."""

from __future__ import annotations

import random
import string

# Every stochastic component takes one of these so runs can be replayed from a seed
RandomSource = random.Random

_ID_ALPHABET = string.ascii_lowercase + string.digits


def make_rng(seed: int | None = None) -> RandomSource:
    return random.Random(seed)


def clamp(value: float, lo: float, hi: float) -> float:
    return max(lo, min(hi, value))


def generate_id(rng: RandomSource, prefix: str = "") -> str:
    """Return ``prefix`` followed by 9 base-36 characters drawn from ``rng``."""
    return prefix + "".join(rng.choices(_ID_ALPHABET, k=9))


class RandomWalk:
    """Bounded, correlated deltas for metric evolution."""

    def __init__(self, rng: RandomSource) -> None:
        self._rng = rng

    @property
    def rng(self) -> RandomSource:
        return self._rng

    def delta(self, amplitude: float) -> float:
        """A symmetric delta in [-amplitude, +amplitude]."""
        return self._rng.uniform(-amplitude, amplitude)

    def noise(self, low: float, high: float) -> float:
        """An asymmetric offset in [low, high]."""
        return self._rng.uniform(low, high)

    def step(self, value: float, amplitude: float, lo: float, hi: float) -> float:
        """Apply a delta to ``value`` and clamp afterwards, never before."""
        return clamp(value + self.delta(amplitude), lo, hi)
