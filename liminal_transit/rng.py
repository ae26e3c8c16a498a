"""Seeded random number generation.

Everything procedural in the engine draws from a SeededRNG. The generator
is a pure function of its 32-bit state, so a session that stores the state
can resume the exact same stream after a save/restore round-trip.

    hash_seed("abc")       → FNV-1a/32 over the UTF-8 bytes
    SeededRNG(state)()     → Mulberry32 draw in [0, 1)
    pick(rng, seq)         → seq[floor(rng() * len(seq))]
"""

from __future__ import annotations

from collections.abc import Sequence
from typing import TypeVar

T = TypeVar("T")

MASK32 = 0xFFFFFFFF
FNV_OFFSET_BASIS = 2166136261
FNV_PRIME = 16777619
MULBERRY_INCREMENT = 0x6D2B79F5


class EmptyCollectionError(ValueError):
    """Raised when pick() is handed an empty pool."""


def hash_seed(seed: str) -> int:
    """Hash a seed string to an unsigned 32-bit integer (FNV-1a)."""
    h = FNV_OFFSET_BASIS
    for byte in seed.encode("utf-8"):
        h ^= byte
        h = (h * FNV_PRIME) & MASK32
    return h


def _imul(a: int, b: int) -> int:
    return (a * b) & MASK32


class SeededRNG:
    """Mulberry32 generator.

    Calling the instance returns the next float in [0, 1). `state` is the
    running accumulator; assigning it (or passing it to the constructor)
    restores the stream at that point.
    """

    __slots__ = ("state",)

    def __init__(self, state: int) -> None:
        self.state = state & MASK32

    @classmethod
    def from_seed(cls, seed: str) -> SeededRNG:
        return cls(hash_seed(seed))

    def __call__(self) -> float:
        self.state = (self.state + MULBERRY_INCREMENT) & MASK32
        t = self.state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & MASK32
        return ((t ^ (t >> 14)) & MASK32) / 4294967296

    def __repr__(self) -> str:
        return f"SeededRNG(state={self.state:#010x})"


def pick(rng: SeededRNG, items: Sequence[T]) -> T:
    """Select one element with a single draw. Fails fast on an empty pool."""
    if not items:
        raise EmptyCollectionError("Cannot pick from an empty collection")
    return items[int(rng() * len(items))]


def chance(rng: SeededRNG, probability: float) -> bool:
    """Consume one draw and return True with the given probability."""
    return rng() < probability


def draw_range(rng: SeededRNG, base: float, spread: float) -> float:
    """base + rng() * spread, rounded to 2 dp so stored values stay readable."""
    return round(base + rng() * spread, 2)
