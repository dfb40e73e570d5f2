"""Seeded deterministic RNG and seed derivation.

The Golden Rule: the outcome of round R depends ONLY on
MatchSeed + R + the inputs handed to the engine. No ambient randomness.

Both algorithms are fixed so any re-implementation reproduces them
bit-for-bit:

* ``SeededRNG`` is Mulberry32 over a single unsigned 32-bit state
  (increment 0x6D2B79F5, shifts 15/7/14, odd multipliers ``t | 1`` and
  ``t | 61``, output divided by 2**32).
* ``hash_string`` is djb2-xor: start at 5381, for every UTF-16 code unit
  ``c`` compute ``h = ((h << 5) + h) ^ c`` modulo 2**32.
"""

from __future__ import annotations

import math
import struct
from typing import MutableSequence, Sequence, TypeVar

T = TypeVar("T")

_MASK32 = 0xFFFFFFFF
_TWO_POW_32 = 4294967296.0
_MULBERRY_INCREMENT = 0x6D2B79F5
_DJB2_INIT = 5381


class EmptyChoiceError(ValueError):
    """Raised when a draw is requested from an empty choice set."""


def _imul(a: int, b: int) -> int:
    """32-bit wrapping multiply."""
    return (a * b) & _MASK32


def hash_string(text: str) -> int:
    """Stable unsigned 32-bit djb2-xor hash over UTF-16 code units."""
    h = _DJB2_INIT
    data = text.encode("utf-16-le", "surrogatepass")
    for (unit,) in struct.iter_unpack("<H", data):
        h = ((((h << 5) & _MASK32) + h) & _MASK32) ^ unit
    return h


class SeededRNG:
    """Mulberry32 pseudo-random generator.

    ``next()`` is a pure function of the internal state, so two generators
    built from the same seed (or a generator and its clone) produce the same
    sequence forever.
    """

    __slots__ = ("_seed", "_state")

    def __init__(self, seed: int) -> None:
        self._seed = seed & _MASK32
        self._state = self._seed

    @property
    def seed(self) -> int:
        """The seed this generator was built from (audit trail)."""
        return self._seed

    @property
    def state(self) -> int:
        return self._state

    def next(self) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        self._state = (self._state + _MULBERRY_INCREMENT) & _MASK32
        t = self._state
        t = _imul(t ^ (t >> 15), t | 1)
        t ^= (t + _imul(t ^ (t >> 7), t | 61)) & _MASK32
        return ((t ^ (t >> 14)) & _MASK32) / _TWO_POW_32

    def range(self, low: float, high: float) -> float:
        """Float in [low, high)."""
        return low + self.next() * (high - low)

    def int(self, low: int, high: int) -> int:
        """Integer in [low, high] inclusive."""
        return math.floor(self.range(low, high + 1))

    def chance(self, probability: float) -> bool:
        """Return True with the given probability."""
        return self.next() < probability

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise EmptyChoiceError("Cannot pick from an empty sequence")
        return items[self.int(0, len(items) - 1)]

    def shuffle(self, items: MutableSequence[T]) -> MutableSequence[T]:
        """Fisher-Yates in place, walking from the end. Returns *items*."""
        for i in range(len(items) - 1, 0, -1):
            j = self.int(0, i)
            items[i], items[j] = items[j], items[i]
        return items

    def gaussian(self, mean: float = 0.0, stddev: float = 1.0) -> float:
        """Normally distributed draw via Box-Muller (consumes two draws)."""
        u1 = self.next()
        u2 = self.next()
        # u1 == 0.0 only when the output word is exactly zero
        if u1 == 0.0:
            u1 = 1.0 / _TWO_POW_32
        z0 = math.sqrt(-2.0 * math.log(u1)) * math.cos(2.0 * math.pi * u2)
        return z0 * stddev + mean

    def clone(self) -> SeededRNG:
        """Copy that continues the identical sequence from the current point."""
        twin = SeededRNG(self._seed)
        twin._state = self._state
        return twin

    def __repr__(self) -> str:
        return f"SeededRNG(seed={self._seed}, state={self._state})"
