"""Mersenne Twister (MT19937) pseudo-random number generator."""

from __future__ import annotations

import math
import os
from collections.abc import Sequence

N = 624
M = 397
SAVE = N + 1

_MASK = 0xFFFFFFFF
_UPPER = 0x80000000
_LOWER = 0x7FFFFFFF
_MATRIX = 0x9908B0DF


def _twist(m: int, s0: int, s1: int) -> int:
    mixed = (s0 & _UPPER) | (s1 & _LOWER)
    return m ^ (mixed >> 1) ^ (_MATRIX if s1 & 1 else 0)


class MTRand:
    """MT19937 generator with 32-bit integer, real and normal outputs.

    The generator is seeded with an integer, with a sequence of integers,
    or, when no seed is given, from the operating system's entropy source.
    """

    def __init__(self, seed: int | Sequence[int] | None = None) -> None:
        self._state = [0] * N
        self._left = 0
        if seed is not None and not isinstance(seed, int):
            self.seed_array(seed)
        else:
            self.seed(seed)

    # ------------------------------------------------------------------
    # Seeding
    # ------------------------------------------------------------------

    def _initialize(self, seed: int) -> None:
        state = self._state
        state[0] = seed & _MASK
        for i in range(1, N):
            prev = state[i - 1]
            state[i] = (1812433253 * (prev ^ (prev >> 30)) + i) & _MASK

    def _reload(self) -> None:
        state = self._state
        for i in range(N - M):
            state[i] = _twist(state[i + M], state[i], state[i + 1])
        for i in range(N - M, N - 1):
            state[i] = _twist(state[i + M - N], state[i], state[i + 1])
        state[N - 1] = _twist(state[M - 1], state[N - 1], state[0])
        self._left = N

    def seed(self, seed: int | None = None) -> None:
        """Reseed with a 32-bit integer, or from system entropy if None."""
        if seed is None:
            raw = os.urandom(4 * N)
            words = [int.from_bytes(raw[k:k + 4], "little") for k in range(0, len(raw), 4)]
            self.seed_array(words)
            return
        self._initialize(seed)
        self._reload()

    def seed_array(self, big_seed: Sequence[int]) -> None:
        """Reseed with a sequence of integers; only the low 32 bits of each count."""
        key = list(big_seed)
        length = len(key)
        if length == 0:
            raise ValueError("seed array must not be empty")
        self._initialize(19650218)
        state = self._state
        i, j = 1, 0
        for _ in range(max(N, length)):
            prev = state[i - 1]
            state[i] = ((state[i] ^ ((prev ^ (prev >> 30)) * 1664525)) + (key[j] & _MASK) + j) & _MASK
            i += 1
            j += 1
            if i >= N:
                state[0] = state[N - 1]
                i = 1
            if j >= length:
                j = 0
        for _ in range(N - 1):
            prev = state[i - 1]
            state[i] = ((state[i] ^ ((prev ^ (prev >> 30)) * 1566083941)) - i) & _MASK
            i += 1
            if i >= N:
                state[0] = state[N - 1]
                i = 1
        state[0] = _UPPER
        self._reload()

    # ------------------------------------------------------------------
    # Draws
    # ------------------------------------------------------------------

    def _next(self) -> int:
        if self._left == 0:
            self._reload()
        value = self._state[N - self._left]
        self._left -= 1
        value ^= value >> 11
        value ^= (value << 7) & 0x9D2C5680
        value ^= (value << 15) & 0xEFC60000
        return (value ^ (value >> 18)) & _MASK

    def rand_int(self, n: int | None = None) -> int:
        """Integer in [0, 2**32 - 1], or in [0, n] when n is given."""
        if n is None:
            return self._next()
        if not 0 <= n <= _MASK:
            raise ValueError(f"upper bound {n} is outside the 32-bit range")
        used = n
        for shift in (1, 2, 4, 8, 16):
            used |= used >> shift
        while True:
            value = self._next() & used
            if value <= n:
                return value

    def rand(self, n: float = 1.0) -> float:
        """Real number in [0, n]."""
        return self._next() * (1.0 / 4294967295.0) * n

    def rand_exc(self, n: float = 1.0) -> float:
        """Real number in [0, n)."""
        return self._next() * (1.0 / 4294967296.0) * n

    def rand_dbl_exc(self, n: float = 1.0) -> float:
        """Real number in (0, n)."""
        return (self._next() + 0.5) * (1.0 / 4294967296.0) * n

    def rand53(self) -> float:
        """Real number in [0, 1) with 53-bit resolution."""
        a = self._next() >> 5
        b = self._next() >> 6
        return (a * 67108864.0 + b) * (1.0 / 9007199254740992.0)

    def rand_norm(self, mean: float = 0.0, stddev: float = 1.0) -> float:
        """Normally distributed real number (polar Box-Muller)."""
        while True:
            x = 2.0 * self.rand() - 1.0
            y = 2.0 * self.rand() - 1.0
            r = x * x + y * y
            if 0.0 < r < 1.0:
                break
        s = math.sqrt(-2.0 * math.log(r) / r)
        return mean + x * s * stddev

    def __call__(self) -> float:
        return self.rand()

    # ------------------------------------------------------------------
    # State
    # ------------------------------------------------------------------

    def save(self) -> list[int]:
        """Return the state words followed by the count of values left."""
        return [*self._state, self._left]

    def load(self, saved: Sequence[int]) -> None:
        """Restore a state produced by save()."""
        values = [int(v) for v in saved]
        if len(values) != SAVE:
            raise ValueError(f"saved state must hold {SAVE} values, got {len(values)}")
        left = values[-1]
        if not 0 <= left <= N:
            raise ValueError(f"count of values left must be within 0..{N}, got {left}")
        self._state = [v & _MASK for v in values[:N]]
        self._left = left

    def to_text(self) -> str:
        """Serialise the state as tab-separated integers."""
        return "\t".join(str(v) for v in self.save())

    @classmethod
    def from_text(cls, text: str) -> MTRand:
        """Build a generator from the output of to_text()."""
        generator = cls.__new__(cls)
        generator._state = [0] * N
        generator._left = 0
        generator.load(int(word) for word in text.split()) if False else generator.load(
            [int(word) for word in text.split()]
        )
        return generator

    def copy(self) -> MTRand:
        """Return an independent generator in the same state."""
        other = MTRand.__new__(MTRand)
        other._state = list(self._state)
        other._left = self._left
        return other

    __copy__ = copy