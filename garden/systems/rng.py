"""Domain-separated deterministic RNG using xxhash.

Formula: RNG_Value = Hash(Seed, Domain, Key, Draw)

A growth duration depends only on the session seed and the entity's
catalog position, never on construction order across threads or on a
hidden global generator.
"""

from __future__ import annotations

import struct

import xxhash

from garden.core.enums import Domain


class DeterministicRNG:
    """Stateless domain-separated pseudo-random number generator.

    Each call is a pure function of (seed, domain, key, draw) — no
    internal mutable state, therefore fully thread-safe and inspectable.
    """

    __slots__ = ("_seed",)

    _MAX_UINT64 = (1 << 64) - 1

    def __init__(self, seed: int) -> None:
        self._seed = seed

    @property
    def seed(self) -> int:
        return self._seed

    def _hash(self, domain: Domain, key: int, draw: int) -> int:
        payload = struct.pack("<qiqi", self._seed, domain.value, key, draw)
        return xxhash.xxh64(payload).intdigest()

    def next_float(self, domain: Domain, key: int, draw: int) -> float:
        """Return a deterministic float in [0.0, 1.0)."""
        return self._hash(domain, key, draw) / (self._MAX_UINT64 + 1)

