"""Support systems: deterministic randomness."""

from garden.systems.rng import DeterministicRNG

__all__ = ["DeterministicRNG"]
