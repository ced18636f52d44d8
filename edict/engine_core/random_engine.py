"""
Random Engine - Seeded pseudo-random source.

Every randomized operation draws from one RandomEngine owned by the
session, so a seed plus an identical call sequence reproduces every
roll. The generator state can be captured as plain JSON-safe data and
restored later (used by save/load and rewind).
"""

from __future__ import annotations
from typing import Any, Sequence, TypeVar
import random
import uuid

from .rules import DICE_SIDES

T = TypeVar("T")


def generate_seed() -> str:
    return uuid.uuid4().hex[:16]


class RandomEngine:
    """Deterministic random source wrapping random.Random."""

    def __init__(self, seed: str | None = None):
        self._seed = seed or generate_seed()
        self._rng = random.Random(self._seed)

    @property
    def seed(self) -> str:
        return self._seed

    def random(self) -> float:
        """Float in [0, 1)."""
        return self._rng.random()

    def randint(self, low: int, high: int) -> int:
        """Integer in [low, high], both inclusive."""
        return int(self._rng.random() * (high - low + 1)) + low

    def roll_die(self, sides: int = DICE_SIDES) -> int:
        return self.randint(1, sides)

    def roll_dice(self, count: int, sides: int = DICE_SIDES) -> list[int]:
        return [self.roll_die(sides) for _ in range(count)]

    def pick(self, items: Sequence[T]) -> T:
        if not items:
            raise ValueError("Cannot pick from empty sequence")
        return items[self.randint(0, len(items) - 1)]

    def shuffle(self, items: Sequence[T]) -> list[T]:
        """Return a shuffled copy (Fisher-Yates)."""
        result = list(items)
        for i in range(len(result) - 1, 0, -1):
            j = self.randint(0, i)
            result[i], result[j] = result[j], result[i]
        return result

    def weighted_pick(self, items: Sequence[T], weights: Sequence[float]) -> T:
        if len(items) != len(weights):
            raise ValueError("Items and weights must have same length")
        if not items:
            raise ValueError("Cannot pick from empty sequence")

        remaining = self.random() * sum(weights)
        for item, weight in zip(items, weights):
            remaining -= weight
            if remaining <= 0:
                return item
        return items[-1]

    def get_state(self) -> dict[str, Any]:
        """Capture seed and generator position as JSON-safe data."""
        version, internal, gauss_next = self._rng.getstate()
        return {
            "seed": self._seed,
            "state": [version, list(internal), gauss_next],
        }

    def restore_state(self, state: dict[str, Any]) -> None:
        version, internal, gauss_next = state["state"]
        self._seed = state["seed"]
        self._rng.setstate((version, tuple(internal), gauss_next))

    def clone(self) -> RandomEngine:
        cloned = RandomEngine(self._seed)
        cloned.restore_state(self.get_state())
        return cloned

    def reset(self) -> None:
        """Restart the sequence from the original seed."""
        self._rng = random.Random(self._seed)
